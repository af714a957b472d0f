from django.urls import path
from . import views

app_name = 'catalog'

urlpatterns = [
    path('products/<int:pk>/modifiers/', views.ProductModifiersView.as_view(), name='product-modifiers'),
]
