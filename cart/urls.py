from django.urls import path
from . import views

app_name = 'cart'

urlpatterns = [
    path('', views.CartListView.as_view(), name='cart-list'),
    path('summary/', views.cart_summary, name='cart-summary'),
    path('add/', views.add_to_cart, name='cart-add'),
    path('update/<int:item_id>/', views.update_cart_item, name='cart-update'),
    path('remove/<int:item_id>/', views.remove_from_cart, name='cart-remove'),
    path('clear/', views.clear_cart, name='cart-clear'),
    path('validate/', views.validate_cart, name='cart-validate'),
]
