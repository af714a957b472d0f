from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'catalog'

    def ready(self):
        from .cache import CatalogCache
        from .signals import connect_invalidation

        self.cache = CatalogCache()
        connect_invalidation(self.cache)
