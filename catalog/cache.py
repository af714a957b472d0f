import logging

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)


class CatalogCache:
    """
    Read-through cache for catalog display data.

    Constructed explicitly and handed to the views that want it; the cart
    engine never reads through it. Entries expire after ``ttl`` seconds and
    are dropped earlier by the invalidation receivers in ``catalog.signals``.
    """
    PREFIX = 'catalog'

    def __init__(self, alias='default', ttl=None):
        self.backend = caches[alias]
        self.ttl = ttl if ttl is not None else getattr(settings, 'CATALOG_CACHE_TTL', 300)

    def product_key(self, product_id):
        return f"{self.PREFIX}:product:{product_id}:modifiers"

    def get_or_load(self, key, loader):
        value = self.backend.get(key)
        if value is None:
            value = loader()
            self.backend.set(key, value, self.ttl)
        return value

    def invalidate_product(self, product_id):
        logger.debug(f"Invalidating catalog cache for product {product_id}")
        self.backend.delete(self.product_key(product_id))

    def invalidate_products(self, product_ids):
        keys = [self.product_key(product_id) for product_id in product_ids]
        if keys:
            self.backend.delete_many(keys)

    def clear(self):
        self.backend.clear()
