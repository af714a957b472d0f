# Invalidate cached catalog display data when products or modifiers change
from django.db.models.signals import post_save, post_delete, m2m_changed

from .models import Product, ModifierGroup, ModifierOption


def connect_invalidation(cache):
    """Wire the cache invalidation receivers for one CatalogCache instance."""

    def product_changed(sender, instance, **kwargs):
        cache.invalidate_product(instance.pk)

    def group_changed(sender, instance, signal, **kwargs):
        # Product links are gone by the time post_delete fires
        if signal is post_delete:
            cache.clear()
        else:
            cache.invalidate_products(instance.products.values_list('id', flat=True))

    def option_changed(sender, instance, **kwargs):
        cache.invalidate_products(
            Product.objects.filter(modifier_groups__id=instance.group_id).values_list('id', flat=True)
        )

    def product_groups_changed(sender, instance, action, **kwargs):
        if action in ['post_add', 'post_remove', 'post_clear']:
            if isinstance(instance, Product):
                cache.invalidate_product(instance.pk)
            else:
                cache.clear()

    for signal in (post_save, post_delete):
        signal.connect(product_changed, sender=Product, weak=False,
                       dispatch_uid=f'catalog-cache-product-{signal_name(signal)}')
        signal.connect(group_changed, sender=ModifierGroup, weak=False,
                       dispatch_uid=f'catalog-cache-group-{signal_name(signal)}')
        signal.connect(option_changed, sender=ModifierOption, weak=False,
                       dispatch_uid=f'catalog-cache-option-{signal_name(signal)}')

    m2m_changed.connect(product_groups_changed, sender=Product.modifier_groups.through, weak=False,
                        dispatch_uid='catalog-cache-product-groups')


def signal_name(signal):
    return 'save' if signal is post_save else 'delete'
