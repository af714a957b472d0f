"""
Read-only catalog lookups used by the cart engine.

Every call goes to the database. Prices and availability must be current
whenever a cart is mutated, so nothing here is cached.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .models import ModifierGroup, ModifierOption, Product


@dataclass(frozen=True)
class OptionSnapshot:
    option_id: int
    group_id: int
    name: str
    price_delta: Decimal
    group_name: str = ''


@dataclass(frozen=True)
class GroupSnapshot:
    group_id: int
    name: str
    min_selection: int
    max_selection: int
    options: List[OptionSnapshot] = field(default_factory=list)

    @property
    def is_required(self):
        return self.min_selection > 0


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: int
    name: str
    base_price: Decimal
    is_available: bool
    restaurant_id: int
    restaurant_name: str
    restaurant_status: str

    @property
    def restaurant_active(self):
        return self.restaurant_status == 'active'


def _option_snapshot(option):
    return OptionSnapshot(
        option_id=option.id,
        group_id=option.group_id,
        name=option.name,
        price_delta=option.price,
        group_name=option.group.name,
    )


class ModifierCatalog:
    """Catalog collaborator: products, their modifier groups and options."""

    def get_product(self, product_id) -> Optional[ProductSnapshot]:
        try:
            product = Product.objects.select_related('restaurant').get(id=product_id)
        except Product.DoesNotExist:
            return None

        return ProductSnapshot(
            product_id=product.id,
            name=product.name,
            base_price=product.price,
            is_available=product.is_available,
            restaurant_id=product.restaurant_id,
            restaurant_name=product.restaurant.name,
            restaurant_status=product.restaurant.status,
        )

    def get_modifier_groups(self, product_id) -> List[GroupSnapshot]:
        groups = ModifierGroup.objects.filter(products__id=product_id).prefetch_related('options')

        return [
            GroupSnapshot(
                group_id=group.id,
                name=group.name,
                min_selection=group.min_selection,
                max_selection=group.max_selection,
                options=[
                    OptionSnapshot(
                        option_id=option.id,
                        group_id=group.id,
                        name=option.name,
                        price_delta=option.price,
                        group_name=group.name,
                    )
                    for option in group.options.all()
                ],
            )
            for group in groups
        ]

    def get_options(self, option_ids: Iterable[int], restaurant_id) -> Dict[int, OptionSnapshot]:
        """Resolve option ids to their true group, within one restaurant."""
        option_ids = set(option_ids)
        if not option_ids:
            return {}

        options = ModifierOption.objects.select_related('group').filter(
            id__in=option_ids,
            group__restaurant_id=restaurant_id,
        )
        return {option.id: _option_snapshot(option) for option in options}

    def current_unit_price(self, product_id, option_ids: Iterable[int]) -> Optional[Decimal]:
        """Unrounded price a configuration would cost today, or None if the product is gone."""
        product = Product.objects.filter(id=product_id).values('price').first()
        if product is None:
            return None

        option_ids = set(option_ids)
        deltas = ModifierOption.objects.filter(id__in=option_ids).values_list('price', flat=True)
        return product['price'] + sum(deltas, Decimal('0.00'))
