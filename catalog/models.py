from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal


class TimeStampedModel(models.Model):
    """Base model with created_at and updated_at fields"""
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Restaurant(TimeStampedModel):
    STATUS_ACTIVE = 'active'
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('suspended', 'Suspended'),
    ]

    name = models.CharField(max_length=255)
    logo_url = models.URLField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    class Meta:
        db_table = 'restaurants'
        ordering = ['name']

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    def __str__(self):
        return self.name


class ModifierGroup(TimeStampedModel):
    """A named set of options, e.g. "Size" or "Extra toppings".

    A group is required when ``min_selection`` is greater than zero.
    """
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='modifier_groups')
    name = models.CharField(max_length=255)
    min_selection = models.PositiveIntegerField(default=1)
    max_selection = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = 'modifier_groups'
        ordering = ['id']

    @property
    def is_required(self):
        return self.min_selection > 0

    def __str__(self):
        return f"{self.name} ({self.min_selection}-{self.max_selection})"


class ModifierOption(TimeStampedModel):
    group = models.ForeignKey(ModifierGroup, on_delete=models.CASCADE, related_name='options')
    name = models.CharField(max_length=255)
    # Price delta added to the product base price
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        db_table = 'modifier_options'
        ordering = ['id']

    def __str__(self):
        return f"{self.group.name} - {self.name}"


class Product(TimeStampedModel):
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='products')
    name = models.CharField(max_length=255)
    description = models.CharField(max_length=1000, null=True, blank=True)
    image_url = models.URLField(blank=True)
    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))]
    )
    is_available = models.BooleanField(default=True)

    modifier_groups = models.ManyToManyField(ModifierGroup, blank=True, related_name='products')

    class Meta:
        db_table = 'products'
        ordering = ['name']

    def __str__(self):
        return self.name
