from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from backend.catalog import packaging
from backend.catalog.models import Product


class Inventory(models.Model):
    """Stock counts per packaging tier for one product"""
    product = models.OneToOneField(Product, on_delete=models.CASCADE, related_name='inventory')
    fpakk = models.PositiveIntegerField(default=0)  # loose base units
    mellompakk = models.PositiveIntegerField(default=0)  # full inner packs
    toppakk = models.PositiveIntegerField(default=0)  # full pallets
    fpakk_threshold = models.PositiveIntegerField(default=10)
    mellompakk_threshold = models.PositiveIntegerField(default=0)
    toppakk_threshold = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name}: {self.total_units} units"

    def clean(self):
        """Simple products are only stocked as loose base units"""
        if self.product_id and not self.product.is_hierarchical and (self.mellompakk or self.toppakk):
            raise ValidationError('Simple products can only hold fpakk stock.')

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def counts(self):
        return {level: getattr(self, level) for level in packaging.LEVELS}

    @property
    def total_units(self):
        # Recomputed on every read; never stored
        data = self.product.packaging_data()
        return packaging.calculate_total_units(
            self.counts(),
            self.product.structure,
            (data['mellompakk'] or {}).get('quantity_per_box'),
            (data['toppakk'] or {}).get('boxes_per_pallet'),
        )

    def low_stock_levels(self):
        """Tiers at or below their threshold; a zero threshold disables the check"""
        levels = self.product.available_levels()
        return [
            level for level in levels
            if getattr(self, f'{level}_threshold') > 0
            and getattr(self, level) <= getattr(self, f'{level}_threshold')
        ]

    @property
    def is_low_stock(self):
        return bool(self.low_stock_levels())

    class Meta:
        db_table = 'inventory'
        verbose_name_plural = 'inventory'


class StockReception(models.Model):
    """Goods received (varemottak) at one packaging tier"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='stock_receptions')
    level = models.CharField(max_length=20, choices=packaging.LEVEL_CHOICES, default=packaging.LEVEL_FPAKK)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    note = models.TextField(blank=True)
    received_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, related_name='stock_receptions')
    received_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product.name}: +{self.quantity} {self.level}"

    class Meta:
        db_table = 'stock_receptions'
        ordering = ['-received_at']
