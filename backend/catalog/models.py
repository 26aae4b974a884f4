from django.core.exceptions import ObjectDoesNotExist
from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal

from . import packaging


PACK_TYPE_CHOICES = [
    ('homogeneous', 'Homogeneous'),
    ('mixed', 'Mixed'),
]


class Product(models.Model):
    """Product master"""
    STATUS_ACTIVE = 'active'
    STATUS_DRAFT = 'draft'
    STATUS_ARCHIVED = 'archived'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_DRAFT, 'Draft'),
        (STATUS_ARCHIVED, 'Archived'),
    ]

    STRUCTURE_CHOICES = [
        (packaging.SIMPLE, 'Simple (base unit only)'),
        (packaging.HIERARCHICAL, 'Hierarchical (fpakk / mellompakk / toppakk)'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True, db_index=True)
    category = models.CharField(max_length=100, blank=True, db_index=True)
    description = models.TextField(blank=True)
    manufacturer = models.CharField(max_length=200, blank=True)
    country = models.CharField(max_length=100, blank=True)
    product_type = models.CharField(max_length=100, blank=True)  # e.g. "Lager", "Cider", "Soft drink"
    alcohol_percentage = models.DecimalField(max_digits=4, decimal_places=2, null=True, blank=True)
    image = models.URLField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    structure = models.CharField(max_length=20, choices=STRUCTURE_CHOICES, default=packaging.SIMPLE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku or 'NO-SKU'})"

    @property
    def is_hierarchical(self):
        return self.structure == packaging.HIERARCHICAL

    def _tier(self, name):
        try:
            return getattr(self, name)
        except ObjectDoesNotExist:
            return None

    def packaging_data(self):
        """Plain mapping of the product and its tiers, as the packaging helpers expect"""
        fpakk = self._tier('fpakk')
        mellompakk = self._tier('mellompakk')
        toppakk = self._tier('toppakk')
        return {
            'name': self.name,
            'structure': self.structure,
            'fpakk': {
                'name': fpakk.name,
                'unit_price': fpakk.unit_price,
            } if fpakk else None,
            'mellompakk': {
                'pack_type': mellompakk.pack_type,
                'quantity_per_box': mellompakk.quantity_per_box,
                'price_per_box': mellompakk.price_per_box,
            } if mellompakk else None,
            'toppakk': {
                'pack_type': toppakk.pack_type,
                'boxes_per_pallet': toppakk.boxes_per_pallet,
                'price_per_pallet': toppakk.price_per_pallet,
            } if toppakk else None,
        }

    def available_levels(self):
        """Tiers this product can be stocked and ordered in"""
        if not self.is_hierarchical:
            return [packaging.LEVEL_FPAKK]
        return [level for level in packaging.LEVELS if self._tier(level)]

    def units_per_level(self, level):
        return packaging.units_per_level(level, self.packaging_data())

    def price_for_level(self, level):
        """
        Price of one unit at ``level``.

        Uses the tier's own price when set, otherwise the base unit price times
        the units the tier contains. Returns None when neither is known.
        """
        tier = self._tier(level)
        explicit = {
            packaging.LEVEL_FPAKK: 'unit_price',
            packaging.LEVEL_MELLOMPAKK: 'price_per_box',
            packaging.LEVEL_TOPPAKK: 'price_per_pallet',
        }.get(level)
        if tier is not None and explicit and getattr(tier, explicit) is not None:
            return getattr(tier, explicit)

        fpakk = self._tier('fpakk')
        units = self.units_per_level(level)
        if fpakk is None or fpakk.unit_price is None or not units:
            return None
        return fpakk.unit_price * units

    def format_level(self, level, quantity):
        return packaging.format_packaging_level(level, quantity, self.packaging_data())

    class Meta:
        db_table = 'products'
        ordering = ['name']


class BaseUnit(models.Model):
    """Fpakk: the single sellable unit (bottle, can)"""
    product = models.OneToOneField(Product, on_delete=models.CASCADE, related_name='fpakk')
    name = models.CharField(max_length=200)
    size = models.CharField(max_length=50, blank=True)  # e.g. "0.33 l"
    variant = models.CharField(max_length=100, blank=True)
    sku = models.CharField(max_length=100, blank=True)
    ean = models.CharField(max_length=20, blank=True, db_index=True)
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)  # kg
    deposit = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))  # pant
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    dimensions = models.JSONField(default=dict, blank=True)  # {"length", "width", "height"} in cm
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.name}"

    class Meta:
        db_table = 'product_base_units'


class InnerPack(models.Model):
    """Mellompakk: a case holding ``quantity_per_box`` base units"""
    product = models.OneToOneField(Product, on_delete=models.CASCADE, related_name='mellompakk')
    pack_type = models.CharField(max_length=20, choices=PACK_TYPE_CHOICES, default='homogeneous')
    quantity_per_box = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    ean = models.CharField(max_length=20, blank=True, db_index=True)
    price_per_box = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    dimensions = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.quantity_per_box} per box"

    class Meta:
        db_table = 'product_inner_packs'


class InnerPackContent(models.Model):
    """Base units making up a mixed mellompakk"""
    inner_pack = models.ForeignKey(InnerPack, on_delete=models.CASCADE, related_name='contents')
    base_unit = models.ForeignKey(BaseUnit, on_delete=models.PROTECT, related_name='inner_pack_contents')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    def __str__(self):
        return f"{self.quantity} x {self.base_unit.name}"

    class Meta:
        db_table = 'product_inner_pack_contents'


class OuterPack(models.Model):
    """Toppakk: a pallet holding ``boxes_per_pallet`` inner packs"""
    PALLET_TYPE_CHOICES = [
        ('eur', 'EUR pallet'),
        ('half', 'Half pallet'),
        ('quarter', 'Quarter pallet'),
        ('industrial', 'Industrial pallet'),
        ('other', 'Other'),
    ]

    product = models.OneToOneField(Product, on_delete=models.CASCADE, related_name='toppakk')
    pack_type = models.CharField(max_length=20, choices=PACK_TYPE_CHOICES, default='homogeneous')
    pallet_type = models.CharField(max_length=20, choices=PALLET_TYPE_CHOICES, default='eur')
    boxes_per_pallet = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_per_pallet = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    dimensions = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.boxes_per_pallet} boxes per pallet"

    @property
    def total_units(self):
        # Derived on read from the inner pack, never stored
        inner = self.product._tier('mellompakk')
        return packaging.calculate_outer_pack_total_units(
            self.boxes_per_pallet, inner.quantity_per_box if inner else 0
        )

    class Meta:
        db_table = 'product_outer_packs'


class OuterPackContent(models.Model):
    """Inner packs making up a mixed toppakk"""
    outer_pack = models.ForeignKey(OuterPack, on_delete=models.CASCADE, related_name='contents')
    inner_pack = models.ForeignKey(InnerPack, on_delete=models.PROTECT, related_name='outer_pack_contents')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    def __str__(self):
        return f"{self.quantity} x {self.inner_pack}"

    class Meta:
        db_table = 'product_outer_pack_contents'
