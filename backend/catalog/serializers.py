from django.db import transaction
from rest_framework import serializers

from . import packaging
from .models import Product, BaseUnit, InnerPack, InnerPackContent, OuterPack, OuterPackContent

TIERS = {
    packaging.LEVEL_FPAKK: BaseUnit,
    packaging.LEVEL_MELLOMPAKK: InnerPack,
    packaging.LEVEL_TOPPAKK: OuterPack,
}


class BaseUnitSerializer(serializers.ModelSerializer):
    class Meta:
        model = BaseUnit
        fields = ['id', 'name', 'size', 'variant', 'sku', 'ean', 'weight', 'deposit', 'unit_price', 'dimensions']


class InnerPackContentSerializer(serializers.ModelSerializer):
    base_unit_name = serializers.CharField(source='base_unit.name', read_only=True)

    class Meta:
        model = InnerPackContent
        fields = ['id', 'base_unit', 'base_unit_name', 'quantity']


class InnerPackSerializer(serializers.ModelSerializer):
    contents = InnerPackContentSerializer(many=True, required=False)

    class Meta:
        model = InnerPack
        fields = ['id', 'pack_type', 'quantity_per_box', 'ean', 'price_per_box', 'weight', 'dimensions', 'contents']
        extra_kwargs = {
            # Checked with the rest of the configuration so every error is reported together
            'quantity_per_box': {'validators': [], 'min_value': 0},
        }


class OuterPackContentSerializer(serializers.ModelSerializer):
    inner_pack_name = serializers.CharField(source='inner_pack.product.name', read_only=True)

    class Meta:
        model = OuterPackContent
        fields = ['id', 'inner_pack', 'inner_pack_name', 'quantity']


class OuterPackSerializer(serializers.ModelSerializer):
    contents = OuterPackContentSerializer(many=True, required=False)
    total_units = serializers.IntegerField(read_only=True)

    class Meta:
        model = OuterPack
        fields = ['id', 'pack_type', 'pallet_type', 'boxes_per_pallet', 'total_units', 'price_per_pallet',
                  'weight', 'dimensions', 'contents']
        extra_kwargs = {
            'boxes_per_pallet': {'validators': [], 'min_value': 0},
        }


class ProductSerializer(serializers.ModelSerializer):
    fpakk = BaseUnitSerializer(required=False, allow_null=True)
    mellompakk = InnerPackSerializer(required=False, allow_null=True)
    toppakk = OuterPackSerializer(required=False, allow_null=True)
    inventory = serializers.SerializerMethodField()
    prices = serializers.SerializerMethodField()
    units_per_level = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'name', 'sku', 'category', 'description', 'manufacturer', 'country',
                  'product_type', 'alcohol_percentage', 'image', 'status', 'structure',
                  'fpakk', 'mellompakk', 'toppakk', 'units_per_level', 'prices', 'inventory',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_inventory(self, obj):
        inventory = getattr(obj, 'inventory', None)
        if inventory is None:
            return None
        return {
            'fpakk': inventory.fpakk,
            'mellompakk': inventory.mellompakk,
            'toppakk': inventory.toppakk,
            'total_units': inventory.total_units,
            'is_low_stock': inventory.is_low_stock,
            'formatted': {
                level: obj.format_level(level, getattr(inventory, level))
                for level in obj.available_levels()
            },
        }

    def get_prices(self, obj):
        prices = {}
        for level in obj.available_levels():
            price = obj.price_for_level(level)
            prices[level] = str(price) if price is not None else None
        return prices

    def get_units_per_level(self, obj):
        return {level: obj.units_per_level(level) for level in obj.available_levels()}

    def _merged(self, attrs, key):
        if key in attrs:
            return attrs[key]
        if self.instance is None:
            return None
        if key in TIERS:
            return self.instance.packaging_data()[key]
        return getattr(self.instance, key)

    def validate(self, attrs):
        candidate = {key: self._merged(attrs, key) for key in ('name', 'structure', *TIERS)}
        result = packaging.validate_product_configuration(candidate)
        errors = list(result['errors'])

        if candidate['structure'] == packaging.SIMPLE:
            if attrs.get(packaging.LEVEL_MELLOMPAKK) or attrs.get(packaging.LEVEL_TOPPAKK):
                errors.append('Simple products only have fpakk packaging; remove mellompakk and toppakk.')
            inventory = getattr(self.instance, 'inventory', None) if self.instance else None
            if inventory is not None and (inventory.mellompakk or inventory.toppakk):
                errors.append('Move mellompakk and toppakk stock to fpakk before making this product simple.')

        errors.extend(self._referenced_tier_errors(attrs, candidate['structure']))

        if errors:
            raise serializers.ValidationError({'non_field_errors': errors})
        return attrs

    def _referenced_tier_errors(self, attrs, structure):
        """Tiers about to be removed while a mixed pack still contains them"""
        if self.instance is None:
            return []
        removed = [level for level in TIERS if level in attrs and attrs[level] is None]
        if structure == packaging.SIMPLE:
            removed += [level for level in (packaging.LEVEL_MELLOMPAKK, packaging.LEVEL_TOPPAKK) if level not in removed]

        errors = []
        for level in removed:
            tier = self.instance._tier(level)
            if tier is None:
                continue
            if level == packaging.LEVEL_FPAKK:
                referenced = tier.inner_pack_contents.exists()
            elif level == packaging.LEVEL_MELLOMPAKK:
                referenced = tier.outer_pack_contents.exists()
            else:
                referenced = False
            if referenced:
                errors.append(f'{level.capitalize()} is part of a mixed pack; remove it from that pack first.')
        return errors

    def _save_tier(self, product, level, data):
        model = TIERS[level]
        if data is None:
            model.objects.filter(product=product).delete()
            return
        data = dict(data)
        contents = data.pop('contents', None)
        tier, _ = model.objects.update_or_create(product=product, defaults=data)
        if contents is not None:
            tier.contents.all().delete()
            for item in contents:
                tier.contents.create(**item)

    def _save_tiers(self, product, tiers):
        for level, data in tiers.items():
            self._save_tier(product, level, data)
        if product.structure == packaging.SIMPLE:
            for level in (packaging.LEVEL_TOPPAKK, packaging.LEVEL_MELLOMPAKK):
                TIERS[level].objects.filter(product=product).delete()

    def _pop_tiers(self, validated_data):
        return {level: validated_data.pop(level) for level in list(TIERS) if level in validated_data}

    def create(self, validated_data):
        from backend.inventory.models import Inventory

        tiers = self._pop_tiers(validated_data)
        with transaction.atomic():
            product = Product.objects.create(**validated_data)
            self._save_tiers(product, tiers)
            Inventory.objects.create(product=product)
        return Product.objects.get(pk=product.pk)

    def update(self, instance, validated_data):
        tiers = self._pop_tiers(validated_data)
        with transaction.atomic():
            for key, value in validated_data.items():
                setattr(instance, key, value)
            instance.save()
            self._save_tiers(instance, tiers)
        return Product.objects.get(pk=instance.pk)


class ProductConfigurationSerializer(serializers.Serializer):
    """Unsaved product definition, checked without touching the database"""
    name = serializers.CharField(required=False, allow_blank=True)
    structure = serializers.CharField(required=False, allow_blank=True)
    fpakk = serializers.DictField(required=False, allow_null=True)
    mellompakk = serializers.DictField(required=False, allow_null=True)
    toppakk = serializers.DictField(required=False, allow_null=True)
