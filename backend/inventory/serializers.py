from rest_framework import serializers

from backend.catalog import packaging
from backend.catalog.models import Product
from .models import Inventory, StockReception


class InventorySerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    structure = serializers.CharField(source='product.structure', read_only=True)
    total_units = serializers.IntegerField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)
    low_stock_levels = serializers.SerializerMethodField()
    formatted = serializers.SerializerMethodField()

    class Meta:
        model = Inventory
        fields = ['id', 'product', 'product_name', 'product_sku', 'structure',
                  'fpakk', 'mellompakk', 'toppakk', 'total_units',
                  'fpakk_threshold', 'mellompakk_threshold', 'toppakk_threshold',
                  'is_low_stock', 'low_stock_levels', 'formatted', 'updated_at']
        read_only_fields = ['product', 'updated_at']

    def get_low_stock_levels(self, obj):
        return obj.low_stock_levels()

    def get_formatted(self, obj):
        product = obj.product
        return {level: product.format_level(level, getattr(obj, level)) for level in product.available_levels()}

    def validate(self, attrs):
        product = self.instance.product if self.instance else None
        if product is not None and not product.is_hierarchical:
            if attrs.get('mellompakk') or attrs.get('toppakk'):
                raise serializers.ValidationError('Simple products can only hold fpakk stock.')
        return attrs


class StockReceptionSerializer(serializers.ModelSerializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    product_name = serializers.CharField(source='product.name', read_only=True)
    received_by_name = serializers.CharField(source='received_by.username', read_only=True, default=None)
    quantity = serializers.IntegerField(min_value=1)
    display = serializers.SerializerMethodField()

    class Meta:
        model = StockReception
        fields = ['id', 'product', 'product_name', 'level', 'quantity', 'display', 'note',
                  'received_by', 'received_by_name', 'received_at']
        read_only_fields = ['received_by', 'received_at']

    def get_display(self, obj):
        return packaging.format_packaging_level(obj.level, obj.quantity, obj.product.packaging_data())

    def validate(self, attrs):
        product = attrs['product']
        level = attrs.get('level', packaging.LEVEL_FPAKK)
        if level not in product.available_levels():
            raise serializers.ValidationError({'level': f'{product.name} is not stocked as {level}.'})
        return attrs
