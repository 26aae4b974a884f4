from rest_framework import serializers

from backend.catalog import packaging
from backend.catalog.models import Product
from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    display = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'level', 'quantity', 'display', 'unit_price', 'units', 'line_total']

    def get_display(self, obj):
        return obj.product.format_level(obj.level, obj.quantity)


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    company_name = serializers.CharField(source='company.name', read_only=True)
    placed_by_name = serializers.CharField(source='placed_by.username', read_only=True, default=None)
    total_units = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'company', 'company_name', 'placed_by', 'placed_by_name', 'status',
                  'shipping_address', 'subtotal', 'discount_percentage', 'discount_amount', 'total',
                  'currency', 'notes', 'total_units', 'items', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_total_units(self, obj):
        return sum(item.units for item in obj.items.all())


class OrderItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    level = serializers.ChoiceField(choices=packaging.LEVEL_CHOICES, default=packaging.LEVEL_FPAKK)
    quantity = serializers.IntegerField(min_value=1)


class OrderCreateSerializer(serializers.Serializer):
    items = OrderItemInputSerializer(many=True)
    shipping_address_id = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('An order needs at least one item.')
        seen = set()
        for item in value:
            key = (item['product'].pk, item['level'])
            if key in seen:
                raise serializers.ValidationError(
                    f"{item['product'].name} is listed twice as {item['level']}; combine the quantities."
                )
            seen.add(key)
        return value


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
