from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'product_name', 'level', 'quantity', 'unit_price', 'units', 'line_total']
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'company', 'status', 'total', 'currency', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['order_number', 'company__name', 'company__org_number']
    ordering = ['-created_at']
    # Status changes move stock, so they go through the API
    readonly_fields = ['order_number', 'company', 'placed_by', 'status', 'subtotal', 'discount_percentage',
                       'discount_amount', 'total', 'currency', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
