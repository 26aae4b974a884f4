from django.contrib import admin
from .models import Inventory, StockReception


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ['product', 'fpakk', 'mellompakk', 'toppakk', 'total_units', 'updated_at']
    search_fields = ['product__name', 'product__sku']
    ordering = ['product__name']
    readonly_fields = ['total_units', 'updated_at']


@admin.register(StockReception)
class StockReceptionAdmin(admin.ModelAdmin):
    list_display = ['product', 'level', 'quantity', 'received_by', 'received_at']
    list_filter = ['level', 'received_at']
    search_fields = ['product__name', 'note']
    ordering = ['-received_at']
    # Receptions change stock, so record them through the API
    readonly_fields = ['product', 'level', 'quantity', 'received_by', 'received_at']
