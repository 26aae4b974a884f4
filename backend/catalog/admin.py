from django.contrib import admin
from .models import Product, BaseUnit, InnerPack, InnerPackContent, OuterPack, OuterPackContent


class BaseUnitInline(admin.StackedInline):
    model = BaseUnit
    extra = 0


class InnerPackInline(admin.StackedInline):
    model = InnerPack
    extra = 0


class OuterPackInline(admin.StackedInline):
    model = OuterPack
    extra = 0
    readonly_fields = ['total_units']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'manufacturer', 'structure', 'status', 'updated_at']
    list_filter = ['status', 'structure', 'category', 'created_at']
    search_fields = ['name', 'sku', 'manufacturer', 'description']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [BaseUnitInline, InnerPackInline, OuterPackInline]


class InnerPackContentInline(admin.TabularInline):
    model = InnerPackContent
    extra = 1
    raw_id_fields = ['base_unit']


@admin.register(InnerPack)
class InnerPackAdmin(admin.ModelAdmin):
    list_display = ['product', 'pack_type', 'quantity_per_box', 'price_per_box']
    list_filter = ['pack_type']
    search_fields = ['product__name', 'ean']
    inlines = [InnerPackContentInline]


class OuterPackContentInline(admin.TabularInline):
    model = OuterPackContent
    extra = 1
    raw_id_fields = ['inner_pack']


@admin.register(OuterPack)
class OuterPackAdmin(admin.ModelAdmin):
    list_display = ['product', 'pack_type', 'pallet_type', 'boxes_per_pallet', 'total_units', 'price_per_pallet']
    list_filter = ['pack_type', 'pallet_type']
    search_fields = ['product__name']
    inlines = [OuterPackContentInline]
