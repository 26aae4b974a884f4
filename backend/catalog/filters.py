import django_filters
from django.db.models import Q, F

from . import packaging
from .models import Product


def low_stock_q(prefix='inventory__'):
    """Products with at least one tier at or below its (non-zero) threshold"""
    def tier(level):
        return Q(**{
            f'{prefix}{level}_threshold__gt': 0,
            f'{prefix}{level}__lte': F(f'{prefix}{level}_threshold'),
        })

    # Same tiers as Product.available_levels()
    product = '' if prefix else 'product__'

    def exists(level):
        return Q(**{f'{product}{level}__isnull': False})

    simple = Q(**{f'{product}structure': packaging.SIMPLE})
    hierarchical = Q(**{f'{product}structure': packaging.HIERARCHICAL})
    fpakk = tier(packaging.LEVEL_FPAKK) & (simple | exists(packaging.LEVEL_FPAKK))
    packs = hierarchical & (
        (exists(packaging.LEVEL_MELLOMPAKK) & tier(packaging.LEVEL_MELLOMPAKK))
        | (exists(packaging.LEVEL_TOPPAKK) & tier(packaging.LEVEL_TOPPAKK))
    )
    return fpakk | packs


class ProductFilter(django_filters.FilterSet):
    """Filter for Product model using django-filter"""

    # Basic search - searches across name, SKU, manufacturer, category and EANs
    search = django_filters.CharFilter(method='filter_search', label='Search')

    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    structure = django_filters.ChoiceFilter(choices=Product.STRUCTURE_CHOICES)
    status = django_filters.ChoiceFilter(choices=Product.STATUS_CHOICES)
    manufacturer = django_filters.CharFilter(field_name='manufacturer', lookup_expr='icontains')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'structure', 'status', 'manufacturer', 'low_stock']

    def filter_search(self, queryset, name, value):
        """Every word must appear in one of the searchable fields"""
        words = (value or '').split()
        for word in words:
            queryset = queryset.filter(
                Q(name__icontains=word) |
                Q(sku__icontains=word) |
                Q(manufacturer__icontains=word) |
                Q(category__icontains=word) |
                Q(fpakk__ean=word) |
                Q(mellompakk__ean=word)
            )
        return queryset.distinct() if words else queryset

    def filter_low_stock(self, queryset, name, value):
        if value is None:
            return queryset
        condition = low_stock_q()
        return queryset.filter(condition) if value else queryset.exclude(condition)
