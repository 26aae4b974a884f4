from django.urls import path
from .views import (
    inventory_list, inventory_detail, inventory_low,
    stock_reception_list_create,
)

urlpatterns = [
    # Inventory endpoints
    path('inventory/', inventory_list, name='inventory-list'),
    path('inventory/low/', inventory_low, name='inventory-low'),
    path('inventory/<int:product_id>/', inventory_detail, name='inventory-detail'),

    # Stock reception (varemottak) endpoints
    path('stock-receptions/', stock_reception_list_create, name='stock-reception-list-create'),
]
