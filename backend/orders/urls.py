from django.urls import path
from .views import order_list_create, order_detail, order_status, order_cancel

urlpatterns = [
    # Order endpoints
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/status/', order_status, name='order-status'),
    path('orders/<int:pk>/cancel/', order_cancel, name='order-cancel'),
]
