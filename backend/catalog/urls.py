from django.urls import path
from .views import product_list_create, product_detail, product_validate, product_packaging

urlpatterns = [
    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/validate/', product_validate, name='product-validate'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/packaging/', product_packaging, name='product-packaging'),
]
