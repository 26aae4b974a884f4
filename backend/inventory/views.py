import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404

from backend.catalog.filters import low_stock_q
from backend.catalog.models import Product
from backend.core.permissions import IsPortalAdmin
from backend.core.utils import create_audit_log
from .exceptions import InventoryError
from .models import Inventory, StockReception
from .serializers import InventorySerializer, StockReceptionSerializer
from .services import get_inventory, receive_stock

logger = logging.getLogger(__name__)

COUNT_FIELDS = ['fpakk', 'mellompakk', 'toppakk', 'fpakk_threshold', 'mellompakk_threshold', 'toppakk_threshold']


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def inventory_list(request):
    """List inventory rows with optional filtering"""
    queryset = Inventory.objects.select_related(
        'product', 'product__fpakk', 'product__mellompakk', 'product__toppakk'
    ).order_by('product__name')

    product_id = request.query_params.get('product_id', None)
    structure = request.query_params.get('structure', None)
    search = request.query_params.get('search', '').strip()

    if product_id:
        queryset = queryset.filter(product_id=product_id)
    if structure:
        queryset = queryset.filter(product__structure=structure)
    if search:
        queryset = queryset.filter(product__name__icontains=search)

    serializer = InventorySerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def inventory_detail(request, product_id):
    """Retrieve or correct the stock counts and thresholds for a product"""
    product = get_object_or_404(Product, pk=product_id)

    if request.method == 'GET':
        return Response(InventorySerializer(get_inventory(product)).data)

    with transaction.atomic():
        inventory = get_inventory(product, lock=True)
        before = {field: getattr(inventory, field) for field in COUNT_FIELDS}
        serializer = InventorySerializer(inventory, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        inventory = serializer.save()

    after = {field: getattr(inventory, field) for field in COUNT_FIELDS}
    changes = {field: {'from': before[field], 'to': after[field]} for field in COUNT_FIELDS if before[field] != after[field]}
    if changes:
        create_audit_log(
            request=request,
            action='stock_adjust',
            model_name='Inventory',
            object_id=inventory.id,
            object_name=product.name,
            object_reference=product.sku,
            changes={**changes, 'total_units': inventory.total_units},
        )
        logger.info(f"Inventory for {product.name} corrected by {request.user.username}: {changes}")
    return Response(InventorySerializer(inventory).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def inventory_low(request):
    """Get inventory rows with at least one tier at or below its threshold"""
    queryset = Inventory.objects.select_related(
        'product', 'product__fpakk', 'product__mellompakk', 'product__toppakk'
    ).filter(low_stock_q(prefix='')).order_by('product__name')
    serializer = InventorySerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def stock_reception_list_create(request):
    """List stock receptions or receive new stock"""
    if request.method == 'GET':
        queryset = StockReception.objects.select_related('product', 'received_by')
        product_id = request.query_params.get('product_id', None)
        if product_id:
            queryset = queryset.filter(product_id=product_id)
        serializer = StockReceptionSerializer(queryset, many=True)
        return Response(serializer.data)

    serializer = StockReceptionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        reception, inventory = receive_stock(
            data['product'],
            data.get('level', 'fpakk'),
            data['quantity'],
            received_by=request.user,
            note=data.get('note', ''),
        )
    except InventoryError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='stock_reception',
        model_name='StockReception',
        object_id=reception.id,
        object_name=reception.product.name,
        object_reference=reception.product.sku,
        changes={
            'level': reception.level,
            'quantity': reception.quantity,
            'note': reception.note,
            'new_level_count': getattr(inventory, reception.level),
            'total_units': inventory.total_units,
        },
    )
    return Response({
        'reception': StockReceptionSerializer(reception).data,
        'inventory': InventorySerializer(inventory).data,
    }, status=status.HTTP_201_CREATED)
