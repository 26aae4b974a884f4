from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from backend.core.permissions import (
    IsApprovedCustomer, IsPortalAdmin, IsPortalAdminOrApprovedCustomer,
    is_admin_user, is_approved_customer,
)
from backend.core.utils import create_audit_log
from backend.inventory.exceptions import InventoryError, InsufficientStock
from .exceptions import InvalidOrderTransition, OrderError, OrderNotAllowed
from .models import Order
from .serializers import OrderSerializer, OrderCreateSerializer, OrderStatusSerializer
from .services import place_order, change_order_status, cancel_order


def order_queryset(user):
    """Orders visible to ``user``: all for admins, their own company's for customers"""
    queryset = Order.objects.select_related('company', 'placed_by').prefetch_related(
        'items__product__fpakk', 'items__product__mellompakk', 'items__product__toppakk',
    )
    if is_admin_user(user):
        return queryset
    return queryset.filter(company_id=user.company_id)


def _status_audit(request, order, old_status):
    create_audit_log(
        request=request,
        action='order_status',
        model_name='Order',
        object_id=order.id,
        object_name=order.company.name,
        object_reference=order.order_number,
        changes={'status': {'from': old_status, 'to': order.status}},
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPortalAdminOrApprovedCustomer])
def order_list_create(request):
    """List orders or place a new order"""
    if request.method == 'GET':
        queryset = order_queryset(request.user)

        status_filter = request.query_params.get('status', None)
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        company_id = request.query_params.get('company_id', None)
        if company_id and is_admin_user(request.user):
            queryset = queryset.filter(company_id=company_id)

        date_from = request.query_params.get('date_from', None)
        date_to = request.query_params.get('date_to', None)
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)

        serializer = OrderSerializer(queryset, many=True)
        return Response(serializer.data)

    # POST
    if not is_approved_customer(request.user):
        return Response({'error': 'Only approved customers can place orders.'}, status=status.HTTP_403_FORBIDDEN)

    serializer = OrderCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        order = place_order(
            request.user,
            data['items'],
            shipping_address_id=data.get('shipping_address_id') or None,
            notes=data.get('notes', ''),
        )
    except InsufficientStock as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    except OrderNotAllowed as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except (OrderError, InventoryError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='order_create',
        model_name='Order',
        object_id=order.id,
        object_name=order.company.name,
        object_reference=order.order_number,
        changes={
            'items': [
                {'product': item.product_name, 'level': item.level, 'quantity': item.quantity}
                for item in order.items.all()
            ],
            'total': str(order.total),
        },
    )
    return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdminOrApprovedCustomer])
def order_detail(request, pk):
    """Retrieve an order"""
    order = get_object_or_404(order_queryset(request.user), pk=pk)
    serializer = OrderSerializer(order)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def order_status(request, pk):
    """Move an order to its next status"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = order.status
    try:
        change_order_status(order, serializer.validated_data['status'], request.user)
    except InvalidOrderTransition as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    except (OrderError, InventoryError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    _status_audit(request, order, old_status)
    return Response(OrderSerializer(order_queryset(request.user).get(pk=order.pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsApprovedCustomer])
def order_cancel(request, pk):
    """Cancel one of the customer's own pending orders"""
    order = get_object_or_404(order_queryset(request.user), pk=pk)

    old_status = order.status
    try:
        cancel_order(order, request.user)
    except InvalidOrderTransition as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    except OrderNotAllowed as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    _status_audit(request, order, old_status)
    return Response(OrderSerializer(order_queryset(request.user).get(pk=order.pk)).data)
