from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.paginator import Paginator
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404

from backend.core.cache_utils import get_cached_products_list, cache_products_list
from backend.core.permissions import IsPortalAdmin, IsPortalAdminOrApprovedCustomer, is_admin_user
from backend.core.utils import create_audit_log
from . import packaging
from .filters import ProductFilter
from .models import Product
from .serializers import ProductSerializer, ProductConfigurationSerializer


def product_queryset(user):
    """Products visible to ``user``: everything for admins, active products for customers"""
    queryset = Product.objects.select_related('fpakk', 'mellompakk', 'toppakk', 'inventory').prefetch_related(
        'mellompakk__contents__base_unit', 'toppakk__contents__inner_pack__product',
    )
    if not is_admin_user(user):
        queryset = queryset.filter(status=Product.STATUS_ACTIVE)
    return queryset


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPortalAdminOrApprovedCustomer])
def product_list_create(request):
    """List products or create a new product"""
    if request.method == 'GET':
        scope = 'admin' if is_admin_user(request.user) else 'customer'
        filters_dict = {key: request.query_params.get(key) for key in request.query_params}
        cached_data, cache_key = get_cached_products_list(scope, filters_dict)
        if cached_data is not None:
            return Response(cached_data)

        # Use django-filter for filtering
        filterset = ProductFilter(request.query_params, queryset=product_queryset(request.user))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('name', 'id')

        # Pagination: limit 50 per page
        try:
            page = int(request.query_params.get('page', 1))
            limit = min(int(request.query_params.get('limit', 50)), 200)
        except ValueError:
            return Response({'error': 'page and limit must be integers'}, status=status.HTTP_400_BAD_REQUEST)
        if page < 1 or limit < 1:
            return Response({'error': 'page and limit must be positive'}, status=status.HTTP_400_BAD_REQUEST)

        paginator = Paginator(queryset, limit)
        page_obj = paginator.get_page(page)
        serializer = ProductSerializer(page_obj, many=True)
        data = {
            'results': serializer.data,
            'count': paginator.count,
            'next': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
            'page': page_obj.number,
            'page_size': limit,
            'total_pages': paginator.num_pages,
        }
        cache_products_list(cache_key, data)
        return Response(data)

    # POST
    if not is_admin_user(request.user):
        return Response({'error': 'Admin access required.'}, status=status.HTTP_403_FORBIDDEN)
    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        product = serializer.save()
        create_audit_log(
            request=request,
            action='create',
            model_name='Product',
            object_id=product.id,
            object_name=product.name,
            object_reference=product.sku,
            changes={'name': product.name, 'structure': product.structure, 'status': product.status},
        )
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsPortalAdminOrApprovedCustomer])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(product_queryset(request.user), pk=pk)

    if request.method == 'GET':
        serializer = ProductSerializer(product)
        return Response(serializer.data)

    if not is_admin_user(request.user):
        return Response({'error': 'Admin access required.'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            try:
                product = serializer.save()
            except ProtectedError:
                return Response(
                    {'error': 'Packaging is referenced by mixed packs of other products.'},
                    status=status.HTTP_409_CONFLICT,
                )
            create_audit_log(
                request=request,
                action='update',
                model_name='Product',
                object_id=product.id,
                object_name=product.name,
                object_reference=product.sku,
                changes={key: str(value) for key, value in request.data.items() if key not in packaging.LEVELS},
            )
            return Response(ProductSerializer(product).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    product_id, product_name, product_sku = product.id, product.name, product.sku
    try:
        product.delete()
    except ProtectedError:
        return Response(
            {'error': 'Product is referenced by orders or mixed packs. Archive it instead.'},
            status=status.HTTP_409_CONFLICT,
        )
    create_audit_log(
        request=request,
        action='delete',
        model_name='Product',
        object_id=product_id,
        object_name=product_name,
        object_reference=product_sku,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def product_validate(request):
    """Check a product definition without saving it"""
    serializer = ProductConfigurationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(packaging.validate_product_configuration(serializer.validated_data))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdminOrApprovedCustomer])
def product_packaging(request, pk):
    """Units and display text for a quantity at one packaging level"""
    product = get_object_or_404(product_queryset(request.user), pk=pk)
    level = request.query_params.get('level', packaging.LEVEL_FPAKK)
    if level not in product.available_levels():
        return Response({'error': f'{product.name} is not sold as {level}.'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        quantity = int(request.query_params.get('quantity', 1))
    except ValueError:
        return Response({'error': 'quantity must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    if quantity < 0:
        return Response({'error': 'quantity cannot be negative'}, status=status.HTTP_400_BAD_REQUEST)

    price = product.price_for_level(level)
    return Response({
        'product_id': product.id,
        'level': level,
        'quantity': quantity,
        'units': quantity * product.units_per_level(level),
        'display': product.format_level(level, quantity),
        'unit_price': str(price) if price is not None else None,
        'line_total': str(price * quantity) if price is not None else None,
    })
