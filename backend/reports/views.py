import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Sum, Count, DecimalField
from django.db.models.functions import TruncMonth
from django.utils import timezone
from datetime import datetime, timedelta
from decimal import Decimal

from backend.catalog.filters import low_stock_q
from backend.companies.models import Company, CompanyApplication
from backend.core.cache_utils import get_cached_dashboard, cache_dashboard
from backend.core.permissions import IsPortalAdmin
from backend.inventory.models import Inventory
from backend.orders.models import Order, OrderItem

logger = logging.getLogger('backend.reports')

RECENT_ORDERS = 5
MONTHS_OF_SALES = 6
NEW_COMPANY_DAYS = 30


def _last_months(count):
    """(year, month) pairs for the last ``count`` months, oldest first, including this one"""
    today = timezone.localdate()
    year, month = today.year, today.month
    months = []
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    months.reverse()
    return months


def monthly_sales(orders, count=MONTHS_OF_SALES):
    months = _last_months(count)
    start = timezone.make_aware(datetime(months[0][0], months[0][1], 1))
    rows = orders.filter(created_at__gte=start).annotate(
        month=TruncMonth('created_at')
    ).values('month').annotate(
        total=Sum('total', output_field=DecimalField()),
        count=Count('id'),
    ).order_by('month')

    by_month = {}
    for row in rows:
        month = timezone.localtime(row['month']) if timezone.is_aware(row['month']) else row['month']
        by_month[(month.year, month.month)] = row

    result = []
    for year, month in months:
        row = by_month.get((year, month), {})
        result.append({
            'month': f"{year:04d}-{month:02d}",
            'total': str(row.get('total') or Decimal('0.00')),
            'orders': row.get('count', 0),
        })
    return result


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def dashboard(request):
    """Admin dashboard: revenue, order and customer KPIs"""
    cached_data, cache_key = get_cached_dashboard()
    if cached_data is not None:
        return Response(cached_data)

    orders = Order.objects.exclude(status=Order.STATUS_CANCELLED)

    total_revenue = orders.aggregate(
        total=Sum('total', output_field=DecimalField())
    )['total'] or Decimal('0.00')

    new_since = timezone.now() - timedelta(days=NEW_COMPANY_DAYS)
    recent_orders = Order.objects.select_related('company').order_by('-created_at')[:RECENT_ORDERS]

    data = {
        'total_revenue': str(total_revenue),
        'total_orders': orders.count(),
        'pending_orders': Order.objects.filter(status=Order.STATUS_PENDING).count(),
        'new_companies': Company.objects.filter(created_at__gte=new_since).count(),
        'active_companies': Company.objects.filter(active=True, approved=True).count(),
        'pending_applications': CompanyApplication.objects.filter(status=CompanyApplication.STATUS_PENDING).count(),
        'low_stock_products': Inventory.objects.filter(low_stock_q(prefix='')).count(),
        'recent_orders': [
            {
                'id': order.id,
                'order_number': order.order_number,
                'company_name': order.company.name,
                'status': order.status,
                'total': str(order.total),
                'created_at': order.created_at.isoformat(),
            }
            for order in recent_orders
        ],
        'monthly_sales': monthly_sales(orders),
    }
    cache_dashboard(cache_key, data)
    logger.debug(f"Dashboard computed: {data['total_orders']} orders, revenue {data['total_revenue']}")
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def top_products(request):
    """Products ranked by base units ordered, cancelled orders excluded"""
    try:
        limit = int(request.query_params.get('limit', 10))
    except ValueError:
        limit = 10
    if limit < 1:
        return Response({'error': 'limit must be positive'}, status=status.HTTP_400_BAD_REQUEST)

    rows = OrderItem.objects.exclude(order__status=Order.STATUS_CANCELLED).values(
        'product_id', 'product__name'
    ).annotate(
        units=Sum('units'),
        revenue=Sum('line_total', output_field=DecimalField()),
        order_count=Count('order', distinct=True),
    ).order_by('-units')[:limit]

    return Response([
        {
            'product_id': row['product_id'],
            'product_name': row['product__name'],
            'units': row['units'] or 0,
            'revenue': str(row['revenue'] or Decimal('0.00')),
            'orders': row['order_count'],
        }
        for row in rows
    ])
