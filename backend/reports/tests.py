"""
Test suite for Reports module
Tests: Admin dashboard, monthly sales, top products
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from backend.catalog import packaging
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.orders.models import Order
from backend.orders.services import change_order_status, place_order


class DashboardTests(TestCase):
    """Test dashboard endpoint"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.customer = TestDataFactory.create_customer()
        self.product = TestDataFactory.create_product(
            structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30,
            stock={'fpakk': 100, 'mellompakk': 10},
        )

    def test_empty_dashboard(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_revenue'], '0.00')
        self.assertEqual(response.data['total_orders'], 0)
        self.assertEqual(len(response.data['monthly_sales']), 6)
        self.assertEqual(response.data['recent_orders'], [])

    def test_dashboard_metrics(self):
        place_order(self.customer, [{'product': self.product, 'level': 'mellompakk', 'quantity': 2}])
        cancelled = place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 4}])
        change_order_status(cancelled, Order.STATUS_CANCELLED, self.admin)
        TestDataFactory.create_application()

        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['total_revenue']), Decimal('1200.00'))
        self.assertEqual(response.data['total_orders'], 1)
        self.assertEqual(response.data['pending_orders'], 1)
        self.assertEqual(response.data['pending_applications'], 1)
        self.assertEqual(response.data['active_companies'], 1)
        self.assertEqual(response.data['new_companies'], 1)
        self.assertEqual(len(response.data['recent_orders']), 2)
        self.assertEqual(Decimal(response.data['monthly_sales'][-1]['total']), Decimal('1200.00'))
        self.assertEqual(response.data['monthly_sales'][-1]['orders'], 1)

    def test_dashboard_refreshes_after_new_order(self):
        self.assertEqual(self.client.get('/api/v1/reports/dashboard/').data['total_orders'], 0)
        place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 1}])
        self.assertEqual(self.client.get('/api/v1/reports/dashboard/').data['total_orders'], 1)

    def test_low_stock_count(self):
        TestDataFactory.create_product(stock={'fpakk': 1})
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['low_stock_products'], 1)

    def test_customers_cannot_see_dashboard(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class TopProductsTests(TestCase):
    """Test top products report"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.customer = TestDataFactory.create_customer()

    def test_ranked_by_units(self):
        pilsner = TestDataFactory.create_product(
            name='Pilsner', structure=packaging.HIERARCHICAL, quantity_per_box=24, stock={'mellompakk': 5},
        )
        tonic = TestDataFactory.create_product(name='Tonic', stock={'fpakk': 50})
        place_order(self.customer, [
            {'product': pilsner, 'level': 'mellompakk', 'quantity': 1},
            {'product': tonic, 'level': 'fpakk', 'quantity': 30},
        ])

        response = self.client.get('/api/v1/reports/top-products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['product_name'] for row in response.data], ['Tonic', 'Pilsner'])
        self.assertEqual(response.data[0]['units'], 30)
        self.assertEqual(response.data[1]['units'], 24)

    def test_limit(self):
        response = self.client.get('/api/v1/reports/top-products/?limit=abc')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_non_positive_limit_rejected(self):
        for limit in (0, -1):
            response = self.client.get(f'/api/v1/reports/top-products/?limit={limit}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
