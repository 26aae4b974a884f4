"""
Comprehensive test suite for Orders module
Tests: Order placement, stock deduction, discounts, status transitions, cancellation
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from backend.catalog import packaging
from backend.catalog.models import Product
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory.exceptions import InsufficientStock
from backend.inventory.models import Inventory
from backend.orders.exceptions import InvalidOrderItem, InvalidOrderTransition, OrderNotAllowed
from backend.orders.models import Order
from backend.orders.services import cancel_order, change_order_status, place_order


class PlaceOrderTests(TestCase):
    """Test place_order service"""

    def setUp(self):
        self.company = TestDataFactory.create_company(discount_percentage=Decimal('10.00'))
        self.customer = TestDataFactory.create_customer(company=self.company)
        self.product = TestDataFactory.create_product(
            structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30,
            stock={'fpakk': 10, 'mellompakk': 5, 'toppakk': 1},
        )

    def inventory(self):
        return Inventory.objects.get(product=self.product)

    def test_place_order_deducts_stock_at_level(self):
        order = place_order(self.customer, [{'product': self.product, 'level': 'mellompakk', 'quantity': 2}])

        inventory = self.inventory()
        self.assertEqual(inventory.mellompakk, 3)
        self.assertEqual(inventory.fpakk, 10)
        self.assertEqual(order.status, Order.STATUS_PENDING)

        item = order.items.get()
        self.assertEqual(item.unit_price, Decimal('600.00'))
        self.assertEqual(item.units, 48)
        self.assertEqual(item.line_total, Decimal('1200.00'))

    def test_discount_applied(self):
        order = place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 4}])
        self.assertEqual(order.subtotal, Decimal('100.00'))
        self.assertEqual(order.discount_amount, Decimal('10.00'))
        self.assertEqual(order.total, Decimal('90.00'))
        self.assertEqual(order.currency, 'NOK')

    def test_default_shipping_address(self):
        order = place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 1}])
        self.assertEqual(order.shipping_address['id'], 'default')

    def test_unknown_shipping_address(self):
        with self.assertRaises(InvalidOrderItem):
            place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 1}], shipping_address_id='nope')

    def test_insufficient_stock_rolls_back(self):
        other = TestDataFactory.create_product(stock={'fpakk': 100})
        with self.assertRaises(InsufficientStock):
            place_order(self.customer, [
                {'product': other, 'level': 'fpakk', 'quantity': 5},
                {'product': self.product, 'level': 'toppakk', 'quantity': 2},
            ])
        self.assertFalse(Order.objects.exists())
        self.assertEqual(Inventory.objects.get(product=other).fpakk, 100)

    def test_draft_product_not_orderable(self):
        self.product.status = Product.STATUS_DRAFT
        self.product.save()
        with self.assertRaises(InvalidOrderItem):
            place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 1}])

    def test_level_not_sold(self):
        simple = TestDataFactory.create_product(stock={'fpakk': 10})
        with self.assertRaises(InvalidOrderItem):
            place_order(self.customer, [{'product': simple, 'level': 'mellompakk', 'quantity': 1}])

    def test_deactivated_company_cannot_order(self):
        self.company.active = False
        self.company.save()
        with self.assertRaises(OrderNotAllowed):
            place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 1}])

    def test_admin_cannot_order(self):
        with self.assertRaises(OrderNotAllowed):
            place_order(TestDataFactory.create_admin(), [{'product': self.product, 'level': 'fpakk', 'quantity': 1}])


class OrderStatusTests(TestCase):
    """Test status transitions and restocking"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_customer()
        self.product = TestDataFactory.create_product(
            structure=packaging.HIERARCHICAL, stock={'fpakk': 10, 'mellompakk': 5},
        )
        self.order = place_order(self.customer, [
            {'product': self.product, 'level': 'fpakk', 'quantity': 4},
            {'product': self.product, 'level': 'mellompakk', 'quantity': 2},
        ])

    def test_forward_transitions(self):
        for new_status in (Order.STATUS_PROCESSING, Order.STATUS_SHIPPED, Order.STATUS_DELIVERED):
            change_order_status(self.order, new_status, self.admin)
            self.assertEqual(self.order.status, new_status)

    def test_cannot_skip_or_go_back(self):
        with self.assertRaises(InvalidOrderTransition):
            change_order_status(self.order, Order.STATUS_SHIPPED, self.admin)
        change_order_status(self.order, Order.STATUS_PROCESSING, self.admin)
        with self.assertRaises(InvalidOrderTransition):
            change_order_status(self.order, Order.STATUS_PENDING, self.admin)

    def test_cancel_restores_stock(self):
        change_order_status(self.order, Order.STATUS_CANCELLED, self.admin)
        inventory = Inventory.objects.get(product=self.product)
        self.assertEqual(inventory.fpakk, 10)
        self.assertEqual(inventory.mellompakk, 5)

    def test_cancelled_is_terminal(self):
        change_order_status(self.order, Order.STATUS_CANCELLED, self.admin)
        with self.assertRaises(InvalidOrderTransition):
            change_order_status(self.order, Order.STATUS_CANCELLED, self.admin)
        self.assertEqual(Inventory.objects.get(product=self.product).fpakk, 10)

    def test_shipped_cannot_be_cancelled(self):
        change_order_status(self.order, Order.STATUS_PROCESSING, self.admin)
        change_order_status(self.order, Order.STATUS_SHIPPED, self.admin)
        with self.assertRaises(InvalidOrderTransition):
            change_order_status(self.order, Order.STATUS_CANCELLED, self.admin)

    def test_customer_cancel_only_pending(self):
        change_order_status(self.order, Order.STATUS_PROCESSING, self.admin)
        with self.assertRaises(InvalidOrderTransition):
            cancel_order(self.order, self.customer)

    def test_customer_cannot_cancel_other_company_order(self):
        stranger = TestDataFactory.create_customer()
        with self.assertRaises(OrderNotAllowed):
            cancel_order(self.order, stranger)


class OrderAPITests(TestCase):
    """Test Order API endpoints"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)
        self.product = TestDataFactory.create_product(
            name='Pilsner 0.33', structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30,
            stock={'fpakk': 10, 'mellompakk': 5},
        )

    def test_place_order(self):
        data = {'items': [{'product': self.product.id, 'level': 'mellompakk', 'quantity': 2}], 'notes': 'Back door'}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['order_number'].startswith('ORD-'))
        self.assertEqual(response.data['total_units'], 48)
        self.assertEqual(response.data['items'][0]['display'], '2 kasser (48 stk)')
        self.assertEqual(Inventory.objects.get(product=self.product).mellompakk, 3)
        self.assertTrue(AuditLog.objects.filter(action='order_create').exists())

    def test_place_order_insufficient_stock(self):
        data = {'items': [{'product': self.product.id, 'level': 'mellompakk', 'quantity': 6}]}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_place_order_without_items(self):
        response = self.client.post('/api/v1/orders/', {'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_lines_rejected(self):
        line = {'product': self.product.id, 'level': 'fpakk', 'quantity': 1}
        response = self.client.post('/api/v1/orders/', {'items': [line, line]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_cannot_place_orders(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        data = {'items': [{'product': self.product.id, 'level': 'fpakk', 'quantity': 1}]}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_customers_see_only_their_orders(self):
        place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 1}])
        other = TestDataFactory.create_customer()
        other_order = place_order(other, [{'product': self.product, 'level': 'fpakk', 'quantity': 1}])

        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = self.client.get(f'/api/v1/orders/{other_order.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cancel_endpoint(self):
        order = place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 3}])
        response = self.client.post(f'/api/v1/orders/{order.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.STATUS_CANCELLED)
        self.assertEqual(Inventory.objects.get(product=self.product).fpakk, 10)

    def test_admin_status_endpoint(self):
        order = place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 1}])
        self.client.authenticate_user(TestDataFactory.create_admin())

        response = self.client.post(f'/api/v1/orders/{order.id}/status/', {'status': 'processing'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.STATUS_PROCESSING)

        response = self.client.post(f'/api/v1/orders/{order.id}/status/', {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(AuditLog.objects.filter(action='order_status').count(), 1)

    def test_ordered_product_cannot_be_deleted(self):
        place_order(self.customer, [{'product': self.product, 'level': 'fpakk', 'quantity': 1}])
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.delete(f'/api/v1/products/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Product.objects.filter(pk=self.product.id).exists())
