"""
Test suite for Inventory module
Tests: Derived totals, low stock thresholds, stock movements, receptions and corrections
"""
from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework import status
from backend.catalog import packaging
from backend.catalog.filters import low_stock_q
from backend.catalog.models import OuterPack, Product
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory.exceptions import InsufficientStock, InvalidStockLevel
from backend.inventory.models import Inventory, StockReception
from backend.inventory.services import change_stock, get_inventory, receive_stock


class InventoryModelTests(TestCase):
    """Test Inventory derived values"""

    def test_total_units_scenario(self):
        product = TestDataFactory.create_product(
            structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30,
            stock={'fpakk': 5, 'mellompakk': 2, 'toppakk': 1},
        )
        self.assertEqual(product.inventory.total_units, 773)

    def test_total_units_follows_packaging_changes(self):
        """Test the total is recomputed when the pack size changes"""
        product = TestDataFactory.create_product(
            structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30,
            stock={'mellompakk': 2},
        )
        product.mellompakk.quantity_per_box = 12
        product.mellompakk.save()
        inventory = Inventory.objects.select_related('product__mellompakk', 'product__toppakk').get(product=product)
        self.assertEqual(inventory.total_units, 24)

    def test_simple_product_cannot_hold_pack_stock(self):
        product = TestDataFactory.create_product()
        inventory = product.inventory
        inventory.mellompakk = 3
        with self.assertRaises(ValidationError):
            inventory.save()

    def test_low_stock_levels(self):
        product = TestDataFactory.create_product(
            structure=packaging.HIERARCHICAL, stock={'fpakk': 50, 'mellompakk': 1, 'toppakk': 0},
        )
        inventory = product.inventory
        self.assertFalse(inventory.is_low_stock)

        inventory.mellompakk_threshold = 2
        inventory.save()
        self.assertEqual(inventory.low_stock_levels(), ['mellompakk'])
        self.assertTrue(inventory.is_low_stock)

    def test_zero_threshold_disables_check(self):
        product = TestDataFactory.create_product(stock={'fpakk': 0})
        inventory = product.inventory
        inventory.fpakk_threshold = 0
        inventory.save()
        self.assertFalse(inventory.is_low_stock)

    def test_missing_tier_ignored_by_low_stock_query(self):
        """Test the query and the model agree on tiers a product lacks"""
        product = TestDataFactory.create_product(structure=packaging.HIERARCHICAL, stock={'fpakk': 50})
        OuterPack.objects.filter(product=product).delete()
        Inventory.objects.filter(product=product).update(toppakk_threshold=1)

        inventory = Inventory.objects.select_related('product').get(product=product)
        self.assertEqual(inventory.low_stock_levels(), [])
        self.assertFalse(Inventory.objects.filter(low_stock_q(prefix='')).exists())
        self.assertFalse(Product.objects.filter(low_stock_q()).exists())


class StockServiceTests(TestCase):
    """Test change_stock and receive_stock"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.product = TestDataFactory.create_product(
            structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30,
        )

    def test_receive_stock(self):
        reception, inventory = receive_stock(self.product, 'mellompakk', 10, received_by=self.admin, note='Delivery 42')
        self.assertEqual(inventory.mellompakk, 10)
        self.assertEqual(inventory.total_units, 240)
        self.assertEqual(reception.received_by, self.admin)
        self.assertEqual(StockReception.objects.filter(product=self.product).count(), 1)

    def test_receive_zero_rejected(self):
        with self.assertRaises(ValueError):
            receive_stock(self.product, 'fpakk', 0)

    def test_change_stock_below_zero(self):
        change_stock(self.product, 'toppakk', 1)
        with self.assertRaises(InsufficientStock):
            change_stock(self.product, 'toppakk', -2)
        self.assertEqual(get_inventory(self.product).toppakk, 1)

    def test_change_stock_unknown_level(self):
        simple = TestDataFactory.create_product()
        with self.assertRaises(InvalidStockLevel):
            change_stock(simple, 'mellompakk', 1)

    def test_get_inventory_creates_missing_row(self):
        product = TestDataFactory.create_product()
        Inventory.objects.filter(product=product).delete()
        inventory = get_inventory(product)
        self.assertEqual(inventory.counts(), {'fpakk': 0, 'mellompakk': 0, 'toppakk': 0})


class InventoryAPITests(TestCase):
    """Test Inventory and stock reception endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.product = TestDataFactory.create_product(
            name='Pilsner 0.33', structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30,
            stock={'fpakk': 20},
        )

    def test_list_inventory(self):
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['product_name'], 'Pilsner 0.33')
        self.assertEqual(response.data[0]['formatted']['fpakk'], '20 stk')

    def test_get_inventory_detail(self):
        response = self.client.get(f'/api/v1/inventory/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_units'], 20)

    def test_correct_counts(self):
        response = self.client.patch(
            f'/api/v1/inventory/{self.product.id}/',
            {'fpakk': 5, 'mellompakk': 2, 'toppakk': 1},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_units'], 773)
        self.assertEqual(response.data['formatted']['toppakk'], '1 paller (30 kasser, 720 stk)')

        log = AuditLog.objects.get(action='stock_adjust')
        self.assertEqual(log.changes['fpakk'], {'from': 20, 'to': 5})
        self.assertEqual(log.changes['total_units'], 773)

    def test_total_units_is_read_only(self):
        response = self.client.patch(f'/api/v1/inventory/{self.product.id}/', {'total_units': 9999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_units'], 20)

    def test_negative_count_rejected(self):
        response = self.client.patch(f'/api/v1/inventory/{self.product.id}/', {'fpakk': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_simple_product_pack_count_rejected(self):
        simple = TestDataFactory.create_product()
        response = self.client.patch(f'/api/v1/inventory/{simple.id}/', {'mellompakk': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_low_stock_list(self):
        TestDataFactory.create_product(name='Tonic Water', stock={'fpakk': 2})
        response = self.client.get('/api/v1/inventory/low/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['product_name'] for row in response.data], ['Tonic Water'])
        self.assertEqual(response.data[0]['low_stock_levels'], ['fpakk'])

    def test_receive_stock_endpoint(self):
        response = self.client.post(
            '/api/v1/stock-receptions/',
            {'product': self.product.id, 'level': 'toppakk', 'quantity': 2, 'note': 'Container from Bergen'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['reception']['display'], '2 paller (60 kasser, 1440 stk)')
        self.assertEqual(response.data['inventory']['toppakk'], 2)
        self.assertEqual(response.data['inventory']['total_units'], 1460)
        self.assertTrue(AuditLog.objects.filter(action='stock_reception').exists())

        response = self.client.get(f'/api/v1/stock-receptions/?product_id={self.product.id}')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['received_by_name'], self.admin.username)

    def test_receive_unknown_level(self):
        simple = TestDataFactory.create_product()
        response = self.client.post(
            '/api/v1/stock-receptions/',
            {'product': simple.id, 'level': 'mellompakk', 'quantity': 2},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('level', response.data)

    def test_receive_zero_quantity(self):
        response = self.client.post(
            '/api/v1/stock-receptions/',
            {'product': self.product.id, 'level': 'fpakk', 'quantity': 0},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customers_cannot_manage_stock(self):
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
