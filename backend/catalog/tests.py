"""
Comprehensive test suite for Catalog module
Tests: Packaging calculations, configuration validation, display formatting, product API
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase, SimpleTestCase
from rest_framework import status
from backend.catalog import packaging
from backend.catalog.models import Product, BaseUnit, InnerPack, InnerPackContent, OuterPack, OuterPackContent
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


def hierarchical_definition(quantity_per_box=24, boxes_per_pallet=30):
    return {
        'name': 'Pilsner 0.33',
        'structure': packaging.HIERARCHICAL,
        'fpakk': {'name': 'Pilsner bottle'},
        'mellompakk': {'quantity_per_box': quantity_per_box},
        'toppakk': {'boxes_per_pallet': boxes_per_pallet},
    }


class TotalUnitsTests(SimpleTestCase):
    """Test calculate_total_units"""

    def test_hierarchical_scenario(self):
        """Test 5 loose, 2 cases of 24 and 1 pallet of 30 cases"""
        inventory = {'fpakk': 5, 'mellompakk': 2, 'toppakk': 1}
        self.assertEqual(packaging.calculate_total_units(inventory, packaging.HIERARCHICAL, 24, 30), 773)

    def test_hierarchical_formula(self):
        for f, m, t, q, b in [(0, 0, 0, 0, 0), (1, 0, 0, 6, 4), (0, 3, 0, 6, 4), (0, 0, 2, 6, 4), (7, 3, 2, 12, 50)]:
            inventory = {'fpakk': f, 'mellompakk': m, 'toppakk': t}
            self.assertEqual(
                packaging.calculate_total_units(inventory, packaging.HIERARCHICAL, q, b),
                f + m * q + t * b * q,
            )

    def test_simple_ignores_packs(self):
        inventory = {'fpakk': 12, 'mellompakk': 99, 'toppakk': 99}
        self.assertEqual(packaging.calculate_total_units(inventory, packaging.SIMPLE, 24, 30), 12)

    def test_missing_counts_are_zero(self):
        self.assertEqual(packaging.calculate_total_units({'mellompakk': 2}, packaging.HIERARCHICAL, 24, None), 48)
        self.assertEqual(packaging.calculate_total_units(None, packaging.HIERARCHICAL, 24, 30), 0)

    def test_monotonic_in_each_count(self):
        base = {'fpakk': 3, 'mellompakk': 2, 'toppakk': 1}
        total = packaging.calculate_total_units(base, packaging.HIERARCHICAL, 6, 4)
        for level in packaging.LEVELS:
            bigger = dict(base, **{level: base[level] + 1})
            self.assertGreaterEqual(packaging.calculate_total_units(bigger, packaging.HIERARCHICAL, 6, 4), total)

    def test_outer_pack_total(self):
        self.assertEqual(packaging.calculate_outer_pack_total_units(30, 24), 720)
        self.assertEqual(packaging.calculate_outer_pack_total_units(None, 24), 0)

    def test_units_per_level(self):
        product = hierarchical_definition()
        self.assertEqual(packaging.units_per_level('fpakk', product), 1)
        self.assertEqual(packaging.units_per_level('mellompakk', product), 24)
        self.assertEqual(packaging.units_per_level('toppakk', product), 720)
        self.assertEqual(packaging.units_per_level('crate', product), 0)


class ProductConfigurationTests(SimpleTestCase):
    """Test validate_product_configuration"""

    def test_complete_hierarchical_product(self):
        result = packaging.validate_product_configuration(hierarchical_definition())
        self.assertEqual(result, {'valid': True, 'errors': []})

    def test_missing_toppakk(self):
        definition = hierarchical_definition()
        del definition['toppakk']
        result = packaging.validate_product_configuration(definition)
        self.assertFalse(result['valid'])
        self.assertTrue(any('Toppakk' in error for error in result['errors']))

    def test_name_and_structure_required(self):
        result = packaging.validate_product_configuration({})
        self.assertEqual(result['errors'], ['Product name is required', 'Product structure is required'])

    def test_zero_quantities(self):
        result = packaging.validate_product_configuration(hierarchical_definition(quantity_per_box=0, boxes_per_pallet=0))
        self.assertIn('Mellompakk must contain at least 1 unit.', result['errors'])
        self.assertIn('Toppakk must contain at least 1 pack.', result['errors'])

    def test_simple_product_needs_no_tiers(self):
        result = packaging.validate_product_configuration({'name': 'Tonic', 'structure': packaging.SIMPLE})
        self.assertTrue(result['valid'])


class FormatPackagingTests(SimpleTestCase):
    """Test format_packaging_level"""

    def test_formats(self):
        product = hierarchical_definition()
        self.assertEqual(packaging.format_packaging_level('fpakk', 5, product), '5 stk')
        self.assertEqual(packaging.format_packaging_level('mellompakk', 2, product), '2 kasser (48 stk)')
        self.assertEqual(packaging.format_packaging_level('toppakk', 1, product), '1 paller (30 kasser, 720 stk)')

    def test_missing_tier_falls_back_to_quantity(self):
        product = {'name': 'Tonic', 'structure': packaging.SIMPLE}
        self.assertEqual(packaging.format_packaging_level('mellompakk', 3, product), '3')


class ProductModelTests(TestCase):
    """Test Product pricing and levels"""

    def test_simple_product_levels(self):
        product = TestDataFactory.create_product()
        self.assertEqual(product.available_levels(), ['fpakk'])
        self.assertEqual(product.price_for_level('fpakk'), Decimal('25.00'))

    def test_price_falls_back_to_unit_price(self):
        product = TestDataFactory.create_product(structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30)
        self.assertEqual(product.available_levels(), ['fpakk', 'mellompakk', 'toppakk'])
        self.assertEqual(product.price_for_level('mellompakk'), Decimal('600.00'))
        self.assertEqual(product.price_for_level('toppakk'), Decimal('18000.00'))

    def test_explicit_tier_price_wins(self):
        product = TestDataFactory.create_product(
            structure=packaging.HIERARCHICAL, price_per_box=Decimal('550.00'), price_per_pallet=Decimal('15000.00'),
        )
        self.assertEqual(product.price_for_level('mellompakk'), Decimal('550.00'))
        self.assertEqual(product.price_for_level('toppakk'), Decimal('15000.00'))

    def test_outer_pack_total_units(self):
        product = TestDataFactory.create_product(structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30)
        self.assertEqual(product.toppakk.total_units, 720)


class ProductAPITests(TestCase):
    """Test Product API endpoints"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def payload(self, **overrides):
        data = {
            'name': 'Pilsner 0.33',
            'sku': 'PILS-033',
            'category': 'Beer',
            'manufacturer': 'Fjord Brewery',
            'status': Product.STATUS_ACTIVE,
            'structure': packaging.HIERARCHICAL,
            'fpakk': {'name': 'Pilsner bottle', 'size': '0.33 l', 'ean': '7040000000017', 'unit_price': '25.00'},
            'mellompakk': {'quantity_per_box': 24, 'ean': '7040000000024'},
            'toppakk': {'boxes_per_pallet': 30, 'pallet_type': 'eur'},
        }
        data.update(overrides)
        return data

    def test_create_hierarchical_product(self):
        response = self.client.post('/api/v1/products/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['units_per_level'], {'fpakk': 1, 'mellompakk': 24, 'toppakk': 720})
        self.assertEqual(response.data['prices']['mellompakk'], '600.00')
        self.assertEqual(response.data['inventory']['total_units'], 0)
        self.assertEqual(response.data['toppakk']['total_units'], 720)

        product = Product.objects.get(pk=response.data['id'])
        self.assertTrue(BaseUnit.objects.filter(product=product).exists())
        self.assertEqual(product.mellompakk.quantity_per_box, 24)
        self.assertEqual(product.toppakk.boxes_per_pallet, 30)

    def test_create_hierarchical_without_toppakk(self):
        data = self.payload()
        del data['toppakk']
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn(
            'Toppakk (outer case) details are required for hierarchical products',
            response.data['non_field_errors'],
        )
        self.assertFalse(Product.objects.exists())

    def test_create_with_zero_quantity_per_box(self):
        response = self.client.post('/api/v1/products/', self.payload(mellompakk={'quantity_per_box': 0}), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Mellompakk must contain at least 1 unit.', response.data['non_field_errors'])

    def test_simple_product_rejects_pack_tiers(self):
        response = self.client.post('/api/v1/products/', self.payload(structure=packaging.SIMPLE), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_simple_product(self):
        data = self.payload(structure=packaging.SIMPLE)
        del data['mellompakk']
        del data['toppakk']
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['mellompakk'])
        self.assertIsNone(response.data['toppakk'])
        self.assertEqual(response.data['units_per_level'], {'fpakk': 1})

    def test_update_quantity_per_box(self):
        product = TestDataFactory.create_product(structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30)
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'mellompakk': {'quantity_per_box': 12}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['units_per_level']['toppakk'], 360)
        self.assertEqual(InnerPack.objects.get(product=product).quantity_per_box, 12)

    def test_switch_to_simple_removes_pack_tiers(self):
        product = TestDataFactory.create_product(structure=packaging.HIERARCHICAL)
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'structure': packaging.SIMPLE}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(InnerPack.objects.filter(product=product).exists())
        self.assertFalse(OuterPack.objects.filter(product=product).exists())

    def test_switch_to_simple_blocked_by_pack_stock(self):
        product = TestDataFactory.create_product(structure=packaging.HIERARCHICAL, stock={'mellompakk': 2})
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'structure': packaging.SIMPLE}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_products_with_search(self):
        TestDataFactory.create_product(name='Pilsner 0.33')
        TestDataFactory.create_product(name='Tonic Water')
        response = self.client.get('/api/v1/products/?search=pils')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Pilsner 0.33')

    def test_list_cache_invalidated_on_change(self):
        TestDataFactory.create_product(name='Pilsner 0.33')
        self.assertEqual(self.client.get('/api/v1/products/').data['count'], 1)
        TestDataFactory.create_product(name='Tonic Water')
        self.assertEqual(self.client.get('/api/v1/products/').data['count'], 2)

    def test_low_stock_filter(self):
        TestDataFactory.create_product(name='Low', stock={'fpakk': 3})
        TestDataFactory.create_product(name='Plenty', stock={'fpakk': 300})
        response = self.client.get('/api/v1/products/?low_stock=true')
        self.assertEqual([row['name'] for row in response.data['results']], ['Low'])

    def test_customers_only_see_active_products(self):
        TestDataFactory.create_product(name='Active')
        TestDataFactory.create_product(name='Draft', status=Product.STATUS_DRAFT)
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.get('/api/v1/products/')
        self.assertEqual([row['name'] for row in response.data['results']], ['Active'])

    def test_customers_cannot_create_products(self):
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.post('/api/v1/products/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_pending_users_have_no_catalog_access(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.id).exists())

    def test_validate_endpoint(self):
        definition = hierarchical_definition()
        del definition['toppakk']
        response = self.client.post('/api/v1/products/validate/', definition, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['valid'])
        self.assertIn('Toppakk (outer case) details are required for hierarchical products', response.data['errors'])

        response = self.client.post('/api/v1/products/validate/', hierarchical_definition(), format='json')
        self.assertTrue(response.data['valid'])

    def test_packaging_endpoint(self):
        product = TestDataFactory.create_product(structure=packaging.HIERARCHICAL, quantity_per_box=24, boxes_per_pallet=30)
        response = self.client.get(f'/api/v1/products/{product.id}/packaging/?level=toppakk&quantity=2')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['units'], 1440)
        self.assertEqual(response.data['display'], '2 paller (60 kasser, 1440 stk)')
        self.assertEqual(response.data['line_total'], '36000.00')

    def test_packaging_endpoint_unknown_level(self):
        product = TestDataFactory.create_product()
        response = self.client.get(f'/api/v1/products/{product.id}/packaging/?level=toppakk')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_rejects_non_positive_limit(self):
        TestDataFactory.create_product()
        for limit in (0, -5):
            response = self.client.get(f'/api/v1/products/?limit={limit}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_remove_fpakk_used_in_mixed_pack(self):
        mixed = TestDataFactory.create_product(name='Mixed crate', structure=packaging.HIERARCHICAL)
        tonic = TestDataFactory.create_product(name='Tonic Water')
        InnerPackContent.objects.create(inner_pack=mixed.mellompakk, base_unit=tonic.fpakk, quantity=6)

        response = self.client.patch(f'/api/v1/products/{tonic.id}/', {'fpakk': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Fpakk is part of a mixed pack; remove it from that pack first.', response.data['non_field_errors'])
        self.assertTrue(BaseUnit.objects.filter(product=tonic).exists())

    def test_cannot_make_simple_while_mellompakk_in_mixed_pallet(self):
        pilsner = TestDataFactory.create_product(name='Pilsner', structure=packaging.HIERARCHICAL)
        pallet = TestDataFactory.create_product(name='Mixed pallet', structure=packaging.HIERARCHICAL)
        OuterPackContent.objects.create(outer_pack=pallet.toppakk, inner_pack=pilsner.mellompakk, quantity=10)

        response = self.client.patch(f'/api/v1/products/{pilsner.id}/', {'structure': packaging.SIMPLE}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Mellompakk is part of a mixed pack; remove it from that pack first.', response.data['non_field_errors'])
        self.assertTrue(InnerPack.objects.filter(product=pilsner).exists())
