"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.catalog import packaging
from backend.catalog.models import Product, BaseUnit, InnerPack, OuterPack
from backend.companies.models import Company
from backend.companies.workflow import submit_application, default_shipping_address
from backend.inventory.models import Inventory
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role=User.ROLE_PENDING,
                    company=None, approved=False, is_active=True, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            company=company,
            approved=approved,
            is_active=is_active,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_admin(username=None, password='testpass123'):
        """Create a portal admin"""
        return TestDataFactory.create_user(
            username=username or f'admin_{TestDataFactory.random_string(6)}',
            password=password,
            role=User.ROLE_ADMIN,
            approved=True,
        )

    @staticmethod
    def address(street='Storgata 1', zip_code='0155', city='Oslo'):
        return {'street': street, 'zip': zip_code, 'city': city, 'country': 'Norway'}

    @staticmethod
    def signup_data(**overrides):
        """A valid signup payload"""
        suffix = TestDataFactory.random_string(6).lower()
        data = {
            'company_name': f'Bar {suffix}',
            'org_number': '912345678',
            'company_type': 'bar',
            'contact_email': f'owner_{suffix}@test.com',
            'contact_phone': '+4791234567',
            'first_name': 'Kari',
            'last_name': 'Nordmann',
            'visiting_address': TestDataFactory.address(),
            'use_visiting_as_billing': True,
            'use_billing_as_delivery': True,
            'comments': '',
            'password': 'testpass123',
            'accept_terms': True,
        }
        data.update(overrides)
        return data

    @staticmethod
    def create_application(**overrides):
        """Submit a pending application through the signup workflow"""
        return submit_application(TestDataFactory.signup_data(**overrides))

    @staticmethod
    def create_company(name=None, active=True, discount_percentage=Decimal('0.00')):
        """Create an approved company with one default delivery address"""
        if not name:
            name = f'Company_{TestDataFactory.random_string(6)}'
        now = timezone.now()
        return Company.objects.create(
            name=name,
            org_number='987654321',
            company_type='restaurant',
            contact_email=f'{name.lower()}@test.com',
            visiting_address=TestDataFactory.address(),
            billing_address=TestDataFactory.address(),
            shipping_addresses=[default_shipping_address(TestDataFactory.address())],
            discount_percentage=discount_percentage,
            active=active,
            approved=active,
            registered_at=now,
            approved_at=now,
        )

    @staticmethod
    def create_customer(company=None, username=None, password='testpass123'):
        """Create an approved customer user; creates a company if none is given"""
        if company is None:
            company = TestDataFactory.create_company()
        return TestDataFactory.create_user(
            username=username,
            password=password,
            role=User.ROLE_CUSTOMER,
            company=company,
            approved=True,
        )

    @staticmethod
    def create_product(name=None, sku=None, structure=packaging.SIMPLE, status=Product.STATUS_ACTIVE,
                       unit_price=Decimal('25.00'), quantity_per_box=24, boxes_per_pallet=32,
                       price_per_box=None, price_per_pallet=None, stock=None):
        """
        Create a test product with its tiers and an inventory row.

        Hierarchical products get all three tiers. ``stock`` maps levels to
        counts, e.g. ``{'fpakk': 5, 'mellompakk': 2}``.
        """
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'

        product = Product.objects.create(name=name, sku=sku, structure=structure, status=status)
        BaseUnit.objects.create(product=product, name=f'{name} 0.33 l', size='0.33 l', unit_price=unit_price)
        if structure == packaging.HIERARCHICAL:
            InnerPack.objects.create(product=product, quantity_per_box=quantity_per_box, price_per_box=price_per_box)
            OuterPack.objects.create(product=product, boxes_per_pallet=boxes_per_pallet, price_per_pallet=price_per_pallet)

        Inventory.objects.create(product=product, **(stock or {}))
        return Product.objects.select_related('fpakk', 'mellompakk', 'toppakk', 'inventory').get(pk=product.pk)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
