"""
Test suite for Core module
Tests: Login, token claims, account provisioning, current user, audit logs, cache keys
"""
from io import StringIO
from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken
from backend.core.cache_utils import (
    get_cache_generation, bump_cache_generation, make_cache_key, PRODUCTS_NAMESPACE,
)
from backend.core.cache_signals import suspend_cache_signals
from backend.core.models import User, AuditLog
from backend.core.permissions import is_admin_user, is_approved_customer
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import create_audit_log
from backend.companies.models import Company


class LoginTests(TestCase):
    """Test JWT login and login-time provisioning"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def login(self, username, password='testpass123'):
        return self.client.post('/api/v1/auth/login/', {'username': username, 'password': password}, format='json')

    def test_customer_login_returns_tokens_and_user(self):
        """Test login response carries tokens, user data and role claims"""
        customer = TestDataFactory.create_customer()
        response = self.login(customer.username)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], User.ROLE_CUSTOMER)
        self.assertEqual(response.data['user']['company'], customer.company_id)

        token = AccessToken(response.data['access'])
        self.assertEqual(token['role'], User.ROLE_CUSTOMER)
        self.assertEqual(token['company_id'], customer.company_id)

    def test_pending_applicant_cannot_login(self):
        """Test accounts waiting for review are inactive"""
        application = TestDataFactory.create_application()
        response = self.login(application.user.username)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_wrong_password(self):
        customer = TestDataFactory.create_customer()
        response = self.login(customer.username, password='wrong-password')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_superuser_is_promoted_to_admin(self):
        """Test superusers get the admin role on first login"""
        superuser = TestDataFactory.create_user(is_superuser=True)
        response = self.login(superuser.username)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        superuser.refresh_from_db()
        self.assertEqual(superuser.role, User.ROLE_ADMIN)
        self.assertIsNone(superuser.company_id)
        self.assertTrue(response.data['user']['is_admin'])
        self.assertEqual(AccessToken(response.data['access'])['role'], User.ROLE_ADMIN)

    def test_existing_account_without_application_gets_default_company(self):
        """Test an active account created outside signup is provisioned with a default company"""
        user = TestDataFactory.create_user()
        response = self.login(user.username)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        user.refresh_from_db()
        self.assertEqual(user.role, User.ROLE_CUSTOMER)
        self.assertTrue(user.approved)
        company = user.company
        self.assertEqual(company.name, 'Default Company')
        self.assertEqual(company.org_number, '000000000')
        self.assertTrue(company.active)
        self.assertTrue(company.approved)
        self.assertTrue(AuditLog.objects.filter(action='account_provision', object_id=str(user.id)).exists())

    def test_provisioning_runs_once(self):
        user = TestDataFactory.create_user()
        self.login(user.username)
        self.login(user.username)
        self.assertEqual(Company.objects.filter(name='Default Company').count(), 1)

    def test_refresh_token(self):
        customer = TestDataFactory.create_customer()
        refresh = self.login(customer.username).data['refresh']
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_with_garbage_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserMeTests(TestCase):
    """Test the current user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_me_for_customer(self):
        customer = TestDataFactory.create_customer()
        self.client.authenticate_user(customer)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['company']['id'], customer.company_id)
        self.assertTrue(response.data['can_order'])
        self.assertFalse(response.data['can_access_admin'])

    def test_me_for_admin(self):
        admin = TestDataFactory.create_admin()
        self.client.authenticate_user(admin)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['company'])
        self.assertFalse(response.data['can_order'])
        self.assertTrue(response.data['can_access_admin'])

    def test_me_for_deactivated_company(self):
        """Test customers of a deactivated company cannot order"""
        company = TestDataFactory.create_company(active=False)
        customer = TestDataFactory.create_customer(company=company)
        self.client.authenticate_user(customer)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['can_order'])

    def test_me_requires_auth(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class PermissionHelperTests(TestCase):
    """Test role helpers"""

    def test_admin_checks(self):
        self.assertTrue(is_admin_user(TestDataFactory.create_admin()))
        self.assertTrue(is_admin_user(TestDataFactory.create_user(is_superuser=True)))
        self.assertFalse(is_admin_user(TestDataFactory.create_customer()))

    def test_approved_customer_checks(self):
        self.assertTrue(is_approved_customer(TestDataFactory.create_customer()))
        self.assertFalse(is_approved_customer(TestDataFactory.create_admin()))
        self.assertFalse(is_approved_customer(TestDataFactory.create_user()))

        customer = TestDataFactory.create_customer()
        customer.company.active = False
        customer.company.save()
        self.assertFalse(is_approved_customer(customer))


class AuditLogTests(TestCase):
    """Test audit log helper and endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_audit_log_requires_fields(self):
        self.assertIsNone(create_audit_log(action='update', model_name='Product'))

    def test_create_audit_log_with_user(self):
        log = create_audit_log(
            action='update',
            model_name='Product',
            object_id=1,
            user=self.admin,
            object_name='Pilsner',
            changes={'status': 'active'},
        )
        self.assertEqual(log.object_id, '1')
        self.assertEqual(log.user, self.admin)

    def test_list_and_filter(self):
        create_audit_log(action='update', model_name='Product', object_id=1, user=self.admin)
        create_audit_log(action='order_status', model_name='Order', object_id=2, user=self.admin)

        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/audit-logs/?model=Order')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['action'], 'order_status')

    def test_detail(self):
        log = create_audit_log(action='update', model_name='Product', object_id=1, user=self.admin)
        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], log.id)

    def test_customers_cannot_read_audit_logs(self):
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CacheKeyTests(TestCase):
    """Test generation-based cache keys"""

    def setUp(self):
        cache.clear()

    def test_bump_changes_keys(self):
        before = make_cache_key(PRODUCTS_NAMESPACE, 'admin', search='pils')
        generation = get_cache_generation(PRODUCTS_NAMESPACE)
        bump_cache_generation(PRODUCTS_NAMESPACE)
        self.assertEqual(get_cache_generation(PRODUCTS_NAMESPACE), generation + 1)
        self.assertNotEqual(before, make_cache_key(PRODUCTS_NAMESPACE, 'admin', search='pils'))

    def test_same_filters_same_key(self):
        self.assertEqual(
            make_cache_key(PRODUCTS_NAMESPACE, 'customer', a='1', b='2'),
            make_cache_key(PRODUCTS_NAMESPACE, 'customer', b='2', a='1'),
        )


class CacheSignalTests(TestCase):
    """Test cache invalidation signals"""

    def setUp(self):
        cache.clear()
        self.product = TestDataFactory.create_product(stock={'fpakk': 20})

    def test_inventory_save_bumps_products_generation(self):
        generation = get_cache_generation(PRODUCTS_NAMESPACE)
        self.product.inventory.fpakk = 15
        self.product.inventory.save()
        self.assertGreater(get_cache_generation(PRODUCTS_NAMESPACE), generation)

    def test_suspended_signals_leave_generation(self):
        generation = get_cache_generation(PRODUCTS_NAMESPACE)
        with suspend_cache_signals():
            self.product.inventory.fpakk = 15
            self.product.inventory.save()
        self.assertEqual(get_cache_generation(PRODUCTS_NAMESPACE), generation)


class ManagementCommandTests(TestCase):
    """Test portal management commands"""

    def test_create_portal_admin(self):
        out = StringIO()
        call_command('create_portal_admin', 'ops', '--email', 'ops@test.com', '--password', 'testpass123', stdout=out)
        user = User.objects.get(username='ops')
        self.assertEqual(user.role, User.ROLE_ADMIN)
        self.assertIsNone(user.company_id)
        self.assertIn('Created portal admin', out.getvalue())

    def test_promote_existing_account(self):
        user = TestDataFactory.create_user(username='ops')
        call_command('create_portal_admin', 'ops', stdout=StringIO())
        user.refresh_from_db()
        self.assertEqual(user.role, User.ROLE_ADMIN)
        self.assertTrue(user.approved)

    def test_customer_cannot_be_promoted(self):
        customer = TestDataFactory.create_customer()
        with self.assertRaises(CommandError):
            call_command('create_portal_admin', customer.username, stdout=StringIO())

    def test_check_inventory_flags_low_stock(self):
        TestDataFactory.create_product(name='Tonic Water', stock={'fpakk': 2})
        TestDataFactory.create_product(name='Pilsner', stock={'fpakk': 200})
        out = StringIO()
        call_command('check_inventory', '--low-only', stdout=out)
        self.assertIn('Tonic Water', out.getvalue())
        self.assertNotIn('Pilsner', out.getvalue())
        self.assertIn('Low stock: 1', out.getvalue())
