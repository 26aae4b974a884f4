"""
Comprehensive test suite for Companies module
Tests: Signup, application approval and rejection, company management, customer self-service
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from backend.core.models import User, AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.companies.exceptions import InvalidApplicationTransition, RejectionReasonRequired
from backend.companies.models import Company, CompanyApplication
from backend.companies.signals import application_approved, application_rejected
from backend.companies.workflow import (
    approve_application, reject_application, resolve_addresses, set_company_status,
)


class AddressResolutionTests(TestCase):
    """Test billing/delivery aliasing at signup"""

    def test_addresses_follow_visiting_by_default(self):
        visiting, billing, delivery = resolve_addresses(TestDataFactory.address())
        self.assertEqual(billing, visiting)
        self.assertEqual(delivery, visiting)

    def test_separate_billing_used_for_delivery(self):
        billing_address = TestDataFactory.address(street='Fakturaveien 2', zip_code='5003', city='Bergen')
        visiting, billing, delivery = resolve_addresses(
            TestDataFactory.address(), billing_address, use_visiting_as_billing=False,
        )
        self.assertEqual(billing['city'], 'Bergen')
        self.assertEqual(delivery, billing)
        self.assertEqual(visiting['city'], 'Oslo')

    def test_country_defaults(self):
        visiting, _, _ = resolve_addresses({'street': 'Storgata 1', 'zip': '0155', 'city': 'Oslo'})
        self.assertEqual(visiting['country'], 'Norway')


class ApplicationWorkflowTests(TestCase):
    """Test approve/reject state changes"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.application = TestDataFactory.create_application(company_name='Fjord Bar AS', org_number='923456789')

    def test_submitted_application_is_pending(self):
        self.assertEqual(self.application.status, CompanyApplication.STATUS_PENDING)
        user = self.application.user
        self.assertEqual(user.role, User.ROLE_PENDING)
        self.assertFalse(user.is_active)
        self.assertFalse(user.approved)
        self.assertIsNone(user.company)
        self.assertEqual(user.username, self.application.contact_email)

    def test_approve_creates_company_and_activates_user(self):
        company = approve_application(self.application, self.admin)

        self.assertEqual(self.application.status, CompanyApplication.STATUS_APPROVED)
        self.assertIsNotNone(self.application.reviewed_at)
        self.assertEqual(self.application.reviewed_by, self.admin)

        self.assertEqual(company.name, 'Fjord Bar AS')
        self.assertEqual(company.org_number, '923456789')
        self.assertTrue(company.active)
        self.assertTrue(company.approved)
        self.assertEqual(company.application, self.application)
        self.assertEqual(company.approved_by, self.admin)
        self.assertEqual(company.registered_at, self.application.submitted_at)
        self.assertEqual(len(company.shipping_addresses), 1)
        self.assertEqual(company.shipping_addresses[0]['id'], 'default')
        self.assertTrue(company.shipping_addresses[0]['is_default'])

        user = User.objects.get(pk=self.application.user_id)
        self.assertEqual(user.role, User.ROLE_CUSTOMER)
        self.assertEqual(user.company, company)
        self.assertTrue(user.approved)
        self.assertTrue(user.is_active)

    def test_approve_twice_keeps_one_company(self):
        """Test re-approving converges instead of duplicating the company"""
        first = approve_application(self.application, self.admin)
        approved_at = first.approved_at
        other_admin = TestDataFactory.create_admin()
        second = approve_application(self.application, other_admin)

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Company.objects.filter(application=self.application).count(), 1)
        self.assertEqual(second.approved_at, approved_at)
        self.assertEqual(second.approved_by, self.admin)
        self.assertEqual(self.application.reviewed_by, self.admin)

    def test_reject_with_reason(self):
        reject_application(self.application, self.admin, 'Incomplete documentation')

        self.assertEqual(self.application.status, CompanyApplication.STATUS_REJECTED)
        self.assertEqual(self.application.rejection_reason, 'Incomplete documentation')
        self.assertEqual(self.application.reviewed_by, self.admin)
        self.assertFalse(Company.objects.filter(application=self.application).exists())

        user = User.objects.get(pk=self.application.user_id)
        self.assertEqual(user.role, User.ROLE_REJECTED)
        self.assertFalse(user.is_active)
        self.assertFalse(user.approved)

    def test_reject_without_reason_changes_nothing(self):
        with self.assertRaises(RejectionReasonRequired):
            reject_application(self.application, self.admin, '   ')
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, CompanyApplication.STATUS_PENDING)

    def test_cannot_approve_rejected_application(self):
        reject_application(self.application, self.admin, 'Incomplete documentation')
        with self.assertRaises(InvalidApplicationTransition):
            approve_application(self.application, self.admin)
        self.assertFalse(Company.objects.exists())

    def test_cannot_reject_approved_application(self):
        approve_application(self.application, self.admin)
        with self.assertRaises(InvalidApplicationTransition):
            reject_application(self.application, self.admin, 'Changed my mind')
        user = User.objects.get(pk=self.application.user_id)
        self.assertEqual(user.role, User.ROLE_CUSTOMER)

    def test_approved_signal_fires_after_commit(self):
        received = []

        def handler(sender, application, company, reviewed_by, **kwargs):
            received.append((application.pk, company.pk, reviewed_by))

        application_approved.connect(handler)
        try:
            with self.captureOnCommitCallbacks(execute=True):
                company = approve_application(self.application, self.admin)
        finally:
            application_approved.disconnect(handler)
        self.assertEqual(received, [(self.application.pk, company.pk, self.admin)])

    def test_rejected_signal_fires_after_commit(self):
        received = []

        def handler(sender, application, reviewed_by, **kwargs):
            received.append(application.rejection_reason)

        application_rejected.connect(handler)
        try:
            with self.captureOnCommitCallbacks(execute=True):
                reject_application(self.application, self.admin, 'Incomplete documentation')
        finally:
            application_rejected.disconnect(handler)
        self.assertEqual(received, ['Incomplete documentation'])


class SignupAPITests(TestCase):
    """Test the public signup endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_signup_creates_pending_application(self):
        data = TestDataFactory.signup_data(contact_email='Owner@Example.com')
        response = self.client.post('/api/v1/auth/signup/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('message', response.data)
        self.assertEqual(response.data['application']['status'], CompanyApplication.STATUS_PENDING)

        application = CompanyApplication.objects.get(pk=response.data['application']['id'])
        self.assertEqual(application.contact_email, 'owner@example.com')
        self.assertEqual(application.billing_address, application.visiting_address)
        self.assertEqual(application.delivery_address, application.visiting_address)
        self.assertTrue(AuditLog.objects.filter(action='signup', object_id=str(application.id)).exists())

    def test_signup_with_separate_delivery_address(self):
        delivery = TestDataFactory.address(street='Lagerveien 9', zip_code='0668', city='Oslo')
        data = TestDataFactory.signup_data(use_billing_as_delivery=False, delivery_address=delivery)
        response = self.client.post('/api/v1/auth/signup/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        application = CompanyApplication.objects.get(pk=response.data['application']['id'])
        self.assertEqual(application.delivery_address['street'], 'Lagerveien 9')

    def test_signup_requires_delivery_address_when_not_aliased(self):
        data = TestDataFactory.signup_data(use_billing_as_delivery=False)
        response = self.client.post('/api/v1/auth/signup/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('delivery_address', response.data)

    def test_signup_requires_terms(self):
        response = self.client.post('/api/v1/auth/signup/', TestDataFactory.signup_data(accept_terms=False), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('accept_terms', response.data)

    def test_signup_rejects_duplicate_email(self):
        data = TestDataFactory.signup_data()
        self.client.post('/api/v1/auth/signup/', data, format='json')
        response = self.client.post('/api/v1/auth/signup/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('contact_email', response.data)
        self.assertEqual(CompanyApplication.objects.count(), 1)

    def test_signup_rejects_short_password(self):
        response = self.client.post('/api/v1/auth/signup/', TestDataFactory.signup_data(password='abc'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)


class ApplicationAPITests(TestCase):
    """Test admin application endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.application = TestDataFactory.create_application(company_name='Fjord Bar AS')

    def test_list_applications(self):
        TestDataFactory.create_application(company_name='Hotel Nord')
        response = self.client.get('/api/v1/applications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/applications/?search=fjord')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['company_name'], 'Fjord Bar AS')

    def test_filter_by_status(self):
        reject_application(TestDataFactory.create_application(), self.admin, 'Duplicate')
        response = self.client.get('/api/v1/applications/?status=pending')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['id'], self.application.id)

    def test_approve_endpoint(self):
        response = self.client.post(f'/api/v1/applications/{self.application.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['application']['status'], CompanyApplication.STATUS_APPROVED)
        self.assertEqual(response.data['company']['name'], 'Fjord Bar AS')
        self.assertEqual(response.data['application']['company_id'], response.data['company']['id'])
        self.assertTrue(AuditLog.objects.filter(action='application_approve').exists())

    def test_reject_endpoint(self):
        response = self.client.post(
            f'/api/v1/applications/{self.application.id}/reject/',
            {'reason': 'Incomplete documentation'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], CompanyApplication.STATUS_REJECTED)
        self.assertEqual(response.data['rejection_reason'], 'Incomplete documentation')

    def test_reject_endpoint_requires_reason(self):
        response = self.client.post(f'/api/v1/applications/{self.application.id}/reject/', {'reason': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, CompanyApplication.STATUS_PENDING)

    def test_approve_rejected_application_conflicts(self):
        reject_application(self.application, self.admin, 'Incomplete documentation')
        response = self.client.post(f'/api/v1/applications/{self.application.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_approved_applicant_can_login(self):
        self.client.post(f'/api/v1/applications/{self.application.id}/approve/')
        self.client.logout()
        response = self.client.post(
            '/api/v1/auth/login/',
            {'username': self.application.contact_email, 'password': 'testpass123'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['role'], User.ROLE_CUSTOMER)

    def test_customers_cannot_review(self):
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.post(f'/api/v1/applications/{self.application.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CompanyAPITests(TestCase):
    """Test admin company management"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.company = TestDataFactory.create_company(name='Nordlys Cafe')
        self.customer = TestDataFactory.create_customer(company=self.company)

    def test_list_companies(self):
        TestDataFactory.create_company(name='Closed Bar', active=False)
        response = self.client.get('/api/v1/companies/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/companies/?active=true')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['user_count'], 1)

    def test_update_discount(self):
        response = self.client.patch(f'/api/v1/companies/{self.company.id}/', {'discount_percentage': '12.50'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.company.refresh_from_db()
        self.assertEqual(self.company.discount_percentage, Decimal('12.50'))

    def test_discount_out_of_range(self):
        response = self.client.patch(f'/api/v1/companies/{self.company.id}/', {'discount_percentage': '120'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_two_default_shipping_addresses_rejected(self):
        addresses = [
            {'id': 'a', 'label': 'Main', 'is_default': True},
            {'id': 'b', 'label': 'Back door', 'is_default': True},
        ]
        response = self.client.patch(f'/api/v1/companies/{self.company.id}/', {'shipping_addresses': addresses}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_deactivate_company(self):
        response = self.client.post(f'/api/v1/companies/{self.company.id}/status/', {'active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['active'])
        self.assertFalse(response.data['approved'])
        self.assertEqual(response.data['status_label'], 'Deactivated')

    def test_set_company_status_reactivates(self):
        set_company_status(self.company, False, self.admin)
        set_company_status(self.company, True, self.admin)
        self.company.refresh_from_db()
        self.assertTrue(self.company.active)
        self.assertTrue(self.company.approved)


class CompanyMeTests(TestCase):
    """Test customer view of their own company"""

    def setUp(self):
        self.company = TestDataFactory.create_company(name='Nordlys Cafe')
        self.customer = TestDataFactory.create_customer(company=self.company)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)

    def test_get_own_company(self):
        response = self.client.get('/api/v1/companies/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Nordlys Cafe')
        self.assertNotIn('admin_notes', response.data)

    def test_customer_cannot_change_discount(self):
        response = self.client.patch('/api/v1/companies/me/', {'discount_percentage': '50', 'contact_phone': '+4799999999'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.company.refresh_from_db()
        self.assertEqual(self.company.discount_percentage, Decimal('0.00'))
        self.assertEqual(self.company.contact_phone, '+4799999999')

    def test_deactivated_company_is_read_only(self):
        set_company_status(self.company, False, None)
        response = self.client.patch('/api/v1/companies/me/', {'contact_phone': '+4799999999'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_has_no_company(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/companies/me/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
