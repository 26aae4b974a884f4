"""
Company application workflow.

An application moves exactly once from ``pending`` to ``approved`` or
``rejected``. Approval writes three records (company, user, application) and
rejection writes two (application, user); each review runs in a single
transaction with the application row locked so concurrent reviews serialize.
Re-running a review that already happened converges to the same state.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from backend.core.models import User
from .exceptions import InvalidApplicationTransition, RejectionReasonRequired
from .models import Company, CompanyApplication
from .signals import application_approved, application_rejected, application_submitted

logger = logging.getLogger(__name__)

DEFAULT_SHIPPING_ADDRESS_ID = 'default'
DEFAULT_SHIPPING_ADDRESS_LABEL = 'Default Delivery Address'
ADDRESS_FIELDS = ('street', 'zip', 'city', 'country')


def normalize_address(address):
    """Keep the known address fields and fill in the default country"""
    address = address or {}
    normalized = {field: (address.get(field) or '').strip() for field in ADDRESS_FIELDS}
    if not normalized['country']:
        normalized['country'] = settings.DEFAULT_COUNTRY
    return normalized


def resolve_addresses(visiting, billing=None, delivery=None,
                      use_visiting_as_billing=True, use_billing_as_delivery=True):
    """
    Apply the signup aliasing rules.

    Billing copies the visiting address when ``use_visiting_as_billing`` is set,
    and delivery copies the (resolved) billing address when
    ``use_billing_as_delivery`` is set.
    """
    visiting = normalize_address(visiting)
    billing = dict(visiting) if use_visiting_as_billing else normalize_address(billing)
    delivery = dict(billing) if use_billing_as_delivery else normalize_address(delivery)
    return visiting, billing, delivery


def default_shipping_address(delivery_address):
    return {
        'id': DEFAULT_SHIPPING_ADDRESS_ID,
        'label': DEFAULT_SHIPPING_ADDRESS_LABEL,
        **normalize_address(delivery_address),
        'is_default': True,
    }


def submit_application(data):
    """
    Create the applicant account and its pending application.

    ``data`` is the validated signup payload. The account starts inactive with
    the ``pending`` role until an admin reviews the application.
    """
    visiting, billing, delivery = resolve_addresses(
        data['visiting_address'],
        data.get('billing_address'),
        data.get('delivery_address'),
        use_visiting_as_billing=data.get('use_visiting_as_billing', True),
        use_billing_as_delivery=data.get('use_billing_as_delivery', True),
    )
    email = data['contact_email'].strip().lower()

    with transaction.atomic():
        user = User.objects.create_user(
            username=email,
            email=email,
            password=data['password'],
            first_name=data['first_name'],
            last_name=data['last_name'],
            phone=data['contact_phone'],
            role=User.ROLE_PENDING,
            approved=False,
            is_active=False,
        )
        application = CompanyApplication.objects.create(
            user=user,
            company_name=data['company_name'],
            org_number=data['org_number'],
            company_type=data['company_type'],
            contact_email=email,
            contact_phone=data['contact_phone'],
            contact_first_name=data['first_name'],
            contact_last_name=data['last_name'],
            visiting_address=visiting,
            billing_address=billing,
            delivery_address=delivery,
            comments=data.get('comments', ''),
        )
        transaction.on_commit(lambda: application_submitted.send(
            sender=CompanyApplication, application=application, reviewed_by=None,
        ))

    logger.info(f"Application {application.pk} submitted for {application.company_name} ({application.org_number})")
    return application


def _lock_application(application):
    return CompanyApplication.objects.select_for_update().select_related('user').get(pk=application.pk)


def approve_application(application, admin_user):
    """
    Approve a pending application and return the resulting company.

    Writes the company, then the applicant user, then the application. Calling
    this again on an approved application leaves one company and keeps the
    original approval timestamps. Approving a rejected application raises
    InvalidApplicationTransition.
    """
    with transaction.atomic():
        locked = _lock_application(application)
        if locked.status == CompanyApplication.STATUS_REJECTED:
            raise InvalidApplicationTransition(locked, CompanyApplication.STATUS_APPROVED)

        now = timezone.now()
        company = Company.objects.filter(application=locked).first() or Company(application=locked)
        company.name = locked.company_name
        company.org_number = locked.org_number
        company.company_type = locked.company_type
        company.contact_email = locked.contact_email
        company.contact_phone = locked.contact_phone
        company.contact_first_name = locked.contact_first_name
        company.contact_last_name = locked.contact_last_name
        company.visiting_address = locked.visiting_address
        company.billing_address = locked.billing_address
        if not company.shipping_addresses:
            company.shipping_addresses = [default_shipping_address(locked.delivery_address)]
        company.active = True
        company.approved = True
        company.registered_at = locked.submitted_at
        if company.approved_at is None:
            company.approved_at = now
            company.approved_by = admin_user
        company.save()

        user = locked.user
        user.role = User.ROLE_CUSTOMER
        user.company = company
        user.approved = True
        user.is_active = True
        user.save(update_fields=['role', 'company', 'approved', 'is_active', 'updated_at'])

        locked.status = CompanyApplication.STATUS_APPROVED
        if locked.reviewed_at is None:
            locked.reviewed_at = now
            locked.reviewed_by = admin_user
        locked.save(update_fields=['status', 'reviewed_at', 'reviewed_by'])

        transaction.on_commit(lambda: application_approved.send(
            sender=CompanyApplication, application=locked, company=company, reviewed_by=admin_user,
        ))

    application.refresh_from_db()
    logger.info(f"Application {application.pk} approved by {admin_user}; company {company.pk} active")
    return company


def reject_application(application, admin_user, reason):
    """
    Reject a pending application with a reason.

    Writes the application, then deactivates the applicant user. No company is
    created. Rejecting an approved application raises
    InvalidApplicationTransition; a blank reason raises RejectionReasonRequired.
    """
    reason = (reason or '').strip()
    if not reason:
        raise RejectionReasonRequired()

    with transaction.atomic():
        locked = _lock_application(application)
        if locked.status == CompanyApplication.STATUS_APPROVED:
            raise InvalidApplicationTransition(locked, CompanyApplication.STATUS_REJECTED)

        locked.status = CompanyApplication.STATUS_REJECTED
        if locked.reviewed_at is None:
            locked.reviewed_at = timezone.now()
            locked.reviewed_by = admin_user
        locked.rejection_reason = reason
        locked.save(update_fields=['status', 'reviewed_at', 'reviewed_by', 'rejection_reason'])

        user = locked.user
        user.role = User.ROLE_REJECTED
        user.is_active = False
        user.approved = False
        user.save(update_fields=['role', 'is_active', 'approved', 'updated_at'])

        transaction.on_commit(lambda: application_rejected.send(
            sender=CompanyApplication, application=locked, reviewed_by=admin_user,
        ))

    application.refresh_from_db()
    logger.info(f"Application {application.pk} rejected by {admin_user}: {reason}")
    return application


def provision_existing_account(user):
    """
    Bring accounts created outside signup into the portal's role model.

    Superusers become company-less admins. Active pending accounts that never
    submitted an application get an approved "Default Company" and become
    customers. Returns True when the account was changed.
    """
    if user.is_superuser and user.role != User.ROLE_ADMIN:
        user.role = User.ROLE_ADMIN
        user.approved = True
        user.company = None
        user.save(update_fields=['role', 'approved', 'company', 'updated_at'])
        logger.info(f"Promoted superuser {user.username} to portal admin")
        return True

    if user.role != User.ROLE_PENDING or not user.is_active or user.company_id:
        return False
    if CompanyApplication.objects.filter(user=user).exists():
        return False

    now = timezone.now()
    with transaction.atomic():
        company = Company.objects.create(
            name='Default Company',
            org_number='000000000',
            company_type='other',
            contact_email=user.email,
            contact_phone=user.phone or '',
            contact_first_name=user.first_name,
            contact_last_name=user.last_name,
            active=True,
            approved=True,
            registered_at=now,
            approved_at=now,
            admin_notes='Automatically created for existing auth user.',
        )
        user.role = User.ROLE_CUSTOMER
        user.company = company
        user.approved = True
        user.save(update_fields=['role', 'company', 'approved', 'updated_at'])

    logger.info(f"Provisioned default company {company.pk} for existing user {user.username}")
    return True


def set_company_status(company, active, admin_user):
    """Activate or deactivate a company; ``approved`` follows ``active``"""
    with transaction.atomic():
        company.active = active
        company.approved = active
        company.save(update_fields=['active', 'approved', 'updated_at'])
    logger.info(f"Company {company.pk} {'activated' if active else 'deactivated'} by {admin_user}")
    return company
