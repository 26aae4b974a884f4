from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class User(AbstractUser):
    """Portal account. Customers belong to exactly one company, admins to none."""
    ROLE_ADMIN = 'admin'
    ROLE_CUSTOMER = 'customer'
    ROLE_PENDING = 'pending'
    ROLE_REJECTED = 'rejected'

    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_CUSTOMER, 'Customer'),
        (ROLE_PENDING, 'Pending Approval'),
        (ROLE_REJECTED, 'Rejected'),
    ]

    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_PENDING, db_index=True)
    company = models.ForeignKey('companies.Company', on_delete=models.PROTECT, null=True, blank=True, related_name='users')
    approved = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_portal_admin(self):
        return self.role == self.ROLE_ADMIN or self.is_superuser

    def clean(self):
        super().clean()
        if self.role == self.ROLE_CUSTOMER and not self.company_id:
            raise ValidationError({'company': 'Customer accounts must belong to a company.'})

    class Meta:
        db_table = 'users'
        constraints = [
            models.CheckConstraint(
                condition=~Q(role='customer') | Q(company__isnull=False),
                name='customer_requires_company',
            ),
        ]


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('signup', 'Application Submitted'),
        ('application_approve', 'Application Approved'),
        ('application_reject', 'Application Rejected'),
        ('account_provision', 'Account Provisioned'),
        ('company_status', 'Company Status Changed'),
        ('stock_reception', 'Stock Received'),
        ('stock_adjust', 'Stock Adjustment'),
        ('order_create', 'Order Placed'),
        ('order_status', 'Order Status Changed'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., company name, order number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., org number, SKU, order number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_audit_created'),
            models.Index(fields=['action'], name='idx_audit_action'),
            models.Index(fields=['model_name'], name='idx_audit_model'),
            models.Index(fields=['object_reference'], name='idx_audit_reference'),
        ]
