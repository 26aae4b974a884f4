from django.conf import settings
from django.db import models
from decimal import Decimal


COMPANY_TYPE_CHOICES = [
    ('restaurant', 'Restaurant'),
    ('bar', 'Bar / Pub'),
    ('hotel', 'Hotel'),
    ('cafe', 'Café'),
    ('store', 'Store'),
    ('catering', 'Catering'),
    ('other', 'Other'),
]


class CompanyApplication(models.Model):
    """Wholesale account application submitted at signup, reviewed by an admin"""
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='company_application')
    company_name = models.CharField(max_length=200)
    org_number = models.CharField(max_length=50, db_index=True)
    company_type = models.CharField(max_length=50, choices=COMPANY_TYPE_CHOICES, default='other')
    contact_email = models.EmailField()
    contact_phone = models.CharField(max_length=30)
    contact_first_name = models.CharField(max_length=100)
    contact_last_name = models.CharField(max_length=100)
    visiting_address = models.JSONField(default=dict)  # {"street", "zip", "city", "country"}
    billing_address = models.JSONField(default=dict)
    delivery_address = models.JSONField(default=dict)
    comments = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    submitted_at = models.DateTimeField(auto_now_add=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='reviewed_applications')
    rejection_reason = models.TextField(blank=True)

    def __str__(self):
        return f"{self.company_name} ({self.get_status_display()})"

    @property
    def contact_person(self):
        return f"{self.contact_first_name} {self.contact_last_name}".strip()

    class Meta:
        db_table = 'company_applications'
        ordering = ['-submitted_at']


class Company(models.Model):
    """Approved wholesale customer"""
    name = models.CharField(max_length=200, db_index=True)
    org_number = models.CharField(max_length=50, db_index=True)
    company_type = models.CharField(max_length=50, choices=COMPANY_TYPE_CHOICES, default='other')
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=30, blank=True)
    contact_first_name = models.CharField(max_length=100, blank=True)
    contact_last_name = models.CharField(max_length=100, blank=True)
    visiting_address = models.JSONField(default=dict, blank=True)
    billing_address = models.JSONField(default=dict, blank=True)
    shipping_addresses = models.JSONField(default=list, blank=True)  # [{"id", "label", "street", ..., "is_default"}]
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    free_shipping_threshold = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    active = models.BooleanField(default=False)
    approved = models.BooleanField(default=False)
    application = models.OneToOneField(CompanyApplication, on_delete=models.SET_NULL, null=True, blank=True, related_name='company')
    registered_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='approved_companies')
    admin_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def status_label(self):
        if self.approved and self.active:
            return 'Approved'
        if not self.active:
            return 'Deactivated'
        return 'Pending Approval'

    def default_shipping_address(self):
        for address in self.shipping_addresses or []:
            if address.get('is_default'):
                return address
        return (self.shipping_addresses or [None])[0]

    class Meta:
        db_table = 'companies'
        verbose_name_plural = 'companies'
        ordering = ['name']
