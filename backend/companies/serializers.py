from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from backend.core.models import User
from .models import COMPANY_TYPE_CHOICES, Company, CompanyApplication
from .workflow import submit_application


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=200)
    zip = serializers.CharField(max_length=20)
    city = serializers.CharField(max_length=100)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def validate_country(self, value):
        return value or settings.DEFAULT_COUNTRY


class SignupSerializer(serializers.Serializer):
    """Company signup: the applicant account plus its application"""
    company_name = serializers.CharField(max_length=200)
    org_number = serializers.CharField(max_length=50)
    company_type = serializers.ChoiceField(choices=COMPANY_TYPE_CHOICES)
    contact_email = serializers.EmailField()
    contact_phone = serializers.CharField(max_length=30)
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    visiting_address = AddressSerializer()
    use_visiting_as_billing = serializers.BooleanField(default=True)
    billing_address = AddressSerializer(required=False)
    use_billing_as_delivery = serializers.BooleanField(default=True)
    delivery_address = AddressSerializer(required=False)
    comments = serializers.CharField(required=False, allow_blank=True, default='')
    password = serializers.CharField(write_only=True, min_length=6, validators=[validate_password])
    accept_terms = serializers.BooleanField()

    def validate_contact_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists() or User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError('An account with this email already exists.')
        return value

    def validate_accept_terms(self, value):
        if not value:
            raise serializers.ValidationError('You must accept the terms and conditions.')
        return value

    def validate(self, attrs):
        errors = {}
        if not attrs.get('use_visiting_as_billing', True) and not attrs.get('billing_address'):
            errors['billing_address'] = 'Billing address is required when it differs from the visiting address.'
        if not attrs.get('use_billing_as_delivery', True) and not attrs.get('delivery_address'):
            errors['delivery_address'] = 'Delivery address is required when it differs from the billing address.'
        if errors:
            raise serializers.ValidationError(errors)
        return attrs

    def create(self, validated_data):
        return submit_application(validated_data)


class CompanyApplicationSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True)
    contact_person = serializers.CharField(read_only=True)
    reviewed_by_name = serializers.CharField(source='reviewed_by.username', read_only=True, default=None)
    company_id = serializers.SerializerMethodField()

    class Meta:
        model = CompanyApplication
        fields = ['id', 'user', 'user_email', 'company_name', 'org_number', 'company_type',
                  'contact_email', 'contact_phone', 'contact_first_name', 'contact_last_name',
                  'contact_person', 'visiting_address', 'billing_address', 'delivery_address',
                  'comments', 'status', 'submitted_at', 'reviewed_at', 'reviewed_by',
                  'reviewed_by_name', 'rejection_reason', 'company_id']
        read_only_fields = fields

    def get_company_id(self, obj):
        company = getattr(obj, 'company', None)
        return company.id if company else None


class RejectApplicationSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, required=False, default='')


class CompanySerializer(serializers.ModelSerializer):
    status_label = serializers.CharField(read_only=True)
    user_count = serializers.SerializerMethodField()

    class Meta:
        model = Company
        fields = ['id', 'name', 'org_number', 'company_type', 'contact_email', 'contact_phone',
                  'contact_first_name', 'contact_last_name', 'visiting_address', 'billing_address',
                  'shipping_addresses', 'discount_percentage', 'free_shipping_threshold',
                  'active', 'approved', 'status_label', 'application', 'registered_at',
                  'approved_at', 'approved_by', 'admin_notes', 'user_count',
                  'created_at', 'updated_at']
        read_only_fields = ['active', 'approved', 'application', 'registered_at', 'approved_at',
                            'approved_by', 'created_at', 'updated_at']

    def get_user_count(self, obj):
        return obj.users.count()

    def validate_discount_percentage(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError('Discount must be between 0 and 100 percent.')
        return value

    def validate_shipping_addresses(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Shipping addresses must be a list.')
        for address in value:
            if not isinstance(address, dict) or not address.get('id'):
                raise serializers.ValidationError('Each shipping address needs an id.')
        if sum(1 for address in value if address.get('is_default')) > 1:
            raise serializers.ValidationError('Only one shipping address can be the default.')
        return value


class CustomerCompanySerializer(CompanySerializer):
    """Company profile as its own customers see it"""

    class Meta(CompanySerializer.Meta):
        fields = ['id', 'name', 'org_number', 'company_type', 'contact_email', 'contact_phone',
                  'contact_first_name', 'contact_last_name', 'visiting_address', 'billing_address',
                  'shipping_addresses', 'discount_percentage', 'free_shipping_threshold',
                  'active', 'approved', 'status_label', 'registered_at']
        read_only_fields = ['name', 'org_number', 'company_type', 'discount_percentage',
                            'free_shipping_threshold', 'active', 'approved', 'registered_at']


class CompanyStatusSerializer(serializers.Serializer):
    active = serializers.BooleanField()
