from django.contrib import admin
from .models import Company, CompanyApplication


@admin.register(CompanyApplication)
class CompanyApplicationAdmin(admin.ModelAdmin):
    list_display = ['company_name', 'org_number', 'company_type', 'contact_email', 'status', 'submitted_at', 'reviewed_at']
    list_filter = ['status', 'company_type', 'submitted_at']
    search_fields = ['company_name', 'org_number', 'contact_email']
    ordering = ['-submitted_at']
    # Review through the approve/reject endpoints so company and user stay in step
    readonly_fields = ['user', 'status', 'submitted_at', 'reviewed_at', 'reviewed_by', 'rejection_reason']


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'org_number', 'company_type', 'active', 'approved', 'discount_percentage', 'approved_at']
    list_filter = ['active', 'approved', 'company_type']
    search_fields = ['name', 'org_number', 'contact_email']
    ordering = ['name']
    readonly_fields = ['application', 'registered_at', 'approved_at', 'approved_by', 'created_at', 'updated_at']
