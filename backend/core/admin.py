from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'role', 'company', 'approved', 'is_active', 'date_joined']
    list_filter = ['role', 'approved', 'is_active', 'is_superuser', 'date_joined']
    search_fields = ['username', 'email', 'first_name', 'last_name', 'company__name']
    ordering = ['username']
    raw_id_fields = ['company']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Portal Access', {'fields': ('phone', 'role', 'company', 'approved')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Portal Access', {'fields': ('phone', 'role', 'company', 'approved')}),
    )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_id', 'object_name', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__username', 'model_name', 'object_id', 'object_name', 'object_reference']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'object_name',
                       'object_reference', 'changes', 'ip_address', 'created_at']
