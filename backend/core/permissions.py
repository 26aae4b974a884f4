from rest_framework.permissions import BasePermission


def is_admin_user(user):
    """
    Check if user is a portal admin.
    Returns True for accounts with the admin role and for superusers.
    """
    if not user or not user.is_authenticated:
        return False
    return user.role == 'admin' or user.is_superuser


def is_approved_customer(user):
    """
    Check if user can shop: an approved, active customer whose company
    is itself approved and active.
    """
    if not user or not user.is_authenticated:
        return False
    if user.role != 'customer' or not user.approved or not user.is_active:
        return False
    company = user.company
    return bool(company and company.approved and company.active)


class IsPortalAdmin(BasePermission):
    message = 'Admin access required.'

    def has_permission(self, request, view):
        return is_admin_user(request.user)


class IsApprovedCustomer(BasePermission):
    message = 'Your company account is not approved or has been deactivated.'

    def has_permission(self, request, view):
        return is_approved_customer(request.user)


class IsPortalAdminOrApprovedCustomer(BasePermission):
    message = 'Your account does not have access to the portal yet.'

    def has_permission(self, request, view):
        return is_admin_user(request.user) or is_approved_customer(request.user)
