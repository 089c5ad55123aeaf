# users/permissions.py

from rest_framework.permissions import SAFE_METHODS, BasePermission

from users.models import User


# ---------------- BASE ROLE PERMISSION ----------------
class HasRole(BasePermission):
    """
    Base permission to check user role safely.
    Superusers always pass.
    """

    allowed_roles = set()

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated and user.is_active):
            return False
        return user.is_superuser or user.role in self.allowed_roles


# ---------------- ROLE PERMISSIONS ----------------
class IsReportAdmin(HasRole):
    """
    Finalize/submit reports, link advance payments, move invoices between months.
    """

    message = "Only report admins can perform this action"
    allowed_roles = set(User.REPORT_ADMIN_ROLES)


class IsReportAdminOrReadOnly(IsReportAdmin):
    """
    Any authenticated user may read; writes need a report admin.
    """

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return super().has_permission(request, view)
