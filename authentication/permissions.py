from rest_framework import permissions

from .models import CustomUser


class HasRole(permissions.BasePermission):
    """
    Base permission allowing authenticated users whose role is in allowed_roles
    """
    allowed_roles = ()
    message = 'Access denied for your role'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        # Superusers behave as admins
        if user.is_superuser:
            return True

        return user.role in self.allowed_roles


class IsAdmin(HasRole):
    """
    Permission to only allow admins
    """
    allowed_roles = (CustomUser.ROLE_ADMIN,)
    message = 'Access denied. Admin role required'


class IsAdminOrManager(HasRole):
    """
    Permission to allow admins and managers (catalogue writes, reports)
    """
    allowed_roles = (CustomUser.ROLE_ADMIN, CustomUser.ROLE_MANAGER)
    message = 'Access denied. Admin or manager role required'


class IsAdminOrCashier(HasRole):
    """
    Permission to allow admins and cashiers (online order desk)
    """
    allowed_roles = (CustomUser.ROLE_ADMIN, CustomUser.ROLE_CASHIER)
    message = 'Access denied. Admin or cashier role required'


class IsAdminOrManagerOrReadOnly(permissions.BasePermission):
    """
    Any authenticated user may read; writes need admin or manager
    """
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return IsAdminOrManager().has_permission(request, view)
