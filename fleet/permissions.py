"""
Permission classes for the flat staff roles (porter, nurse, admin).
"""
from rest_framework.permissions import BasePermission

from fleet.models import Role

DISPATCH_ROLES = {Role.NURSE, Role.ADMIN}


def can_dispatch(user) -> bool:
    return getattr(user, "role", None) in DISPATCH_ROLES


class IsAdminRole(BasePermission):
    """Allow access only to users with the admin role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == Role.ADMIN)

