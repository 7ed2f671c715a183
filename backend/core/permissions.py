"""
Permission classes for role-based access control.

Role is read from request.user (authenticated via JWT or session).
Role is NEVER read from request body, query parameters, or headers.
"""

from rest_framework import permissions

STAFF_ROLES = ("ADMIN", "STAFF")


def _role(request):
    if not request.user or not request.user.is_authenticated:
        return None
    return getattr(request.user, "role", None)


class IsStaff(permissions.BasePermission):
    """Allow ADMIN or STAFF roles."""

    def has_permission(self, request, view):
        return _role(request) in STAFF_ROLES


class IsResident(permissions.BasePermission):
    """Allow RESIDENT role only."""

    def has_permission(self, request, view):
        return _role(request) == "RESIDENT"


class IsAuthenticatedReadOnly(permissions.BasePermission):
    """Allow every known role for GET requests."""

    def has_permission(self, request, view):
        if request.method != "GET":
            return False
        return _role(request) in STAFF_ROLES + ("RESIDENT",)


class IsAdmin(permissions.BasePermission):
    """Allow ADMIN role only."""

    def has_permission(self, request, view):
        return _role(request) == "ADMIN"
