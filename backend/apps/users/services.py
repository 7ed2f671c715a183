"""
Service-layer functions for the Users app.

This module exists to keep models passive:
- No business logic in models
- No permission logic in models
- Persistence orchestration (create/save) lives here
"""

from __future__ import annotations

from typing import Any, Optional, Type

STAFF_ROLES = ("ADMIN", "STAFF")


def create_user(
    *,
    user_model: Type[Any],
    username: str,
    password: Optional[str] = None,
    display_name: Optional[str] = None,
    role: str = "RESIDENT",
    using: Optional[str] = None,
    **extra_fields: Any,
):
    """Create and persist a user."""
    if not username:
        raise ValueError("The username field must be set")

    user = user_model(
        username=username,
        display_name=display_name or username,
        role=role,
        **extra_fields,
    )
    user.set_password(password)
    if using is None:
        user.save()
    else:
        user.save(using=using)
    return user


def create_superuser(
    *,
    user_model: Type[Any],
    username: str,
    password: Optional[str] = None,
    using: Optional[str] = None,
    **extra_fields: Any,
):
    """Create an ADMIN user for the Django admin site."""
    extra_fields.setdefault("role", "ADMIN")
    return create_user(
        user_model=user_model,
        username=username,
        password=password,
        using=using,
        **extra_fields,
    )


def is_staff_member(user: Any) -> bool:
    """True when the user may act as municipal staff in the workflow."""
    return user is not None and getattr(user, "role", None) in STAFF_ROLES


def find_user(user_id):
    """Return the User with this id, or None (also for malformed ids)."""
    from django.core.exceptions import ValidationError as DjangoValidationError

    from apps.users.models import User

    if user_id is None:
        return None
    try:
        return User.objects.filter(id=user_id).first()
    except (ValueError, DjangoValidationError):
        return None


def user_is_staff(*, user: Any) -> bool:
    """Django admin compatibility predicate."""
    return is_staff_member(user)


def user_is_superuser(*, user: Any) -> bool:
    """Django admin compatibility predicate."""
    return user.role == "ADMIN"


def user_has_perm(*, user: Any, perm: str, obj: Any = None) -> bool:
    """Django admin compatibility predicate."""
    _ = (perm, obj)
    return user.role == "ADMIN"


def user_has_module_perms(*, user: Any, app_label: str) -> bool:
    """Django admin compatibility predicate."""
    _ = app_label
    return user.role == "ADMIN"
