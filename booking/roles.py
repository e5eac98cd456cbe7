"""
roles.py
--------
Closed set of roles and the capabilities each one grants.

Every permission decision in the app goes through `has_capability`; views
never compare role strings themselves.
"""

from enum import Enum

from django.core.exceptions import ImproperlyConfigured
from django.db import models


class Role(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    PROVIDER_OWNER = "provider_owner", "Provider owner"
    PROVIDER_MANAGER = "provider_manager", "Provider manager"
    PROVIDER_STAFF = "provider_staff", "Provider staff"
    SUPERADMIN = "superadmin", "Superadmin"


class Capability(str, Enum):
    VIEW_RESOURCES = "view_resources"
    MANAGE_RESOURCES = "manage_resources"
    VIEW_BOOKINGS = "view_bookings"
    MANAGE_BOOKINGS = "manage_bookings"
    ASSIGN_RESOURCES = "assign_resources"


ROLE_CAPABILITIES = {
    Role.CUSTOMER: frozenset(),
    Role.PROVIDER_STAFF: frozenset({
        Capability.VIEW_RESOURCES,
        Capability.VIEW_BOOKINGS,
        Capability.ASSIGN_RESOURCES,
    }),
    Role.PROVIDER_MANAGER: frozenset({
        Capability.VIEW_RESOURCES,
        Capability.MANAGE_RESOURCES,
        Capability.VIEW_BOOKINGS,
        Capability.MANAGE_BOOKINGS,
        Capability.ASSIGN_RESOURCES,
    }),
    Role.PROVIDER_OWNER: frozenset(Capability),
    Role.SUPERADMIN: frozenset(Capability),
}

_missing = set(Role) - set(ROLE_CAPABILITIES)
if _missing:
    raise ImproperlyConfigured(f"Roles without a capability entry: {sorted(_missing)}")

PROVIDER_ROLES = frozenset({Role.PROVIDER_OWNER, Role.PROVIDER_MANAGER, Role.PROVIDER_STAFF})


def resolve_role(user, provider):
    """
    Role of `user` with respect to `provider`, or None for anonymous callers.
    """
    if user is None or not user.is_authenticated:
        return None
    if user.is_superuser:
        return Role.SUPERADMIN
    if provider.owner_id is not None and provider.owner_id == user.pk:
        return Role.PROVIDER_OWNER
    member = provider.members.filter(user=user).first()
    if member is not None:
        return Role(member.role)
    return Role.CUSTOMER


def has_capability(role, capability: Capability) -> bool:
    if role is None:
        return False
    return capability in ROLE_CAPABILITIES[role]


def is_provider_side(role) -> bool:
    return role == Role.SUPERADMIN or role in PROVIDER_ROLES


def provider_ids_for(user):
    """
    Providers on which `user` holds a provider-side role. None means "all"
    (superadmin).
    """
    if user is None or not user.is_authenticated:
        return []
    if user.is_superuser:
        return None
    from .models import Provider

    owned = Provider.objects.filter(owner=user).values_list("id", flat=True)
    member_of = user.provider_memberships.values_list("provider_id", flat=True)
    return sorted(set(owned) | set(member_of))
