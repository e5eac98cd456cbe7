# booking/tests/helpers.py
#
# Small builders shared by the test modules. Every object hangs off one
# provider unless a test passes its own.
#
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.contrib.auth.models import User
from django.utils import timezone

from booking.models import (
    Booking,
    ClientProfile,
    Provider,
    ProviderMember,
    Resource,
    ResourceGroup,
    Service,
    Staff,
)


def at(hour, minute=0, day=1):
    """Aware UTC datetime on a fixed far-future date."""
    return datetime(2031, 6, day, hour, minute, tzinfo=dt_timezone.utc)


def make_provider(name="Glow Studio", owner=None, is_active=True):
    return Provider.objects.create(name=name, owner=owner, is_active=is_active)


def make_user(username, **extra):
    return User.objects.create_user(username=username, password="testpass123", **extra)


def make_member(provider, username, role):
    user = make_user(username)
    ProviderMember.objects.create(user=user, provider=provider, role=role)
    return user


def make_service(provider, name="Gel Manicure", minutes=60, price="350.00", active=True):
    return Service.objects.create(
        provider=provider,
        name=name,
        duration_minutes=minutes,
        price=Decimal(price),
        active=active,
    )


def make_staff(provider, name="Ama", email=None):
    return Staff.objects.create(
        provider=provider,
        name=name,
        email=email or f"{name.lower()}.{provider.pk}@example.com",
    )


def make_client(name="Kofi", user=None):
    return ClientProfile.objects.create(
        user=user,
        name=name,
        email=f"{name.lower()}@example.com",
        phone="0200000000",
    )


def make_resource(provider, name="Room 1", group=None, is_active=True):
    return Resource.objects.create(provider=provider, name=name, group=group, is_active=is_active)


def make_group(provider, name="Treatment Rooms", color="#7B61FF"):
    return ResourceGroup.objects.create(provider=provider, name=name, color=color)


def make_booking(provider, start, end=None, service=None, client=None, staff=None):
    service = service or make_service(provider)
    return Booking.objects.create(
        provider=provider,
        client=client or make_client(),
        service=service,
        staff=staff,
        start_time=start,
        end_time=end,
    )


def minutes_from_now(minutes):
    return timezone.now() + timedelta(minutes=minutes)
