# booking/models.py
#
# Purpose:
# - Core domain models for the marketplace booking app.
#
# Design highlights:
# - Provider: a salon or freelancer. Everything bookable hangs off a provider.
# - ProviderMember: links an auth User to a provider with a provider-side Role.
# - ClientProfile: Optional link to auth User (public can book without login).
#   • clean() prevents duplicates by (name/email case-insensitive + phone exact).
# - Service / Staff: catalog and people, owned by a provider.
# - Booking:
#   • Records client, service, staff (optional), [start_time, end_time)
#   • status is uppercase "CONFIRMED" or "CANCELLED"
# - Resource / ResourceGroup: chairs, rooms, equipment a provider can assign.
# - ResourceAssignment: binds a resource to a booking for a half-open window.
#   • No two assignments of one resource may overlap unless they share a booking.
#   • On PostgreSQL this is enforced by an exclusion constraint (see migrations).
# - BookingHold: short-lived slot lock created during the public booking flow.
#   • active -> expired only; never deleted.
#
from datetime import timedelta
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from .roles import Role


# -------------------------
# Provider (tenant)
# -------------------------
class Provider(models.Model):
    """
    A salon or freelancer selling services on the marketplace.
    """
    name = models.CharField(max_length=200)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_providers",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class ProviderMember(models.Model):
    """
    Provider-side membership of a user (manager, front desk staff...).
    Customers and superadmins are never stored here.
    """
    ROLE_CHOICES = [
        (Role.PROVIDER_OWNER.value, Role.PROVIDER_OWNER.label),
        (Role.PROVIDER_MANAGER.value, Role.PROVIDER_MANAGER.label),
        (Role.PROVIDER_STAFF.value, Role.PROVIDER_STAFF.label),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="provider_memberships",
    )
    provider = models.ForeignKey(Provider, on_delete=models.CASCADE, related_name="members")
    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default=Role.PROVIDER_STAFF.value)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "provider"], name="uniq_provider_member"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.provider} ({self.role})"


# -------------------------
# Client (person who books)
# -------------------------
class ClientProfile(models.Model):
    """
    A client who books an appointment.
    - 'user' link is optional (public can book with just name/email/phone).
    - We prevent duplicates by using a case-insensitive match on name and email,
      and exact match on phone in model.clean().
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client_profile",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20)

    def __str__(self):
        return self.name

    def clean(self):
        name = (self.name or "").strip()
        email = (self.email or "").strip()
        phone = (self.phone or "").strip()

        # Missing key fields are the serializer's problem ("required").
        if not name or not email or not phone:
            return

        qs = ClientProfile.objects.filter(
            name__iexact=name,
            email__iexact=email,
            phone=phone,
        )
        if self.pk:
            qs = qs.exclude(pk=self.pk)

        if qs.exists():
            raise ValidationError(
                "A client with the same name, email, and phone already exists."
            )


# -------------------------
# Service catalog item
# -------------------------
class Service(models.Model):
    """
    A service offered by a provider.

    Rules:
    - price must be > 0
    - duration_minutes must be > 0
    - active controls visibility and bookability
    """
    provider = models.ForeignKey(Provider, on_delete=models.CASCADE, related_name="services")
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    duration_minutes = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )
    active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} (${self.price})"


# -------------------------
# Staff member / Stylist
# -------------------------
class Staff(models.Model):
    provider = models.ForeignKey(Provider, on_delete=models.CASCADE, related_name="staff")
    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=100, blank=True)

    def __str__(self):
        return self.name


# -------------------------
# Booking record
# -------------------------
class Booking(models.Model):
    """
    Appointment booking occupying [start_time, end_time).

    - end_time defaults to start_time + service.duration_minutes
    - status keeps history (CONFIRMED/CANCELLED)
    - cancellation_time records when a booking was cancelled
    """
    STATUS_CONFIRMED = "CONFIRMED"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_CHOICES = [
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    provider = models.ForeignKey(Provider, on_delete=models.CASCADE, related_name="bookings")
    client = models.ForeignKey(ClientProfile, on_delete=models.CASCADE, related_name="bookings")
    service = models.ForeignKey(Service, on_delete=models.CASCADE)
    staff = models.ForeignKey(Staff, on_delete=models.SET_NULL, null=True, blank=True)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_CONFIRMED,
    )
    cancellation_time = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["staff", "start_time"], name="booking_staff_start_idx"),
        ]

    def __str__(self):
        return f"{self.client.name} → {self.service.name} on {self.start_time}"

    def save(self, *args, **kwargs):
        if self.end_time is None and self.start_time is not None:
            self.end_time = self.start_time + timedelta(minutes=self.service.duration_minutes)
        super().save(*args, **kwargs)

    @property
    def is_cancelled(self) -> bool:
        return self.status == self.STATUS_CANCELLED


# -------------------------
# Resources (rooms, chairs, equipment)
# -------------------------
class ResourceGroup(models.Model):
    """
    Grouping for resources, e.g. "Treatment Rooms" or "Equipment".
    """
    provider = models.ForeignKey(Provider, on_delete=models.CASCADE, related_name="resource_groups")
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    color = models.CharField(max_length=16, default="#FF0077")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


class Resource(models.Model):
    provider = models.ForeignKey(Provider, on_delete=models.CASCADE, related_name="resources")
    group = models.ForeignKey(
        ResourceGroup,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="resources",
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


class ResourceAssignment(models.Model):
    """
    A resource bound to a booking for [start_time, end_time).

    Rows are never edited: a booking that moves gets a new row, re-validated
    against every other booking's rows for the same resource.
    """
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="resource_assignments")
    line_item_id = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Booking line item this resource serves, if any.",
    )
    resource = models.ForeignKey(Resource, on_delete=models.CASCADE, related_name="assignments")
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["start_time", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="resource_assignment_valid_window",
            ),
        ]
        indexes = [
            models.Index(fields=["resource", "start_time", "end_time"], name="assignment_resource_window_idx"),
        ]

    def __str__(self):
        return f"{self.resource} for booking #{self.booking_id}: {self.start_time} - {self.end_time}"


# -------------------------
# Temporary slot holds
# -------------------------
class BookingHold(models.Model):
    """
    Temporary lock on a slot while a guest finishes the booking flow.

    Status only ever moves active -> expired. Confirmation into a booking
    happens elsewhere and is not modelled here.
    """
    STATUS_ACTIVE = "active"
    STATUS_EXPIRED = "expired"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_EXPIRED, "Expired"),
    ]
    ALLOWED_TRANSITIONS = {
        STATUS_ACTIVE: {STATUS_EXPIRED},
        STATUS_EXPIRED: set(),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    provider = models.ForeignKey(Provider, on_delete=models.CASCADE, related_name="holds")
    staff = models.ForeignKey(Staff, on_delete=models.SET_NULL, null=True, blank=True, related_name="holds")
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    expires_at = models.DateTimeField()
    guest_fingerprint_hash = models.CharField(max_length=128, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_at__gt=models.F("start_at")),
                name="booking_hold_valid_window",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "expires_at"], name="hold_status_expires_idx"),
        ]

    def __str__(self):
        return f"Hold {self.id} ({self.status}) until {self.expires_at}"

    def is_past_expiry(self, now=None) -> bool:
        now = now or timezone.now()
        return self.expires_at < now

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())
