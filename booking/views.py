# booking/views.py
#
# Purpose:
# - Provider-facing APIs for resources, resource groups and bookings.
# - Resource assignment for a booking (conflict check + write).
# - Public booking holds.
# - Every response uses the {data, error} envelope (see responses.py and
#   exceptions.api_exception_handler).
#
# Access rules (see roles.py):
# - Provider-owned objects are only visible to members of that provider (and
#   superadmins). Anyone else gets 404, not 403, so ids don't leak.
# - Members whose role lacks the needed capability get 403.
# - Customers may read their own bookings and those bookings' assignments.
#
from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .exceptions import Forbidden, InvalidTransition, NotFound
from .models import Booking, Resource, ResourceGroup
from .responses import EnvelopeMixin
from .roles import Capability, has_capability, is_provider_side, provider_ids_for, resolve_role
from .serializers import (
    AssignResourceSerializer,
    BookingHoldSerializer,
    BookingSerializer,
    CreateHoldSerializer,
    ResourceAssignmentSerializer,
    ResourceGroupSerializer,
    ResourceSerializer,
)
from .services.booking_manager import BookingManager
from .services.hold_manager import HoldManager
from .services.resource_assignment import AssignmentRequest, ResourceAssignmentWriter
from .throttling import HoldCreationThrottle


def require_capability(user, provider, capability):
    """
    Raise NotFound for outsiders and Forbidden for members without `capability`.
    Returns the caller's role.
    """
    role = resolve_role(user, provider)
    if not is_provider_side(role):
        raise NotFound()
    if not has_capability(role, capability):
        raise Forbidden()
    return role


# -------------------- Provider-scoped catalog --------------------
class ProviderScopedViewSet(EnvelopeMixin, viewsets.ModelViewSet):
    """
    Base for models with a `provider` FK.
    - Read: members with `view_capability`
    - Write: members with `manage_capability`
    """
    model = None
    view_capability = Capability.VIEW_RESOURCES
    manage_capability = Capability.MANAGE_RESOURCES

    def get_queryset(self):
        qs = self.model.objects.select_related("provider").order_by("id")
        ids = provider_ids_for(self.request.user)
        if ids is None:
            return qs
        return qs.filter(provider_id__in=ids)

    def get_object(self):
        obj = super().get_object()
        capability = self.view_capability if self.request.method in ("GET", "HEAD", "OPTIONS") else self.manage_capability
        require_capability(self.request.user, obj.provider, capability)
        return obj

    def perform_create(self, serializer):
        require_capability(self.request.user, serializer.validated_data["provider"], self.manage_capability)
        serializer.save()


class ResourceGroupViewSet(ProviderScopedViewSet):
    model = ResourceGroup
    serializer_class = ResourceGroupSerializer


class ResourceViewSet(ProviderScopedViewSet):
    """
    GET /api/resources/{id}/ -> resource detail incl. group name/color and active flag.
    """
    model = Resource
    serializer_class = ResourceSerializer

    def get_queryset(self):
        return super().get_queryset().select_related("group")


# -------------------- Bookings --------------------
class BookingViewSet(EnvelopeMixin, viewsets.ModelViewSet):
    """
    Endpoints:
    - GET    /api/bookings/                   bookings visible to the caller
    - POST   /api/bookings/                   create (staff overlap check)
    - POST   /api/bookings/{id}/cancel/       cancel with cutoff, releases resources
    - GET    /api/bookings/{id}/resources/    current resource assignments
    - POST   /api/bookings/{id}/resources/    assign a resource to the booking's window
    """
    serializer_class = BookingSerializer
    http_method_names = ["get", "post", "head", "options"]
    manager = BookingManager()
    writer = ResourceAssignmentWriter()

    def get_queryset(self):
        user = self.request.user
        qs = Booking.objects.select_related("provider", "client", "service", "staff").order_by("-start_time")
        ids = provider_ids_for(user)
        if ids is None:
            return qs
        return qs.filter(Q(provider_id__in=ids) | Q(client__user=user))

    def _is_own_booking(self, booking):
        return booking.client.user_id is not None and booking.client.user_id == self.request.user.pk

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        require_capability(request.user, data["provider"], Capability.MANAGE_BOOKINGS)

        booking = self.manager.create_booking(
            provider=data["provider"],
            client=data["client"],
            service=data["service"],
            staff=data.get("staff"),
            start_time=data["start_time"],
            notes=data.get("notes", ""),
        )
        out = BookingSerializer(booking)
        return Response(out.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        booking = self.get_object()
        if not self._is_own_booking(booking):
            require_capability(request.user, booking.provider, Capability.MANAGE_BOOKINGS)

        released = self.manager.cancel_booking(booking)
        return Response({"detail": "Booking cancelled.", "released_assignments": released})

    @action(detail=True, methods=["get", "post"], url_path="resources")
    def resources(self, request, pk=None):
        booking = self.get_object()
        if request.method == "GET":
            if not self._is_own_booking(booking):
                require_capability(request.user, booking.provider, Capability.VIEW_BOOKINGS)
            rows = booking.resource_assignments.select_related("resource").order_by("start_time", "id")
            return Response(ResourceAssignmentSerializer(rows, many=True).data)

        require_capability(request.user, booking.provider, Capability.ASSIGN_RESOURCES)
        payload = AssignResourceSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        resource = Resource.objects.filter(
            pk=payload.validated_data["resource_id"],
            provider_id=booking.provider_id,
        ).first()
        if resource is None:
            raise NotFound("Resource not found.")
        if booking.is_cancelled:
            raise InvalidTransition("Cannot assign resources to a cancelled booking.")

        existing = booking.resource_assignments.filter(
            resource=resource,
            start_time=booking.start_time,
            end_time=booking.end_time,
        ).first()
        if existing is not None:
            return Response(ResourceAssignmentSerializer(existing).data, status=status.HTTP_200_OK)

        created = self.writer.assign([
            AssignmentRequest(
                booking=booking,
                resource=resource,
                start=booking.start_time,
                end=booking.end_time,
                line_item_id=payload.validated_data.get("line_item_id"),
            )
        ])
        return Response(ResourceAssignmentSerializer(created[0]).data, status=status.HTTP_201_CREATED)


# -------------------- Public holds --------------------
class BookingHoldViewSet(EnvelopeMixin, mixins.CreateModelMixin, viewsets.GenericViewSet):
    """
    POST /api/holds/        lock a slot for a guest (no login, rate limited)
    GET  /api/holds/{id}/   hold status; expires on read if past expires_at
    """
    serializer_class = CreateHoldSerializer
    permission_classes = [AllowAny]
    throttle_scope = "holds"
    manager = HoldManager()

    def get_throttles(self):
        # Only creation is rate limited; polling a hold is free.
        if self.action == "create":
            return [HoldCreationThrottle()]
        return []

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        hold = self.manager.create_hold(
            provider_id=data["provider_id"],
            staff_id=data.get("staff_id"),
            start_at=data["start_at"],
            end_at=data["end_at"],
            guest_fingerprint_hash=data.get("guest_fingerprint_hash", ""),
            resource_ids=data.get("resource_ids"),
        )
        return Response(
            {"hold_id": str(hold.pk), "expires_at": hold.expires_at.isoformat()},
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, pk=None):
        hold = self.manager.get_hold(pk)
        return Response(BookingHoldSerializer(hold).data)
