from rest_framework import serializers
from django.utils import timezone

from .models import (
    Booking,
    BookingHold,
    ClientProfile,
    Resource,
    ResourceAssignment,
    ResourceGroup,
    Service,
    Staff,
)


def _provider_unchanged(instance, value):
    if instance is not None and instance.provider_id != value.pk:
        raise serializers.ValidationError("Provider cannot be changed.")
    return value


class ResourceGroupSerializer(serializers.ModelSerializer):
    class Meta:
        model = ResourceGroup
        fields = ["id", "provider", "name", "description", "color", "is_active"]

    def validate_provider(self, value):
        return _provider_unchanged(self.instance, value)


class ResourceSerializer(serializers.ModelSerializer):
    group_name = serializers.CharField(source="group.name", read_only=True, default=None)
    group_color = serializers.CharField(source="group.color", read_only=True, default=None)

    class Meta:
        model = Resource
        fields = [
            "id",
            "provider",
            "group",
            "group_name",
            "group_color",
            "name",
            "description",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_provider(self, value):
        return _provider_unchanged(self.instance, value)

    def validate(self, attrs):
        provider = attrs.get("provider") or getattr(self.instance, "provider", None)
        group = attrs.get("group")
        if group is not None and provider is not None and group.provider_id != provider.pk:
            raise serializers.ValidationError("Resource group belongs to a different provider.")
        return attrs


class ResourceAssignmentSerializer(serializers.ModelSerializer):
    resource_name = serializers.CharField(source="resource.name", read_only=True)

    class Meta:
        model = ResourceAssignment
        fields = [
            "id",
            "booking",
            "line_item_id",
            "resource",
            "resource_name",
            "start_time",
            "end_time",
            "created_at",
        ]
        read_only_fields = fields


class AssignResourceSerializer(serializers.Serializer):
    resource_id = serializers.IntegerField()
    line_item_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class BookingSerializer(serializers.ModelSerializer):
    client = serializers.PrimaryKeyRelatedField(queryset=ClientProfile.objects.all())
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    staff = serializers.PrimaryKeyRelatedField(queryset=Staff.objects.all(), allow_null=True, required=False)

    class Meta:
        model = Booking
        fields = [
            "id",
            "provider",
            "client",
            "service",
            "staff",
            "start_time",
            "end_time",
            "created_at",
            "notes",
            "status",
            "cancellation_time",
        ]
        read_only_fields = ["end_time", "created_at", "status", "cancellation_time"]

    def validate(self, attrs):
        start_time = attrs.get("start_time")
        if start_time and start_time <= timezone.now():
            raise serializers.ValidationError("Start time must be in the future.")

        provider = attrs.get("provider")
        service = attrs.get("service")
        staff = attrs.get("staff")
        if service and provider and service.provider_id != provider.pk:
            raise serializers.ValidationError("Service belongs to a different provider.")
        if staff and provider and staff.provider_id != provider.pk:
            raise serializers.ValidationError("Staff member belongs to a different provider.")
        if service and not service.active:
            raise serializers.ValidationError("This service is not currently available.")
        return attrs


class BookingHoldSerializer(serializers.ModelSerializer):
    hold_id = serializers.UUIDField(source="id", read_only=True)

    class Meta:
        model = BookingHold
        fields = [
            "hold_id",
            "provider",
            "staff",
            "start_at",
            "end_at",
            "status",
            "expires_at",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields


class CreateHoldSerializer(serializers.Serializer):
    provider_id = serializers.IntegerField()
    staff_id = serializers.IntegerField(required=False, allow_null=True)
    start_at = serializers.DateTimeField()
    end_at = serializers.DateTimeField()
    guest_fingerprint_hash = serializers.CharField(required=False, allow_blank=True, max_length=128)
    resource_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
