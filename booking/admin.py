from django.contrib import admin

from .models import (
    Booking,
    BookingHold,
    ClientProfile,
    Provider,
    ProviderMember,
    Resource,
    ResourceAssignment,
    ResourceGroup,
    Service,
    Staff,
)


class ProviderMemberInline(admin.TabularInline):
    model = ProviderMember
    extra = 0


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "owner", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)
    inlines = [ProviderMemberInline]


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "provider", "name", "price", "duration_minutes", "active")
    list_filter = ("active", "provider")
    search_fields = ("name",)


@admin.register(ClientProfile)
class ClientProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email")


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("id", "provider", "name", "email", "role")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "provider", "client", "service", "staff", "start_time", "end_time", "status")
    list_filter = ("status", "provider")
    search_fields = ("client__name", "service__name")


@admin.register(ResourceGroup)
class ResourceGroupAdmin(admin.ModelAdmin):
    list_display = ("id", "provider", "name", "color", "is_active")
    list_filter = ("is_active", "provider")


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ("id", "provider", "name", "group", "is_active")
    list_filter = ("is_active", "provider", "group")
    search_fields = ("name",)


@admin.register(ResourceAssignment)
class ResourceAssignmentAdmin(admin.ModelAdmin):
    # Assignments go through ResourceAssignmentWriter; admin is read-only.
    list_display = ("id", "resource", "booking", "start_time", "end_time")
    list_filter = ("resource",)
    readonly_fields = ("booking", "line_item_id", "resource", "start_time", "end_time", "created_at")

    def has_add_permission(self, request):
        return False


@admin.register(BookingHold)
class BookingHoldAdmin(admin.ModelAdmin):
    list_display = ("id", "provider", "staff", "start_at", "end_at", "status", "expires_at")
    list_filter = ("status", "provider")
