import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Provider",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("owner", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="owned_providers", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="ClientProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(max_length=254)),
                ("phone", models.CharField(max_length=20)),
                ("user", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="client_profile", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="ProviderMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("provider_owner", "Provider owner"), ("provider_manager", "Provider manager"), ("provider_staff", "Provider staff")], default="provider_staff", max_length=32)),
                ("provider", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="members", to="booking.provider")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="provider_memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("user", "provider"), name="uniq_provider_member")],
            },
        ),
        migrations.CreateModel(
            name="Service",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True)),
                ("duration_minutes", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("price", models.DecimalField(decimal_places=2, max_digits=8, validators=[django.core.validators.MinValueValidator(0.01)])),
                ("active", models.BooleanField(default=True)),
                ("provider", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="services", to="booking.provider")),
            ],
        ),
        migrations.CreateModel(
            name="Staff",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("role", models.CharField(blank=True, max_length=100)),
                ("provider", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="staff", to="booking.provider")),
            ],
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("notes", models.TextField(blank=True)),
                ("status", models.CharField(choices=[("CONFIRMED", "Confirmed"), ("CANCELLED", "Cancelled")], default="CONFIRMED", max_length=10)),
                ("cancellation_time", models.DateTimeField(blank=True, null=True)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="bookings", to="booking.clientprofile")),
                ("provider", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="bookings", to="booking.provider")),
                ("service", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="booking.service")),
                ("staff", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="booking.staff")),
            ],
            options={
                "indexes": [models.Index(fields=["staff", "start_time"], name="booking_staff_start_idx")],
            },
        ),
        migrations.CreateModel(
            name="ResourceGroup",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True)),
                ("color", models.CharField(default="#FF0077", max_length=16)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("provider", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="resource_groups", to="booking.provider")),
            ],
        ),
        migrations.CreateModel(
            name="Resource",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("group", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="resources", to="booking.resourcegroup")),
                ("provider", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="resources", to="booking.provider")),
            ],
        ),
        migrations.CreateModel(
            name="ResourceAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_item_id", models.PositiveIntegerField(blank=True, help_text="Booking line item this resource serves, if any.", null=True)),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("booking", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="resource_assignments", to="booking.booking")),
                ("resource", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assignments", to="booking.resource")),
            ],
            options={
                "ordering": ["start_time", "id"],
                "indexes": [models.Index(fields=["resource", "start_time", "end_time"], name="assignment_resource_window_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("end_time__gt", models.F("start_time"))), name="resource_assignment_valid_window")],
            },
        ),
        migrations.CreateModel(
            name="BookingHold",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("start_at", models.DateTimeField()),
                ("end_at", models.DateTimeField()),
                ("status", models.CharField(choices=[("active", "Active"), ("expired", "Expired")], default="active", max_length=10)),
                ("expires_at", models.DateTimeField()),
                ("guest_fingerprint_hash", models.CharField(blank=True, max_length=128)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("provider", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="holds", to="booking.provider")),
                ("staff", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="holds", to="booking.staff")),
            ],
            options={
                "indexes": [models.Index(fields=["status", "expires_at"], name="hold_status_expires_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("end_at__gt", models.F("start_at"))), name="booking_hold_valid_window")],
            },
        ),
    ]
