"""
seed_resources.py
-----------------
Seeds (creates or updates) a demo provider with services, resource groups and
resources. Safe to re-run; rows are upserted by name.

Usage:
    python manage.py seed_resources
    python manage.py seed_resources --provider "Glow Studio"
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from booking.models import Provider, Resource, ResourceGroup, Service


SERVICES = [
    {"name": "Gel Manicure",        "duration_minutes": 60,  "price": Decimal("350.00")},
    {"name": "Pedicure",            "duration_minutes": 75,  "price": Decimal("420.00")},
    {"name": "Deep Tissue Massage", "duration_minutes": 90,  "price": Decimal("780.00")},
    {"name": "Facial - Express",    "duration_minutes": 30,  "price": Decimal("300.00")},
    {"name": "Facial - Signature",  "duration_minutes": 60,  "price": Decimal("650.00")},
]

GROUPS = {
    "Treatment Rooms": {"color": "#7B61FF", "resources": ["Room 1", "Room 2", "Couples Suite"]},
    "Stations":        {"color": "#FF0077", "resources": ["Nail Station A", "Nail Station B", "Pedicure Chair"]},
    "Equipment":       {"color": "#00A37A", "resources": ["Facial Steamer", "Hot Stone Kit"]},
}


class Command(BaseCommand):
    help = "Seed or update a demo provider with services and bookable resources."

    def add_arguments(self, parser):
        parser.add_argument("--provider", default="Demo Spa", help="Provider name to seed.")

    @transaction.atomic
    def handle(self, *args, **options):
        provider, _ = Provider.objects.get_or_create(name=options["provider"])
        created = 0
        updated = 0

        for item in SERVICES:
            svc, is_created = Service.objects.update_or_create(
                provider=provider,
                name=item["name"],
                defaults={
                    "duration_minutes": item["duration_minutes"],
                    "price": item["price"],
                    "active": True,
                },
            )
            if is_created:
                created += 1
            else:
                updated += 1

        for group_name, group_data in GROUPS.items():
            group, _ = ResourceGroup.objects.update_or_create(
                provider=provider,
                name=group_name,
                defaults={"color": group_data["color"], "is_active": True},
            )
            for resource_name in group_data["resources"]:
                _, is_created = Resource.objects.update_or_create(
                    provider=provider,
                    name=resource_name,
                    defaults={"group": group, "is_active": True},
                )
                if is_created:
                    created += 1
                else:
                    updated += 1

        self.stdout.write(self.style.SUCCESS(
            f"Seeded provider '{provider.name}'. Created={created}, Updated={updated}"
        ))
