"""
Database-level guarantee that a resource is never double-booked.

PostgreSQL only: other backends skip this migration and rely on the row lock
taken by ResourceAssignmentWriter (SQLite serializes writers anyway).
Assignments of the same booking may overlap, hence `booking_id WITH <>`.
"""

from django.db import migrations

CONSTRAINT = "resource_assignment_no_overlap"


def add_exclusion_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    schema_editor.execute(
        f"ALTER TABLE booking_resourceassignment ADD CONSTRAINT {CONSTRAINT} "
        "EXCLUDE USING gist ("
        "resource_id WITH =, "
        "booking_id WITH <>, "
        "tstzrange(start_time, end_time, '[)') WITH &&"
        ")"
    )


def drop_exclusion_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(
        f"ALTER TABLE booking_resourceassignment DROP CONSTRAINT IF EXISTS {CONSTRAINT}"
    )


class Migration(migrations.Migration):

    dependencies = [
        ("booking", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(add_exclusion_constraint, drop_exclusion_constraint),
    ]
