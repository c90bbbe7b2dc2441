"""
Add celery-beat schedule for the ledger integrity check.

Creates the periodic task for verify_ledger_integrity, which runs every
hour and logs an error if any entry or the ledger as a whole is out of
balance.
"""

from django.db import migrations


def create_periodic_task(apps, schema_editor):
    """Create the hourly integrity check task."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name="Verify Ledger Integrity",
        defaults={
            "task": "accounting.tasks.verify_ledger_integrity",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Checks that every ledger entry balances and that total "
                "debits equal total credits."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name="Verify Ledger Integrity").delete()


class Migration(migrations.Migration):
    dependencies = [
        ("accounting", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
