"""
Add celery-beat schedule for the settlement hold audit.

Runs orders.tasks.audit_settlement_holds every 15 minutes to release holds
left on orders whose refunds have all reached a terminal state.
"""

from django.db import migrations

TASK_NAME = "Audit Settlement Holds"


def create_periodic_task(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=15,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "orders.tasks.audit_settlement_holds",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Releases settlement holds on orders whose refunds are all "
                "rejected, processed or failed."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("orders", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
