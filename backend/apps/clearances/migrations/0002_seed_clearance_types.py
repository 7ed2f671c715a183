# Default clearance types.

from django.db import migrations

from apps.clearances.seed import seed_clearance_types


def forwards(apps, schema_editor):
    seed_clearance_types(apps.get_model("clearances", "ClearanceType"))


class Migration(migrations.Migration):

    dependencies = [
        ("clearances", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(forwards, migrations.RunPython.noop),
    ]
