"""
Add the governorate scope of regional admins.

Split from 0001 because providers.Governorate is created after the user
table (providers.Provider references the user model).
"""

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("authentication", "0001_initial"),
        ("providers", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="user",
            name="assigned_governorates",
            field=models.ManyToManyField(
                blank=True,
                help_text="Governorates a regional admin may act on",
                related_name="admins",
                to="providers.governorate",
            ),
        ),
    ]
