from django.db import migrations, models

COLUMNS = ["ideas", "exploring", "planned", "implemented", "closed"]


def create_columns(apps, schema_editor):
    ResearchColumn = apps.get_model("core", "ResearchColumn")
    ResearchColumn.objects.bulk_create(
        [ResearchColumn(name=name) for name in COLUMNS], ignore_conflicts=True
    )


class Migration(migrations.Migration):
    dependencies = [
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ResearchColumn",
            fields=[
                (
                    "name",
                    models.CharField(max_length=20, primary_key=True, serialize=False),
                ),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.RunPython(create_columns, migrations.RunPython.noop),
    ]
