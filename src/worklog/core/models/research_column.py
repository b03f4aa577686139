from django.db import models

from ..types import COLUMNS


class ResearchColumn(models.Model):
    """One row per board column.

    Items reference their column by name; this row exists so that writers
    appending to a column have something to lock even when it is empty.
    """

    name = models.CharField(max_length=20, primary_key=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @classmethod
    def ensure_all(cls):
        cls.objects.bulk_create(
            [cls(name=column) for column in COLUMNS], ignore_conflicts=True
        )
