from django.db import models

from ..types import Note
from .base import WorklogModel


class ResearchNote(WorklogModel):
    item = models.ForeignKey(
        "ResearchItem", on_delete=models.CASCADE, related_name="notes"
    )
    content = models.TextField()

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.content[:50]

    def to_value(self):
        return Note(
            id=self.pk,
            content=self.content,
            created_at=self.created_at.isoformat() if self.created_at else None,
            updated_at=self.updated_at.isoformat() if self.updated_at else None,
        )
