from django.db import models

from ..types import Document
from .base import WorklogModel


class ResearchDocument(WorklogModel):
    """A link to a write-up or reference attached to a research item."""

    item = models.ForeignKey(
        "ResearchItem", on_delete=models.CASCADE, related_name="documents"
    )
    title = models.CharField(max_length=500)
    url = models.URLField(max_length=1000)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return self.title

    def to_value(self):
        return Document(
            id=self.pk,
            title=self.title,
            url=self.url,
            created_at=self.created_at.isoformat() if self.created_at else None,
        )
