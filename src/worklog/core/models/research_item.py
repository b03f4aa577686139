from django.db import models

from ..types import COLUMNS, DEFAULT_COLUMN, BoardItem
from ..visibility import is_private
from .base import WorklogModel


class ResearchItem(WorklogModel):
    """An issue-tracker issue placed on the research board."""

    COLUMN_CHOICES = [(column, column.replace("_", " ").title()) for column in COLUMNS]

    issue_id = models.CharField(max_length=200, unique=True)
    issue_identifier = models.CharField(max_length=50, help_text="e.g. ENG-123")
    issue_url = models.URLField(max_length=500)
    title = models.CharField(max_length=500)
    description = models.TextField(blank=True)
    column = models.CharField(
        max_length=20, choices=COLUMN_CHOICES, default=DEFAULT_COLUMN, db_index=True
    )
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["column", "position", "id"]
        indexes = [
            models.Index(fields=["column", "position"], name="research_column_position_idx")
        ]

    def __str__(self):
        return f"{self.issue_identifier}: {self.title}"

    @property
    def is_private(self):
        return is_private(self.issue_identifier)

    @property
    def note_count(self):
        return self.notes.count()

    def to_board_item(self):
        return BoardItem(
            id=self.pk,
            column=self.column,
            position=self.position,
            title=self.title,
            description=self.description,
            issue_id=self.issue_id,
            issue_identifier=self.issue_identifier,
            issue_url=self.issue_url,
            notes=tuple(note.to_value() for note in self.notes.all()),
            documents=tuple(document.to_value() for document in self.documents.all()),
            created_at=_isoformat(self.created_at),
            updated_at=_isoformat(self.updated_at),
        )


def _isoformat(value):
    return value.isoformat() if value else None
