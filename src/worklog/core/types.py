"""Plain value types shared by the ordering functions, the controller and the
HTTP backend. None of these import Django, so the ordering code can run
anywhere a board snapshot is held."""

from dataclasses import dataclass, field
from typing import NamedTuple, Protocol

COLUMN_IDEAS = "ideas"
COLUMN_EXPLORING = "exploring"
COLUMN_PLANNED = "planned"
COLUMN_IMPLEMENTED = "implemented"
COLUMN_CLOSED = "closed"

COLUMNS = (
    COLUMN_IDEAS,
    COLUMN_EXPLORING,
    COLUMN_PLANNED,
    COLUMN_IMPLEMENTED,
    COLUMN_CLOSED,
)
DEFAULT_COLUMN = COLUMN_IDEAS


@dataclass(frozen=True)
class Note:
    id: int
    content: str
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Document:
    id: int
    title: str
    url: str
    created_at: str | None = None


@dataclass(frozen=True)
class BoardItem:
    """Working-copy view of a research item."""

    id: int
    column: str
    position: int
    title: str = ""
    description: str = ""
    issue_id: str = ""
    issue_identifier: str = ""
    issue_url: str = ""
    notes: tuple[Note, ...] = field(default=())
    documents: tuple[Document, ...] = field(default=())
    created_at: str | None = None
    updated_at: str | None = None


class Placement(NamedTuple):
    """One row of a batch reorder."""

    id: int
    column: str
    position: int


class DropTarget(NamedTuple):
    column: str
    index: int


class CardGeometry(NamedTuple):
    """Vertical extent of a rendered card, in pointer coordinates."""

    item_id: int
    top: float
    height: float

    @property
    def midpoint(self):
        return self.top + self.height / 2


@dataclass(frozen=True)
class IssueReference:
    """Canonical description of a tracker issue, used when adding an item."""

    issue_id: str
    identifier: str
    title: str
    url: str


class IssueProvider(Protocol):
    def lookup(self, identifier: str) -> IssueReference | None: ...
