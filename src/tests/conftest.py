import itertools

import pytest

from worklog.core.models import ResearchDocument, ResearchItem, ResearchNote
from worklog.core.types import BoardItem

_issue_numbers = itertools.count(1)


def board_item(item_id, column, position, identifier=None):
    return BoardItem(
        id=item_id,
        column=column,
        position=position,
        title=f"Item {item_id}",
        issue_id=f"issue-{item_id}",
        issue_identifier=identifier or f"ENG-{item_id}",
        issue_url=f"https://tracker.example.com/ENG-{item_id}",
    )


def positions(items, column):
    return [
        (item.id, item.position)
        for item in sorted(
            (item for item in items if item.column == column),
            key=lambda item: item.position,
        )
    ]


@pytest.fixture
def make_item(db):
    def _make_item(column="ideas", position=None, identifier=None, title=None):
        number = next(_issue_numbers)
        if position is None:
            position = ResearchItem.objects.filter(column=column).count()
        identifier = identifier or f"ENG-{number}"
        return ResearchItem.objects.create(
            issue_id=f"issue-{number}",
            issue_identifier=identifier,
            issue_url=f"https://tracker.example.com/{identifier}",
            title=title or f"Research {identifier}",
            column=column,
            position=position,
        )

    return _make_item


@pytest.fixture
def item(make_item):
    return make_item(title="Test Item")


@pytest.fixture
def board(make_item):
    """X and Y in ideas, Z in exploring."""
    return {
        "X": make_item("ideas", title="X"),
        "Y": make_item("ideas", title="Y"),
        "Z": make_item("exploring", title="Z"),
    }


@pytest.fixture
def column_abc(make_item):
    return [make_item("planned", title=name) for name in ("A", "B", "C")]


@pytest.fixture
def private_item(make_item):
    return make_item("ideas", identifier="SCD-7", title="Secret research")


@pytest.fixture
def note(db, item):
    return ResearchNote.objects.create(item=item, content="First thoughts")


@pytest.fixture
def document(db, item):
    return ResearchDocument.objects.create(
        item=item, title="Design doc", url="https://docs.example.com/design"
    )
