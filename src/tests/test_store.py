import pytest
from django.db import DatabaseError

from worklog.core.exceptions import (
    BoardError,
    DuplicateIssue,
    InvalidColumn,
    InvalidPosition,
    OrderingConflict,
    PersistError,
    UnknownItem,
)
from worklog.core.models import (
    ResearchColumn,
    ResearchDocument,
    ResearchItem,
    ResearchNote,
)
from worklog.core.store import ItemStore, LocalBackend, parse_placements
from worklog.core.types import COLUMNS, IssueReference, Placement


@pytest.fixture
def store():
    return ItemStore()


def reference(number=100, identifier=None):
    identifier = identifier or f"ENG-{number}"
    return IssueReference(
        issue_id=f"new-{number}",
        identifier=identifier,
        title=f"New issue {number}",
        url=f"https://tracker.example.com/{identifier}",
    )


def column_state(column):
    return list(
        ResearchItem.objects.filter(column=column)
        .order_by("position")
        .values_list("title", "position")
    )


def test_add_item_to_empty_column_gets_position_zero(store, db):
    item = store.add_item(reference(), column="closed")
    assert item.column == "closed"
    assert item.position == 0


def test_add_item_appends_to_column(store, board):
    item = store.add_item(reference())
    assert item.column == "ideas"
    assert item.position == 2


def test_add_item_rejects_duplicate_issue(store, db):
    store.add_item(reference(1))
    with pytest.raises(DuplicateIssue):
        store.add_item(reference(1))
    assert ResearchItem.objects.count() == 1


def test_add_item_rejects_invalid_column(store, db):
    with pytest.raises(InvalidColumn):
        store.add_item(reference(), column="backlog")


def test_add_item_requires_issue_details(store, db):
    with pytest.raises(BoardError, match="Issue details are required"):
        store.add_item(IssueReference("id", "ENG-1", "", "https://example.com"))


class StaticProvider:
    def __init__(self, *references):
        self.references = {ref.identifier: ref for ref in references}

    def lookup(self, identifier):
        return self.references.get(identifier)


def test_add_issue_through_provider(store, column_abc):
    provider = StaticProvider(reference(7))
    item = store.add_issue(provider, "ENG-7", column="planned")
    assert (item.issue_id, item.position) == ("new-7", 3)

    with pytest.raises(BoardError, match="Unknown issue ENG-8"):
        store.add_issue(provider, "ENG-8")


def test_delete_closes_gap(store, column_abc):
    store.delete_item(column_abc[1].pk)
    assert column_state("planned") == [("A", 0), ("C", 1)]


def test_delete_cascades_notes_and_documents(store, item, note, document):
    store.delete_item(item.pk)
    assert not ResearchNote.objects.exists()
    assert not ResearchDocument.objects.exists()


def test_delete_unknown_item(store, db):
    with pytest.raises(UnknownItem):
        store.delete_item(12345)


def test_update_column_appends_and_renumbers_source(store, board, make_item):
    make_item("exploring", title="W")
    updated = store.update_item(board["X"].pk, column="exploring")

    assert updated.column == "exploring"
    assert updated.position == 2
    assert column_state("ideas") == [("Y", 0)]
    assert column_state("exploring") == [("Z", 0), ("W", 1), ("X", 2)]


def test_update_fields_keeps_position(store, board):
    updated = store.update_item(board["Y"].pk, title="Y2", description="More detail")
    assert (updated.title, updated.description) == ("Y2", "More detail")
    assert (updated.column, updated.position) == ("ideas", 1)


def test_update_invalid_column(store, board):
    with pytest.raises(InvalidColumn):
        store.update_item(board["X"].pk, column="nowhere")


def test_apply_batch_moves_item_between_columns(store, board):
    x, y, z = board["X"], board["Y"], board["Z"]
    store.apply_batch(
        [
            Placement(z.pk, "exploring", 0),
            Placement(x.pk, "exploring", 1),
            Placement(y.pk, "ideas", 0),
        ]
    )
    assert column_state("ideas") == [("Y", 0)]
    assert column_state("exploring") == [("Z", 0), ("X", 1)]


def test_apply_batch_accepts_raw_rows(store, column_abc):
    a, b, c = column_abc
    store.apply_batch(
        [
            {"id": c.pk, "column": "planned", "position": 0},
            {"id": a.pk, "column": "planned", "position": 1},
            {"id": b.pk, "column": "planned", "position": 2},
        ]
    )
    assert column_state("planned") == [("C", 0), ("A", 1), ("B", 2)]


def test_apply_batch_unknown_id_changes_nothing(store, column_abc):
    a, b, c = column_abc
    with pytest.raises(UnknownItem):
        store.apply_batch(
            [
                Placement(c.pk, "planned", 0),
                Placement(a.pk, "planned", 1),
                Placement(99999, "planned", 2),
            ]
        )
    assert column_state("planned") == [("A", 0), ("B", 1), ("C", 2)]


def test_apply_batch_with_stale_snapshot_is_rejected(store, column_abc):
    a, b, c = column_abc
    # Only two of the three members: would leave a duplicate position.
    with pytest.raises(OrderingConflict) as excinfo:
        store.apply_batch([Placement(c.pk, "planned", 0), Placement(a.pk, "planned", 1)])
    assert excinfo.value.columns == ["planned"]
    assert column_state("planned") == [("A", 0), ("B", 1), ("C", 2)]


def test_apply_batch_cross_column_without_source_renumber_is_rejected(store, board):
    x, z = board["X"], board["Z"]
    with pytest.raises(OrderingConflict):
        store.apply_batch([Placement(z.pk, "exploring", 0), Placement(x.pk, "exploring", 1)])
    assert column_state("ideas") == [("X", 0), ("Y", 1)]


def test_apply_batch_unchanged_ordering_round_trips(store, board):
    before = store.snapshot()
    store.apply_batch([Placement(i.id, i.column, i.position) for i in before])
    assert store.snapshot() == before


def test_apply_batch_empty(store, db):
    assert store.apply_batch([]) == []


def test_parse_placements_validation():
    with pytest.raises(BoardError, match="Items array required"):
        parse_placements(None)
    with pytest.raises(InvalidColumn):
        parse_placements([{"id": 1, "column": "backlog", "position": 0}])
    with pytest.raises(InvalidPosition):
        parse_placements([{"id": 1, "column": "ideas", "position": -1}])
    with pytest.raises(InvalidPosition):
        parse_placements([{"id": 1, "column": "ideas", "position": "0"}])
    with pytest.raises(BoardError, match="more than once"):
        parse_placements(
            [
                {"id": 1, "column": "ideas", "position": 0},
                {"id": 1, "column": "ideas", "position": 1},
            ]
        )
    with pytest.raises(BoardError, match="Invalid item id"):
        parse_placements([{"id": True, "column": "ideas", "position": 0}])


def test_renumber_column_and_gaps(store, make_item):
    make_item("closed", position=3, title="P")
    make_item("closed", position=7, title="Q")
    assert store.gaps() == {"closed"}

    assert store.renumber_column("closed") == 2
    assert column_state("closed") == [("P", 0), ("Q", 1)]
    assert store.gaps() == set()


def test_snapshot_orders_and_filters(store, board, private_item):
    snapshot = store.snapshot()
    assert [item.title for item in snapshot] == ["Z", "X", "Y", "Secret research"]

    public = store.snapshot(privileged=False)
    assert "Secret research" not in [item.title for item in public]
    assert len(public) == 3


def test_local_backend_wraps_database_errors(store, board, monkeypatch):
    def broken(placements):
        raise DatabaseError("database is locked")

    monkeypatch.setattr(store, "apply_batch", broken)
    backend = LocalBackend(store)
    with pytest.raises(PersistError):
        backend.apply_batch([Placement(board["X"].pk, "ideas", 0)])


def test_every_column_has_a_lock_row(db):
    assert sorted(ResearchColumn.objects.values_list("name", flat=True)) == sorted(
        COLUMNS
    )


def test_append_recreates_missing_lock_rows(store, db):
    ResearchColumn.objects.all().delete()
    item = store.add_item(reference(), column="closed")
    assert item.position == 0
    assert ResearchColumn.objects.filter(name="closed").exists()


def test_append_position_counts_column_members(store, column_abc):
    assert store.append_position("planned") == 3
    assert store.append_position("closed") == 0
    with pytest.raises(InvalidColumn):
        store.append_position("someday")


def test_add_item_duplicate_inserted_concurrently(store, db, monkeypatch):
    store.add_item(reference(3))
    # Another writer inserted the same issue after the existence check ran.
    monkeypatch.setattr(store, "_issue_exists", lambda issue_id: False)

    with pytest.raises(DuplicateIssue):
        store.add_item(reference(3))
    assert ResearchItem.objects.count() == 1


def test_appends_after_move_stay_contiguous(store, board):
    store.update_item(board["X"].pk, column="closed")
    store.add_item(reference(11), column="closed")
    store.update_item(board["Y"].pk, column="closed")
    assert column_state("closed") == [
        ("X", 0),
        ("New issue 11", 1),
        ("Y", 2),
    ]
    assert store.gaps() == set()
