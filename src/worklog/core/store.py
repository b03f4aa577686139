import logging

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from .exceptions import (
    BoardError,
    DuplicateIssue,
    InvalidPosition,
    OrderingConflict,
    PersistError,
    UnknownItem,
)
from .models import ResearchColumn, ResearchItem
from .ordering import column_gaps, next_position, validate_column
from .types import DEFAULT_COLUMN, Placement
from .visibility import visible_items

logger = logging.getLogger(__name__)


def parse_placements(rows):
    """Validate raw ``{"id", "column", "position"}`` rows into placements."""
    if not isinstance(rows, (list, tuple)):
        raise BoardError("Items array required")

    placements = []
    seen = set()
    for row in rows:
        if isinstance(row, Placement):
            item_id, column, position = row
        elif isinstance(row, dict):
            item_id = row.get("id")
            column = row.get("column")
            position = row.get("position")
        else:
            raise BoardError("Each item must be an object with id, column and position")

        if not _is_int(item_id):
            raise BoardError(f"Invalid item id {item_id!r}")
        validate_column(column)
        if not _is_int(position) or position < 0:
            raise InvalidPosition(f"Invalid position {position!r} for item {item_id}")
        if item_id in seen:
            raise BoardError(f"Item {item_id} appears more than once")
        seen.add(item_id)
        placements.append(Placement(item_id, column, position))
    return placements


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


class ItemStore:
    """Owns the persisted research items.

    Every operation touching more than one row runs inside a single
    transaction, and locks the ``ResearchColumn`` row of each affected column
    first so that concurrent changes to the same column are applied one after
    the other.
    """

    def queryset(self):
        return ResearchItem.objects.prefetch_related("notes", "documents").order_by(
            "column", "position", "id"
        )

    def snapshot(self, privileged=True):
        items = [item.to_board_item() for item in self.queryset()]
        return visible_items(items, privileged)

    def get(self, item_id):
        try:
            return self.queryset().get(pk=item_id)
        except ResearchItem.DoesNotExist:
            raise UnknownItem(item_id) from None

    def add_item(self, reference, column=DEFAULT_COLUMN, description=""):
        validate_column(column)
        if not all(
            (reference.issue_id, reference.identifier, reference.title, reference.url)
        ):
            raise BoardError("Issue details are required")

        with transaction.atomic():
            if self._issue_exists(reference.issue_id):
                raise DuplicateIssue()
            members = self._lock_columns({column})
            try:
                with transaction.atomic():
                    item = ResearchItem.objects.create(
                        issue_id=reference.issue_id,
                        issue_identifier=reference.identifier,
                        issue_url=reference.url,
                        title=reference.title,
                        description=description or "",
                        column=column,
                        position=next_position(members, column),
                    )
            except IntegrityError:
                # Added concurrently since the check above.
                raise DuplicateIssue() from None
        logger.info(
            "Added %s to %s at position %s", item.issue_identifier, column, item.position
        )
        return item

    def add_issue(self, provider, identifier, column=DEFAULT_COLUMN):
        """Look an issue up through an ``IssueProvider`` and append it."""
        reference = provider.lookup(identifier)
        if reference is None:
            raise BoardError(f"Unknown issue {identifier}")
        return self.add_item(reference, column=column)

    def update_item(self, item_id, title=None, description=None, column=None):
        """Edit an item's fields. A column change appends it to the new column."""
        if column is not None:
            validate_column(column)

        with transaction.atomic():
            item = self._lock_item(item_id)
            source = item.column
            moved = column is not None and column != source
            if moved:
                members = self._lock_columns({source, column})
                item.position = next_position(members, column)
                item.column = column
            if title is not None:
                item.title = title
            if description is not None:
                item.description = description
            item.save()
            if moved:
                self._renumber(source)
        if moved:
            logger.info("Moved item %s from %s to %s", item.pk, source, column)
        return self.get(item.pk)

    def delete_item(self, item_id):
        with transaction.atomic():
            item = self._lock_item(item_id)
            column = item.column
            self._lock_columns({column})
            item.delete()
            renumbered = self._renumber(column)
        logger.info(
            "Deleted item %s, renumbered %s item(s) in %s", item_id, renumbered, column
        )

    def apply_batch(self, placements):
        """Apply a batch reorder all-or-nothing.

        Raises ``UnknownItem`` if any id does not exist and ``OrderingConflict``
        if the result would leave a touched column without contiguous positions.
        Either way nothing is written.
        """
        placements = parse_placements(placements)
        if not placements:
            return []

        with transaction.atomic():
            ids = [placement.id for placement in placements]
            existing = ResearchItem.objects.select_for_update().in_bulk(ids)
            for item_id in ids:
                if item_id not in existing:
                    raise UnknownItem(item_id)

            touched = {placement.column for placement in placements}
            touched |= {item.column for item in existing.values()}
            self._lock_columns(touched)

            now = timezone.now()
            changed = []
            for placement in placements:
                item = existing[placement.id]
                if (item.column, item.position) == (placement.column, placement.position):
                    continue
                item.column = placement.column
                item.position = placement.position
                item.updated_at = now
                changed.append(item)
            if changed:
                ResearchItem.objects.bulk_update(
                    changed, ["column", "position", "updated_at"]
                )

            broken = column_gaps(
                ResearchItem.objects.filter(column__in=touched).only(
                    "id", "column", "position"
                )
            )
            if broken:
                logger.warning("Rejected batch reorder, columns out of order: %s", broken)
                raise OrderingConflict(broken)

        logger.info(
            "Applied batch reorder, %s of %s item(s) changed across %s",
            len(changed),
            len(placements),
            ", ".join(sorted(touched)),
        )
        return [existing[item_id] for item_id in ids]

    def renumber_column(self, column):
        validate_column(column)
        with transaction.atomic():
            self._lock_columns({column})
            return self._renumber(column)

    def gaps(self):
        return column_gaps(ResearchItem.objects.only("id", "column", "position"))

    def _lock_item(self, item_id):
        try:
            return ResearchItem.objects.select_for_update().get(pk=item_id)
        except ResearchItem.DoesNotExist:
            raise UnknownItem(item_id) from None

    def append_position(self, column):
        """Lock ``column`` and return the position an appended item gets.

        Call inside a transaction and insert before it commits.
        """
        validate_column(column)
        return next_position(self._lock_columns({column}), column)

    def _issue_exists(self, issue_id):
        return ResearchItem.objects.filter(issue_id=issue_id).exists()

    def _lock_columns(self, columns):
        """Lock the column rows, then return the current members of those columns.

        Locking the column row rather than its items serializes writers even on
        an empty column. The members are read in a separate statement after the
        lock is held, so rows committed by the previous holder are included.
        """
        columns = sorted(columns)
        if len(self._lock_column_rows(columns)) < len(columns):
            ResearchColumn.ensure_all()
            self._lock_column_rows(columns)
        return list(
            ResearchItem.objects.filter(column__in=columns)
            .order_by("column", "position", "id")
        )

    def _lock_column_rows(self, columns):
        return list(
            ResearchColumn.objects.select_for_update()
            .filter(name__in=columns)
            .order_by("name")
            .values_list("name", flat=True)
        )

    def _renumber(self, column):
        changed = []
        items = ResearchItem.objects.filter(column=column).order_by("position", "id")
        for index, item in enumerate(items):
            if item.position != index:
                item.position = index
                changed.append(item)
        if changed:
            ResearchItem.objects.bulk_update(changed, ["position"])
        return len(changed)


class LocalBackend:
    """Board controller backend that talks to the database directly."""

    def __init__(self, store=None, privileged=True):
        self.store = store or ItemStore()
        self.privileged = privileged

    def fetch_snapshot(self):
        return self.store.snapshot(privileged=self.privileged)

    def create_item(self, reference, column):
        return self.store.add_item(reference, column).to_board_item()

    def update_item(self, item_id, **fields):
        return self.store.update_item(item_id, **fields).to_board_item()

    def delete_item(self, item_id):
        try:
            self.store.delete_item(item_id)
        except DatabaseError as e:
            raise PersistError(str(e)) from e

    def apply_batch(self, placements):
        try:
            self.store.apply_batch(placements)
        except DatabaseError as e:
            raise PersistError(str(e)) from e
