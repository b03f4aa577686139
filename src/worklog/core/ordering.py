"""Ordering rules for the research board.

Every function here is pure: it takes a snapshot of ``BoardItem`` values and
returns new values, without touching the database or the network. Within a
column, positions must always be exactly ``0..n-1``.
"""

from dataclasses import replace
from typing import NamedTuple

from .exceptions import InvalidColumn, UnknownItem
from .types import COLUMNS, DropTarget, Placement


class ReorderPlan(NamedTuple):
    items: list
    placements: list

    @property
    def is_noop(self):
        return not self.placements


def validate_column(column):
    if column not in COLUMNS:
        raise InvalidColumn(column)
    return column


def partition(items, column):
    """Return the members of ``column`` in render order."""
    return sorted(
        (item for item in items if item.column == column),
        key=lambda item: (item.position, item.id),
    )


def find_item(items, item_id):
    for item in items:
        if item.id == item_id:
            return item
    raise UnknownItem(item_id)


def next_position(items, column):
    return len(partition(items, column))


def renumber(column_items):
    """Assign contiguous positions in list order."""
    return [
        item if item.position == index else replace(item, position=index)
        for index, item in enumerate(column_items)
    ]


def column_gaps(items):
    """Return the columns whose positions are not exactly ``0..n-1``."""
    positions = {}
    for item in items:
        positions.setdefault(item.column, []).append(item.position)
    return {
        column
        for column, found in positions.items()
        if sorted(found) != list(range(len(found)))
    }


def resolve_drop_target(items, dragged_id, column, pointer_y=None, hovered=None):
    """Translate the pointer position during a drag into an insertion point.

    ``hovered`` is the ``CardGeometry`` of the card under the pointer, or None
    when the pointer is over empty column space. The returned index refers to
    the column's ordering with the dragged item left out. A pointer exactly on
    a card's midpoint counts as above it.
    """
    validate_column(column)
    ordered = partition(items, column)
    candidates = [item for item in ordered if item.id != dragged_id]

    if hovered is None or pointer_y is None:
        return DropTarget(column, len(candidates))

    if hovered.item_id == dragged_id:
        # Hovering its own card keeps the item where it is.
        for index, item in enumerate(ordered):
            if item.id == dragged_id:
                return DropTarget(column, index)
        return DropTarget(column, len(candidates))

    for index, item in enumerate(candidates):
        if item.id == hovered.item_id:
            if pointer_y <= hovered.midpoint:
                return DropTarget(column, index)
            return DropTarget(column, index + 1)
    return DropTarget(column, len(candidates))


def plan_reorder(items, dragged_id, target):
    """Compute the board after dropping ``dragged_id`` on ``target``.

    Returns the full updated collection, in input order, plus the placements
    to persist: every member of the target column and, on a move between
    columns, every remaining member of the source column. The placements are
    empty when nothing changes.
    """
    validate_column(target.column)
    dragged = find_item(items, dragged_id)
    source_column = dragged.column

    target_items = [
        item for item in partition(items, target.column) if item.id != dragged_id
    ]
    index = _clamp(target.index, len(target_items))
    target_items.insert(index, replace(dragged, column=target.column))
    touched = renumber(target_items)

    if source_column != target.column:
        touched += renumber(
            [item for item in partition(items, source_column) if item.id != dragged_id]
        )

    updated = {item.id: item for item in touched}
    new_items = [updated.get(item.id, item) for item in items]

    changed = any(
        (item.column, item.position)
        != (updated[item.id].column, updated[item.id].position)
        for item in items
        if item.id in updated
    )
    placements = (
        [Placement(item.id, item.column, item.position) for item in touched]
        if changed
        else []
    )
    return ReorderPlan(new_items, placements)


def plan_removal(items, item_id):
    """Drop ``item_id`` from the collection and close the gap it leaves."""
    removed = find_item(items, item_id)
    remaining = [item for item in items if item.id != item_id]
    updated = {
        item.id: item
        for item in renumber(partition(remaining, removed.column))
    }
    return [updated.get(item.id, item) for item in remaining]


def _clamp(index, upper):
    return max(0, min(index, upper))
