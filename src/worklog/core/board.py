"""Client-side board state.

``BoardController`` keeps a working copy of the research board, applies
changes to it optimistically and hands the persistence work to a backend:
``store.LocalBackend`` inside the Django process, or ``client.HttpBackend``
against a running server. The backend's copy is always the source of truth;
the controller's collection can be thrown away and reloaded at any time.
"""

import logging
import threading
from contextlib import contextmanager

from .exceptions import BoardError, MutationNotAllowed, PersistError, ReorderFailed
from .ordering import (
    find_item,
    next_position,
    partition,
    plan_removal,
    plan_reorder,
    resolve_drop_target,
    validate_column,
)
from .types import COLUMN_CLOSED, DEFAULT_COLUMN, DropTarget
from .visibility import search_items, visible_items

logger = logging.getLogger(__name__)


class LoadingTracker:
    """Counts in-flight persist calls and tells observers when the board
    becomes busy or idle."""

    def __init__(self):
        self._active = 0
        self._lock = threading.Lock()
        self._observers = []

    @property
    def active(self):
        return self._active

    @property
    def is_loading(self):
        return self._active > 0

    def subscribe(self, callback):
        self._observers.append(callback)

    def start(self):
        with self._lock:
            self._active += 1
            notify = self._active == 1
        if notify:
            self._notify(True)

    def stop(self):
        with self._lock:
            if self._active == 0:
                return
            self._active -= 1
            notify = self._active == 0
        if notify:
            self._notify(False)

    @contextmanager
    def track(self):
        self.start()
        try:
            yield
        finally:
            self.stop()

    def _notify(self, loading):
        for callback in list(self._observers):
            callback(loading)


class BoardController:
    def __init__(self, backend, may_mutate=True, privileged=None, loading=None):
        self.backend = backend
        self._may_mutate = may_mutate
        self._privileged = privileged
        self.loading = loading or LoadingTracker()
        self._items = []
        self._commit_lock = threading.Lock()

    @property
    def items(self):
        return tuple(self._items)

    @property
    def may_mutate(self):
        if callable(self._may_mutate):
            return bool(self._may_mutate())
        return bool(self._may_mutate)

    @property
    def privileged(self):
        """Whether private items are shown. Follows the gate unless set explicitly."""
        if self._privileged is not None:
            return bool(self._privileged)
        return self.may_mutate

    def load(self):
        """Replace the working copy with a fresh snapshot from the backend."""
        with self.loading.track():
            snapshot = self.backend.fetch_snapshot()
        self._items = list(snapshot)
        return self.items

    def visible(self):
        return visible_items(self._items, self.privileged)

    def column(self, column):
        validate_column(column)
        return partition(self.visible(), column)

    def resolve(self, dragged_id, column, pointer_y=None, hovered=None):
        return resolve_drop_target(
            self.visible(), dragged_id, column, pointer_y=pointer_y, hovered=hovered
        )

    def add_item(self, reference, column=DEFAULT_COLUMN):
        self._check_gate()
        validate_column(column)
        with self._commit_lock, self.loading.track():
            item = self.backend.create_item(reference, column)
            self._items.append(item)
        return item

    def update_item(self, item_id, **fields):
        self._check_gate()
        with self._commit_lock, self.loading.track():
            updated = self.backend.update_item(item_id, **fields)
            moved = find_item(self._items, item_id).column != updated.column
            if moved:
                self._items = plan_removal(self._items, item_id)
                self._items.append(updated)
            else:
                self._items = [
                    updated if item.id == item_id else item for item in self._items
                ]
        return updated

    def delete_item(self, item_id):
        self._check_gate()
        with self._commit_lock:
            previous = list(self._items)
            self._items = plan_removal(previous, item_id)
            committed = False
            try:
                with self.loading.track():
                    self.backend.delete_item(item_id)
                committed = True
            finally:
                if not committed:
                    logger.warning("Deleting item %s failed, restoring board", item_id)
                    self._items = previous

    def apply_reorder(self, dragged_id, target):
        """Move ``dragged_id`` to ``target`` and persist the new ordering.

        The new ordering is visible in ``items`` before the backend answers.
        If the backend fails, the board goes back to exactly what it was
        before the drag and ``ReorderFailed`` is raised. Reorders queue behind
        each other, so the next one is always planned from settled state.
        """
        self._check_gate()
        with self._commit_lock:
            previous = list(self._items)
            plan = plan_reorder(previous, dragged_id, target)
            if plan.is_noop:
                return self.items

            self._items = list(plan.items)
            committed = False
            try:
                with self.loading.track():
                    self.backend.apply_batch(plan.placements)
                committed = True
            except PersistError as e:
                raise ReorderFailed() from e
            except BoardError as e:
                raise ReorderFailed(str(e)) from e
            finally:
                if not committed:
                    logger.warning(
                        "Reorder of item %s failed, restoring board", dragged_id
                    )
                    self._items = previous
        return self.items

    def move_to_column(self, item_id, column):
        """Append an item to the end of another column without a drag."""
        validate_column(column)
        item = find_item(self._items, item_id)
        if item.column == column:
            return self.items
        target = DropTarget(column, next_position(self._items, column))
        return self.apply_reorder(item_id, target)

    def archive(self, query="", sort="-updated_at"):
        """Closed items matching ``query``, for the archive listing."""
        return search_items(self.visible(), column=COLUMN_CLOSED, query=query, sort=sort)

    def reopen(self, item_id, column=DEFAULT_COLUMN):
        return self.move_to_column(item_id, column)

    def _check_gate(self):
        if not self.may_mutate:
            raise MutationNotAllowed()

