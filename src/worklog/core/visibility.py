from django.conf import settings

from .exceptions import BoardError
from .ordering import validate_column


def private_prefixes():
    return tuple(getattr(settings, "WORKLOG_PRIVATE_PREFIXES", ()))


def is_private(identifier, prefixes=None):
    """Items whose issue identifier carries a private prefix stay off the public board."""
    if prefixes is None:
        prefixes = private_prefixes()
    return any(identifier.startswith(prefix) for prefix in prefixes)


def visible_items(items, privileged, prefixes=None):
    """Filter a snapshot before partitioning. Stored positions are left alone."""
    if privileged:
        return list(items)
    if prefixes is None:
        prefixes = private_prefixes()
    return [item for item in items if not is_private(item.issue_identifier, prefixes)]


SORT_FIELDS = ("title", "updated_at", "created_at", "position")


def search_items(items, column=None, query="", sort=None):
    """Filter by column and a case-insensitive title or identifier match.

    ``sort`` names a field from ``SORT_FIELDS``, prefixed with ``-`` for
    descending order. Without it the input order is kept.
    """
    if column is not None:
        validate_column(column)
        items = [item for item in items if item.column == column]
    query = (query or "").strip().lower()
    if query:
        items = [
            item
            for item in items
            if query in item.title.lower() or query in item.issue_identifier.lower()
        ]
    items = list(items)
    if not sort:
        return items

    descending = sort.startswith("-")
    field = sort.lstrip("-")
    if field not in SORT_FIELDS:
        raise BoardError(
            f"Cannot sort by {field!r}. Must be one of: {', '.join(SORT_FIELDS)}"
        )

    def key(item):
        value = getattr(item, field)
        if isinstance(value, str):
            return value.lower()
        return value if value is not None else ""

    return sorted(items, key=key, reverse=descending)
