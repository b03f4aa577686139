from .types import COLUMNS


class BoardError(Exception):
    """Base class for research board errors."""

    status_code = 400
    default_message = "Board operation failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class InvalidColumn(BoardError):
    def __init__(self, column):
        self.column = column
        super().__init__(
            f"Invalid column {column!r}. Must be one of: {', '.join(COLUMNS)}"
        )


class InvalidPosition(BoardError):
    default_message = "Position must be a non-negative integer"


class NotFound(BoardError):
    status_code = 404
    default_message = "Not found"


class UnknownItem(NotFound):
    def __init__(self, item_id):
        self.item_id = item_id
        super().__init__(f"Research item {item_id} not found")


class DuplicateIssue(BoardError):
    default_message = "This issue is already on the research board"


class OrderingConflict(BoardError):
    """A batch would leave a column with gaps or duplicate positions.

    Usually means the client planned against a stale snapshot and should reload.
    """

    status_code = 409

    def __init__(self, columns=(), message=None):
        self.columns = sorted(columns)
        super().__init__(
            message
            or f"Batch leaves column(s) {', '.join(self.columns)} out of order; "
            "reload the board and retry"
        )


class MutationNotAllowed(BoardError):
    status_code = 403
    default_message = "Not allowed to modify the research board"


class PersistError(BoardError):
    status_code = 502
    default_message = "Could not save changes to the research board"


class ReorderFailed(PersistError):
    default_message = "The move didn't save, please retry."
