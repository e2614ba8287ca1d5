"""Exceptions for drive app."""


class DriveError(Exception):
    """Base class for item store and blob store errors."""


class NotFoundError(DriveError):
    """Raised when an item or blob does not exist.

    Items owned by another user are reported the same way, so callers
    cannot probe for the existence of foreign items.
    """


class InvalidParentError(DriveError):
    """Raised when a parent reference would break the tree."""

    def __init__(self, parent_id: int | None, reason: str) -> None:
        """Initialize InvalidParentError.

        Args:
            parent_id: The rejected parent ID.
            reason: Why the parent was rejected.
        """
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(f'Invalid parent {parent_id}: {reason}')


class InvalidNameError(DriveError):
    """Raised when an item name is empty or malformed."""

    def __init__(self, name: str, reason: str) -> None:
        """Initialize InvalidNameError.

        Args:
            name: The rejected name.
            reason: Why the name was rejected.
        """
        self.name = name
        self.reason = reason
        super().__init__(f'Invalid name {name!r}: {reason}')


class InvalidPatchError(DriveError):
    """Raised when an update payload has unknown or mistyped fields."""


class StorageWriteError(DriveError):
    """Raised when blob bytes cannot be written or removed."""


class StorageReadError(DriveError):
    """Raised when a recorded file cannot be read back.

    Distinct from NotFoundError: the item exists but its bytes are
    missing or unreadable, which means the file is corrupt.
    """
