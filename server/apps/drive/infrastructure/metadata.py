"""Metadata extraction and validation utilities for items."""

import mimetypes
import re
from pathlib import PurePath
from typing import Final

from server.apps.drive.exceptions import InvalidNameError

_NAME_MAX_LENGTH: Final = 255
_FORBIDDEN_NAME_CHARS: Final = ('/', '\x00')
_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'

# Extensions kept on blob names: short and plain alphanumeric only
_SAFE_EXTENSION_PATTERN: Final = re.compile(r'^[a-z0-9]{1,16}$')


def validate_item_name(name: str) -> str:
    """Validate a user-visible item name.

    Args:
        name: Proposed name.

    Returns:
        The name with surrounding whitespace removed.

    Raises:
        InvalidNameError: If the name is empty, too long or contains
            a path separator or NUL byte.
    """
    cleaned = name.strip()
    if not cleaned:
        raise InvalidNameError(name, 'name cannot be empty')
    if len(cleaned) > _NAME_MAX_LENGTH:
        raise InvalidNameError(
            name,
            f'name cannot be longer than {_NAME_MAX_LENGTH} characters',
        )
    if any(char in cleaned for char in _FORBIDDEN_NAME_CHARS):
        raise InvalidNameError(name, 'name cannot contain "/" or NUL')
    return cleaned


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_MIME_TYPE
    return mime_type


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    Args:
        filename: Filename (e.g., 'document.pdf').

    Returns:
        Extension without dot, lowercase (e.g., 'pdf').
        Returns empty string if no extension.
    """
    extension = PurePath(filename).suffix
    return extension.lstrip('.').lower()


def safe_blob_suffix(filename: str) -> str:
    """Suffix for a blob name derived from the uploaded filename.

    Only the extension survives, and only when it is short and plain.
    The rest of the user's filename never reaches the filesystem.

    Args:
        filename: Original client filename.

    Returns:
        '.ext' or an empty string.
    """
    extension = get_file_extension(filename)
    if _SAFE_EXTENSION_PATTERN.match(extension):
        return f'.{extension}'
    return ''
