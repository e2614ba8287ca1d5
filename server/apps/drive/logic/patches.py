"""Typed inputs for item updates and listings."""

import enum
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Final, Self, final

from server.apps.drive.exceptions import InvalidPatchError


class _Unset(enum.Enum):
    """Marker for fields absent from a patch (``None`` is a real value)."""

    UNSET = 'UNSET'


UNSET: Final = _Unset.UNSET


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# Allowed payload keys and their value checks
_FIELD_CHECKS: Final = {
    'name': lambda value: isinstance(value, str),
    'parent_id': lambda value: value is None or _is_int(value),
    'is_starred': lambda value: isinstance(value, bool),
    'is_trashed': lambda value: isinstance(value, bool),
}


@final
@dataclass(frozen=True, slots=True)
class ItemPatch:
    """Partial update of an item.

    Every field defaults to ``UNSET`` and is left untouched. Setting
    ``parent_id`` to ``None`` moves the item to the root.
    """

    name: str | _Unset = UNSET
    parent_id: int | None | _Unset = UNSET
    is_starred: bool | _Unset = UNSET
    is_trashed: bool | _Unset = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Self:
        """Build a patch from a decoded request body.

        Args:
            payload: Mapping of field names to new values.

        Returns:
            ItemPatch with the given fields set.

        Raises:
            InvalidPatchError: On unknown keys or wrongly typed values.
        """
        unknown = sorted(set(payload) - _FIELD_CHECKS.keys())
        if unknown:
            raise InvalidPatchError(
                'Unknown update fields: {fields}'.format(
                    fields=', '.join(unknown),
                ),
            )

        for key, value in payload.items():
            if not _FIELD_CHECKS[key](value):
                raise InvalidPatchError(f'Invalid value for {key}: {value!r}')

        return cls(**payload)

    def provided_fields(self) -> list[str]:
        """Names of the fields this patch sets.

        Returns:
            Field names in declaration order.
        """
        return [
            field.name
            for field in fields(self)
            if getattr(self, field.name) is not UNSET
        ]


@final
@dataclass(frozen=True, slots=True)
class FolderView:
    """Children of a folder, or of the root when ``parent_id`` is None."""

    parent_id: int | None = None


@final
@dataclass(frozen=True, slots=True)
class RecentView:
    """Most recently downloaded files."""


@final
@dataclass(frozen=True, slots=True)
class StarredView:
    """Starred items."""


@final
@dataclass(frozen=True, slots=True)
class TrashView:
    """Trashed items."""


@final
@dataclass(frozen=True, slots=True)
class SearchView:
    """Items whose name contains ``query``, ignoring case."""

    query: str


ItemView = FolderView | RecentView | StarredView | TrashView | SearchView
