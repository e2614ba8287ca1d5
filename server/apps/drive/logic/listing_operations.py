"""Business logic for listing items."""

import logging
from typing import Any, Final

from django.db.models import QuerySet

from server.apps.drive.logic.patches import (
    FolderView,
    ItemView,
    RecentView,
    SearchView,
    StarredView,
    TrashView,
)
from server.apps.drive.models import Item, ItemType

# User type for Django's dynamic user model
_User = Any

_RECENT_LIMIT: Final = 20

# 'folder' sorts after 'file', so descending type puts folders first
_FOLDERS_FIRST_ORDERING: Final = ('-item_type', '-created_at', '-id')
_NEWEST_FIRST_ORDERING: Final = ('-created_at', '-id')

logger = logging.getLogger(__name__)


def list_items(user: _User, view: ItemView) -> list[Item]:
    """List a user's items for one of the drive views.

    Args:
        user: Owner of the items.
        view: Which view to produce.

    Returns:
        Items in the order of the view, fetched once.
    """
    owned = Item.objects.filter(user=user)

    if isinstance(view, FolderView):
        queryset = _folder_children(owned, view.parent_id)
    elif isinstance(view, RecentView):
        queryset = owned.filter(
            item_type=ItemType.FILE,
            is_trashed=False,
        ).order_by('-last_accessed_at', '-id')[:_RECENT_LIMIT]
    elif isinstance(view, StarredView):
        queryset = owned.filter(
            is_starred=True,
            is_trashed=False,
        ).order_by(*_NEWEST_FIRST_ORDERING)
    elif isinstance(view, TrashView):
        queryset = owned.filter(
            is_trashed=True,
        ).order_by(*_NEWEST_FIRST_ORDERING)
    elif isinstance(view, SearchView):
        queryset = _search(owned, view.query)
    else:
        raise TypeError(f'Unsupported item view: {view!r}')

    items = list(queryset)
    logger.debug(
        'Listed %d items for user %s: %r',
        len(items),
        user.pk,
        view,
    )
    return items


def _folder_children(
    owned: QuerySet[Item],
    parent_id: int | None,
) -> QuerySet[Item]:
    if parent_id is None:
        children = owned.filter(parent__isnull=True)
    else:
        children = owned.filter(parent_id=parent_id)
    return children.filter(is_trashed=False).order_by(*_FOLDERS_FIRST_ORDERING)


def _search(owned: QuerySet[Item], query: str) -> QuerySet[Item]:
    term = query.strip()
    if not term:
        return owned.none()
    return owned.filter(
        name__icontains=term,
        is_trashed=False,
    ).order_by(*_FOLDERS_FIRST_ORDERING)
