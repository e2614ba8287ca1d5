"""Business logic for trash (soft delete) operations.

Unlike flagging a single item through ``update_item``, these operations
apply to whole subtrees, so a trashed folder never leaves visible
children behind.
"""

import logging
from typing import TYPE_CHECKING, Any

from django.db import transaction
from django.utils import timezone

from server.apps.drive.logic.tree_operations import (
    collect_subtree_ids,
    delete_item,
    get_item_for_update,
)
from server.apps.drive.models import Item

if TYPE_CHECKING:
    from server.apps.drive.infrastructure.blob_store import BlobStore

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


def trash_item(user: _User, item_id: int) -> Item:
    """Move an item and all of its descendants to trash.

    Blobs are kept, so everything can be restored.

    Args:
        user: Owner of the item.
        item_id: ID of the item.

    Returns:
        Updated item.

    Raises:
        NotFoundError: If the item does not exist or belongs to someone else.
    """
    with transaction.atomic():
        item = get_item_for_update(user, item_id)
        subtree_ids = collect_subtree_ids(user, item.id)
        affected = Item.objects.filter(
            user=user,
            id__in=subtree_ids,
        ).update(is_trashed=True, updated_at=timezone.now())

    item.refresh_from_db()
    logger.info(
        'Item moved to trash: %s (ID: %d, %d items affected)',
        item.name,
        item_id,
        affected,
    )
    return item


def restore_item(user: _User, item_id: int) -> Item:
    """Restore an item and all of its descendants from trash.

    If the item's parent folder is still in trash, the item is restored
    to the root so that it shows up in a listing again. An item that is
    not in trash is returned unchanged.

    Args:
        user: Owner of the item.
        item_id: ID of the item.

    Returns:
        Restored item.

    Raises:
        NotFoundError: If the item does not exist or belongs to someone else.
    """
    with transaction.atomic():
        item = get_item_for_update(user, item_id)
        if not item.is_trashed:
            logger.info('Item not in trash, nothing to restore: ID=%d', item_id)
            return item

        now = timezone.now()
        subtree_ids = collect_subtree_ids(user, item.id)
        affected = Item.objects.filter(
            user=user,
            id__in=subtree_ids,
        ).update(is_trashed=False, updated_at=now)

        parent_trashed = item.parent_id is not None and Item.objects.filter(
            id=item.parent_id,
            is_trashed=True,
        ).exists()
        if parent_trashed:
            Item.objects.filter(id=item.id).update(parent=None, updated_at=now)
            logger.info(
                'Parent still in trash, restoring to root: ID=%d',
                item_id,
            )

    item.refresh_from_db()
    logger.info(
        'Item restored: %s (ID: %d, %d items affected)',
        item.name,
        item_id,
        affected,
    )
    return item


def empty_trash(user: _User, blob_store: 'BlobStore') -> int:
    """Permanently delete everything in a user's trash.

    Trashed folders are deleted together with their whole subtree.

    Args:
        user: User whose trash to empty.
        blob_store: Store holding the file content.

    Returns:
        Number of items removed.
    """
    trashed = list(
        Item.objects.filter(
            user=user,
            is_trashed=True,
        ).values_list('id', 'parent_id'),
    )
    trashed_ids = {item_id for item_id, _ in trashed}
    top_level_ids = [
        item_id
        for item_id, parent_id in trashed
        if parent_id not in trashed_ids
    ]

    removed = 0
    for item_id in top_level_ids:
        # A trashed item below a live folder inside a trashed folder is
        # gone once that outer folder has been deleted.
        if not Item.objects.filter(user=user, id=item_id).exists():
            continue
        removed += delete_item(user, item_id, blob_store)

    logger.info(
        'Trash emptied for user %s: %d items removed',
        user.get_username(),
        removed,
    )
    return removed
