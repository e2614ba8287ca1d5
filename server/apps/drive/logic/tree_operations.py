"""Business logic for the item tree.

Folders and file records are nodes in a per-user forest. Every function
takes the owning user first and never touches another user's items;
foreign items look exactly like missing ones.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, final

from django.db import transaction

from server.apps.drive.exceptions import InvalidParentError, NotFoundError
from server.apps.drive.infrastructure.metadata import validate_item_name
from server.apps.drive.logic.patches import UNSET, ItemPatch
from server.apps.drive.models import MAX_TREE_DEPTH, Item, ItemType

if TYPE_CHECKING:
    from server.apps.drive.infrastructure.blob_store import BlobStore

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class BreadcrumbEntry:
    """One step of a breadcrumb trail."""

    id: int
    name: str


def get_item(user: _User, item_id: int) -> Item:
    """Get an item owned by the user.

    Args:
        user: Owner of the item.
        item_id: ID of the item.

    Returns:
        Item instance.

    Raises:
        NotFoundError: If the item does not exist or belongs to someone else.
    """
    try:
        return Item.objects.get(user=user, id=item_id)
    except Item.DoesNotExist as error:
        raise NotFoundError(f'Item not found: {item_id}') from error


def get_item_for_update(user: _User, item_id: int) -> Item:
    """Get and row-lock an owned item. Must run inside a transaction.

    Args:
        user: Owner of the item.
        item_id: ID of the item.

    Returns:
        Locked Item instance.

    Raises:
        NotFoundError: If the item does not exist or belongs to someone else.
    """
    try:
        return Item.objects.select_for_update().get(user=user, id=item_id)
    except Item.DoesNotExist as error:
        raise NotFoundError(f'Item not found: {item_id}') from error


def create_folder(user: _User, parent_id: int | None, name: str) -> Item:
    """Create a folder.

    Args:
        user: Owner of the new folder.
        parent_id: Parent folder ID, or None for the root.
        name: Folder name.

    Returns:
        Created folder.

    Raises:
        InvalidNameError: If the name is invalid.
        InvalidParentError: If the parent is not a folder owned by the user.
    """
    cleaned_name = validate_item_name(name)

    with transaction.atomic():
        parent = _resolve_parent(user, parent_id)
        folder = Item.objects.create(
            user=user,
            parent=parent,
            item_type=ItemType.FOLDER,
            name=cleaned_name,
        )

    logger.info(
        'Folder created: %s (ID: %d, parent: %s)',
        cleaned_name,
        folder.id,
        parent_id,
    )
    return folder


def create_file_record(  # noqa: WPS211
    user: _User,
    parent_id: int | None,
    name: str,
    storage_ref: str,
    mime_type: str,
    size_bytes: int,
    extension: str,
) -> Item:
    """Record a file whose bytes are already in the blob store.

    Never moves bytes itself. Call it only after the blob store has
    accepted the content under ``storage_ref``.

    Args:
        user: Owner of the new file.
        parent_id: Parent folder ID, or None for the root.
        name: User-visible filename.
        storage_ref: Reference returned by the blob store.
        mime_type: MIME type of the content.
        size_bytes: Size of the content in bytes.
        extension: Extension without dot.

    Returns:
        Created file item.

    Raises:
        InvalidNameError: If the name is invalid.
        InvalidParentError: If the parent is not a folder owned by the user.
    """
    if not storage_ref:
        raise ValueError('File records need a storage reference')

    cleaned_name = validate_item_name(name)

    with transaction.atomic():
        parent = _resolve_parent(user, parent_id)
        file_item = Item.objects.create(
            user=user,
            parent=parent,
            item_type=ItemType.FILE,
            name=cleaned_name,
            storage_ref=storage_ref,
            mime_type=mime_type,
            size_bytes=size_bytes,
            extension=extension,
        )

    logger.info(
        'File record created: %s (ID: %d, parent: %s, size: %d)',
        cleaned_name,
        file_item.id,
        parent_id,
        size_bytes,
    )
    return file_item


def update_item(user: _User, item_id: int, patch: ItemPatch) -> Item:
    """Rename, move, star or trash an item.

    Trashing here flags only this item. Blobs are left alone and
    descendants keep their own flags; see trash_operations for the
    cascading variant.

    Args:
        user: Owner of the item.
        item_id: ID of the item.
        patch: Fields to change.

    Returns:
        Updated item.

    Raises:
        NotFoundError: If the item does not exist or belongs to someone else.
        InvalidNameError: If the new name is invalid.
        InvalidParentError: If the new parent is not a folder of the user,
            or the move would create a cycle or an over-deep tree.
    """
    with transaction.atomic():
        item = get_item_for_update(user, item_id)
        update_fields = []

        if patch.name is not UNSET:
            item.name = validate_item_name(patch.name)
            update_fields.append('name')

        if patch.parent_id is not UNSET and patch.parent_id != item.parent_id:
            item.parent = _resolve_parent(user, patch.parent_id, moving=item)
            update_fields.append('parent')

        if patch.is_starred is not UNSET:
            item.is_starred = patch.is_starred
            update_fields.append('is_starred')

        if patch.is_trashed is not UNSET:
            item.is_trashed = patch.is_trashed
            update_fields.append('is_trashed')

        update_fields.append('updated_at')
        item.save(update_fields=update_fields)

    logger.info(
        'Item updated: ID=%d, fields=%s',
        item_id,
        ','.join(patch.provided_fields()) or '-',
    )
    return item


def delete_item(user: _User, item_id: int, blob_store: 'BlobStore') -> int:
    """Permanently delete an item and everything below it.

    Blobs go first, rows second. A crash in between leaves rows whose
    bytes are gone (reported by downloads as corrupt files) rather than
    rows that silently keep orphaned bytes alive.

    Args:
        user: Owner of the item.
        item_id: ID of the item.
        blob_store: Store holding the file content.

    Returns:
        Number of items removed.

    Raises:
        NotFoundError: If the item does not exist or belongs to someone else.
        StorageWriteError: If a blob cannot be removed; no rows are
            deleted in that case.
    """
    with transaction.atomic():
        item = get_item_for_update(user, item_id)
        subtree_ids = collect_subtree_ids(user, item.id)
        subtree = list(
            Item.objects.select_for_update().filter(
                user=user,
                id__in=subtree_ids,
            ),
        )

        for node in subtree:
            if node.is_file and node.storage_ref:
                blob_store.delete(node.storage_ref)

        deleted_count, _ = Item.objects.filter(
            user=user,
            id__in=subtree_ids,
        ).delete()

    logger.info(
        'Item permanently deleted: %s (ID: %d, %d items removed)',
        item.name,
        item_id,
        deleted_count,
    )
    return deleted_count


def get_breadcrumb(user: _User, item_id: int) -> list[BreadcrumbEntry]:
    """Chain of items from the root down to (and including) an item.

    Fails closed: a missing item, a broken or foreign ancestor, a cycle
    or an over-deep chain all give an empty list.

    Args:
        user: Owner of the item.
        item_id: ID of the item.

    Returns:
        Breadcrumb entries in root-to-leaf order.
    """
    chain = _ancestor_chain(user, item_id)
    if chain is None:
        return []
    chain.reverse()
    return chain


def collect_subtree_ids(user: _User, root_id: int) -> list[int]:
    """IDs of an item and all of its descendants.

    Breadth-first, at most ``MAX_TREE_DEPTH`` levels deep.

    Args:
        user: Owner of the items.
        root_id: ID of the subtree root.

    Returns:
        IDs, root first, then level by level.
    """
    return [
        node_id
        for level in _subtree_levels(user, root_id)
        for node_id in level
    ]


def _resolve_parent(
    user: _User,
    parent_id: int | None,
    *,
    moving: Item | None = None,
) -> Item | None:
    if parent_id is None:
        return None

    parent = Item.objects.select_for_update().filter(
        user=user,
        id=parent_id,
    ).first()
    if parent is None:
        raise InvalidParentError(parent_id, 'parent does not exist')
    if not parent.is_folder:
        raise InvalidParentError(parent_id, 'parent is not a folder')

    # Ancestors are locked too, so concurrent moves cannot close a cycle
    chain = _ancestor_chain(user, parent.id, for_update=True)
    if chain is None:
        raise InvalidParentError(parent_id, 'parent is not reachable from root')

    added_height = 1
    if moving is not None:
        if any(entry.id == moving.id for entry in chain):
            raise InvalidParentError(
                parent_id,
                'item cannot be moved into itself or its descendants',
            )
        added_height = len(_subtree_levels(user, moving.id))

    if len(chain) + added_height > MAX_TREE_DEPTH:
        raise InvalidParentError(
            parent_id,
            f'tree cannot be deeper than {MAX_TREE_DEPTH} levels',
        )
    return parent


def _ancestor_chain(
    user: _User,
    item_id: int,
    *,
    for_update: bool = False,
) -> list[BreadcrumbEntry] | None:
    # Leaf-to-root. None when the chain cannot be trusted.
    # for_update row-locks every ancestor; only valid inside a transaction.
    chain: list[BreadcrumbEntry] = []
    visited: set[int] = set()
    current_id: int | None = item_id

    while current_id is not None:
        if current_id in visited or len(chain) >= MAX_TREE_DEPTH:
            logger.warning(
                'Item chain loops or is too deep: start=%d, at=%d',
                item_id,
                current_id,
            )
            return None
        visited.add(current_id)

        rows = Item.objects.filter(user=user, id=current_id)
        if for_update:
            rows = rows.select_for_update()
        row = rows.values('id', 'name', 'parent_id').first()
        if row is None:
            return None

        chain.append(BreadcrumbEntry(id=row['id'], name=row['name']))
        current_id = row['parent_id']

    return chain


def _subtree_levels(user: _User, root_id: int) -> list[list[int]]:
    levels = [[root_id]]
    seen = {root_id}

    while len(levels) <= MAX_TREE_DEPTH:
        children = [
            child_id
            for child_id in Item.objects.filter(
                user=user,
                parent_id__in=levels[-1],
            ).values_list('id', flat=True)
            if child_id not in seen
        ]
        if not children:
            break
        seen.update(children)
        levels.append(children)

    return levels
