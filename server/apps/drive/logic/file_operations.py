"""Business logic for file uploads and downloads."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, BinaryIO, final

from django.core.files import File as DjangoFile
from django.utils import timezone

from server.apps.drive.exceptions import NotFoundError, StorageReadError
from server.apps.drive.infrastructure.metadata import (
    detect_mime_type,
    get_file_extension,
    validate_item_name,
)
from server.apps.drive.logic.tree_operations import create_file_record, get_item
from server.apps.drive.models import Item

if TYPE_CHECKING:
    from server.apps.drive.infrastructure.blob_store import BlobStore

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class FileDownload:
    """An opened file ready to be streamed to the client."""

    item: Item
    stream: DjangoFile


def upload_file(  # noqa: WPS211
    user: _User,
    parent_id: int | None,
    file_obj: BinaryIO,
    filename: str,
    blob_store: 'BlobStore',
    mime_type: str | None = None,
) -> Item:
    """Store uploaded bytes and record them as a file item.

    Transaction safety: Write the blob first, then create the record.
    If the record cannot be created, the blob is deleted again (rollback).
    A record never points at bytes that were not fully stored.

    Args:
        user: Owner of the file.
        parent_id: Parent folder ID, or None for the root.
        file_obj: File-like object to upload.
        filename: Client filename, used as the item name.
        blob_store: Store receiving the bytes.
        mime_type: MIME type reported by the client; guessed from the
            filename when missing.

    Returns:
        Created file item.

    Raises:
        InvalidNameError: If the filename is not a valid item name.
        InvalidParentError: If the parent is not a folder owned by the user.
        StorageWriteError: If the bytes cannot be stored.
    """
    name = validate_item_name(filename)

    # Step 1: Upload to storage first
    storage_ref = blob_store.put(file_obj, name)

    # Step 2: Create database record
    try:
        file_item = create_file_record(
            user,
            parent_id,
            name,
            storage_ref=storage_ref,
            mime_type=mime_type or detect_mime_type(name),
            size_bytes=blob_store.size(storage_ref),
            extension=get_file_extension(name),
        )
    except Exception:
        # Rollback: Delete blob from storage since the record failed
        logger.exception(
            'Creating file record failed, rolling back storage upload: %s',
            storage_ref,
        )
        blob_store.rollback_put(storage_ref)
        raise

    logger.info(
        'File uploaded: %s (ID: %d, size: %d)',
        file_item.name,
        file_item.id,
        file_item.size_bytes,
    )
    return file_item


def open_file(
    user: _User,
    item_id: int,
    blob_store: 'BlobStore',
) -> FileDownload:
    """Open a file item's content for download.

    Marks the file as accessed, which drives the recent view. Only
    ``last_accessed_at`` changes; ``updated_at`` is left alone.

    Args:
        user: Owner of the file.
        item_id: ID of the file item.
        blob_store: Store holding the bytes.

    Returns:
        FileDownload with the item and an open stream; the caller closes it.

    Raises:
        NotFoundError: If the item is missing, foreign or a folder.
        StorageReadError: If the record exists but its bytes are missing
            or unreadable.
    """
    item = get_item(user, item_id)
    storage_ref = item.storage_ref
    if not item.is_file or storage_ref is None:
        raise NotFoundError(f'File not found: {item_id}')

    try:
        stream = blob_store.get(storage_ref)
    except NotFoundError as error:
        logger.error(
            'Blob missing for file record: ID=%d, ref=%s',
            item.id,
            storage_ref,
        )
        raise StorageReadError(
            f'Content of file {item.id} is missing',
        ) from error

    accessed_at = timezone.now()
    Item.objects.filter(id=item.id).update(last_accessed_at=accessed_at)
    item.last_accessed_at = accessed_at

    logger.debug('File opened for download: ID=%d', item.id)
    return FileDownload(item=item, stream=stream)
