"""Local blob storage for file content."""

import logging
import os
import re
import secrets
import shutil
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO, Final, final

from typing_extensions import override

from django.conf import settings
from django.core.files import File
from django.core.files.storage import FileSystemStorage

from server.apps.drive.exceptions import (
    NotFoundError,
    StorageReadError,
    StorageWriteError,
)
from server.apps.drive.infrastructure.metadata import safe_blob_suffix

logger = logging.getLogger(__name__)

_STAGING_DIR: Final = '.staging'
_COPY_CHUNK_SIZE: Final = 64 * 1024  # 64KB chunks while streaming uploads
_REF_TOKEN_BYTES: Final = 16  # 32 hex characters
_MAX_NAME_ATTEMPTS: Final = 5
_STORAGE_REF_PATTERN: Final = re.compile(r'^[0-9a-f]{32}(\.[a-z0-9]{1,16})?$')


def is_storage_ref(name: str) -> bool:
    """Check whether a name has the shape of a generated storage reference.

    Args:
        name: Candidate blob name.

    Returns:
        True for '<32 hex chars>' with an optional short extension.
    """
    return _STORAGE_REF_PATTERN.match(name) is not None


@final
class BlobStore(FileSystemStorage):
    """Write-once byte storage addressed by random storage references.

    Extends Django's FileSystemStorage with:
    - Random, non-guessable blob names that keep only the extension
    - Staged writes published without overwriting existing blobs
    - Idempotent deletes
    - Domain errors instead of raw OSError

    The store knows nothing about items. Everything is addressed by the
    storage reference returned from ``put``.
    """

    def put(self, stream: BinaryIO, original_filename: str) -> str:
        """Store bytes under a new random storage reference.

        The stream is copied to a staging file first and only linked to
        its final name once fully written, so a failed upload never
        leaves a partial blob behind under a valid reference.

        Args:
            stream: Binary file-like object to read until EOF.
            original_filename: Client filename; only its extension is kept.

        Returns:
            The new storage reference.

        Raises:
            StorageWriteError: If the bytes cannot be written.
        """
        suffix = safe_blob_suffix(original_filename)
        staging_dir = Path(self.location, _STAGING_DIR)

        try:
            staging_dir.mkdir(parents=True, exist_ok=True)
            staging_path = _write_staging_file(stream, staging_dir)
        except OSError as error:
            logger.exception('Failed to write blob to staging area')
            raise StorageWriteError('Failed to write blob') from error

        try:
            storage_ref = self._publish(staging_path, suffix)
        finally:
            staging_path.unlink(missing_ok=True)

        logger.info('Stored blob: %s', storage_ref)
        return storage_ref

    def get(self, storage_ref: str) -> File:
        """Open a blob for streaming binary reads.

        Args:
            storage_ref: Reference returned by ``put``.

        Returns:
            Open Django File; the caller closes it.

        Raises:
            NotFoundError: If no blob exists under the reference.
            StorageReadError: If the blob exists but cannot be opened.
        """
        if not is_storage_ref(storage_ref):
            raise NotFoundError(f'Blob not found: {storage_ref!r}')
        try:
            return self.open(storage_ref, 'rb')
        except FileNotFoundError as error:
            raise NotFoundError(f'Blob not found: {storage_ref}') from error
        except OSError as error:
            logger.exception('Failed to open blob: %s', storage_ref)
            raise StorageReadError(
                f'Failed to read blob {storage_ref}',
            ) from error

    @override
    def size(self, name: str) -> int:
        """Size of a blob in bytes.

        Args:
            name: Storage reference.

        Returns:
            Size in bytes.

        Raises:
            NotFoundError: If no blob exists under the reference.
        """
        if not is_storage_ref(name):
            raise NotFoundError(f'Blob not found: {name!r}')
        try:
            return super().size(name)
        except FileNotFoundError as error:
            raise NotFoundError(f'Blob not found: {name}') from error

    @override
    def delete(self, name: str) -> None:
        """Delete a blob, treating an absent blob as already deleted.

        Args:
            name: Storage reference.

        Raises:
            StorageWriteError: If the blob exists but cannot be removed.
        """
        if not is_storage_ref(name):
            logger.warning('Ignoring delete of malformed storage ref: %r', name)
            return

        try:
            os.remove(self.path(name))
        except FileNotFoundError:
            logger.warning('Blob already absent, nothing to delete: %s', name)
            return
        except OSError as error:
            logger.exception('Failed to delete blob: %s', name)
            raise StorageWriteError(f'Failed to delete blob {name}') from error

        logger.info('Deleted blob: %s', name)

    def rollback_put(self, storage_ref: str) -> None:
        """Delete a stored blob after its item record failed to commit.

        This is a best-effort operation - if deletion fails, the error
        is logged but not raised. The blob stays behind unreferenced and
        the orphan sweep removes it later.

        Args:
            storage_ref: Reference returned by ``put``.
        """
        try:
            logger.warning('Rolling back upload, deleting blob: %s', storage_ref)
            self.delete(storage_ref)
        except StorageWriteError:
            logger.exception(
                'Failed to rollback upload, orphaned blob: %s',
                storage_ref,
            )

    def iter_storage_refs(self) -> Iterator[str]:
        """Iterate over storage references currently on disk.

        Yields:
            Storage references; staging files and foreign files are skipped.
        """
        if not os.path.isdir(self.location):
            return
        _, filenames = self.listdir('')
        for filename in filenames:
            if is_storage_ref(filename):
                yield filename

    def purge_stale_staging(self, older_than: datetime) -> int:
        """Remove staging files left behind by interrupted writes.

        Args:
            older_than: Aware datetime; files modified before it are removed.

        Returns:
            Number of staging files removed.
        """
        staging_dir = Path(self.location, _STAGING_DIR)
        if not staging_dir.is_dir():
            return 0

        removed = 0
        for entry in staging_dir.iterdir():
            try:
                mtime = entry.stat().st_mtime
            except FileNotFoundError:
                # Published or cleaned up by a concurrent put
                continue
            modified_at = datetime.fromtimestamp(mtime, tz=UTC)
            if modified_at < older_than:
                entry.unlink(missing_ok=True)
                removed += 1
                logger.info('Removed stale staging file: %s', entry.name)
        return removed

    def _publish(self, staging_path: Path, suffix: str) -> str:
        # Hard links fail on an existing target, so a collision never
        # overwrites a stored blob.
        for _attempt in range(_MAX_NAME_ATTEMPTS):
            storage_ref = f'{secrets.token_hex(_REF_TOKEN_BYTES)}{suffix}'
            try:
                os.link(staging_path, self.path(storage_ref))
            except FileExistsError:
                logger.warning(
                    'Storage reference collision, regenerating: %s',
                    storage_ref,
                )
                continue
            except OSError as error:
                logger.exception('Failed to publish blob: %s', storage_ref)
                raise StorageWriteError('Failed to write blob') from error
            return storage_ref

        raise StorageWriteError(
            'Could not allocate a unique storage reference '
            f'after {_MAX_NAME_ATTEMPTS} attempts',
        )


def _write_staging_file(stream: BinaryIO, staging_dir: Path) -> Path:
    descriptor, raw_path = tempfile.mkstemp(dir=staging_dir, prefix='upload-')
    staging_path = Path(raw_path)
    try:
        with os.fdopen(descriptor, 'wb') as staging_file:
            shutil.copyfileobj(stream, staging_file, _COPY_CHUNK_SIZE)
            staging_file.flush()
            os.fsync(staging_file.fileno())
    except BaseException:
        staging_path.unlink(missing_ok=True)
        raise
    return staging_path


def build_blob_store() -> BlobStore:
    """Build the blob store configured in settings.

    Returns:
        BlobStore rooted at ``settings.BLOB_STORAGE_ROOT``.
    """
    return BlobStore(location=settings.BLOB_STORAGE_ROOT)
