"""Tests for the local blob store."""

import os
from datetime import UTC, datetime, timedelta
from io import BytesIO

import pytest
from django.test import override_settings

from server.apps.drive.exceptions import (
    NotFoundError,
    StorageReadError,
    StorageWriteError,
)
from server.apps.drive.infrastructure import blob_store as blob_store_module
from server.apps.drive.infrastructure.blob_store import (
    BlobStore,
    build_blob_store,
    is_storage_ref,
)


class _BrokenStream:
    """Stream that fails halfway through an upload."""

    def __init__(self) -> None:
        self._calls = 0

    def read(self, size: int = -1) -> bytes:
        self._calls += 1
        if self._calls > 1:
            raise OSError('connection reset')
        return b'partial'


class TestPut:
    """Tests for BlobStore.put."""

    def test_round_trip(self, blob_store):
        """Test stored bytes come back unchanged."""
        content = bytes(range(256)) * 10

        storage_ref = blob_store.put(BytesIO(content), 'report.pdf')

        with blob_store.get(storage_ref) as stream:
            assert stream.read() == content

    def test_round_trip_empty(self, blob_store):
        """Test empty uploads are stored as empty blobs."""
        storage_ref = blob_store.put(BytesIO(b''), 'empty.txt')

        with blob_store.get(storage_ref) as stream:
            assert stream.read() == b''
        assert blob_store.size(storage_ref) == 0

    def test_ref_keeps_only_extension(self, blob_store):
        """Test the user's base name never reaches the filesystem."""
        storage_ref = blob_store.put(BytesIO(b'x'), 'Secret Plans.PDF')

        assert is_storage_ref(storage_ref)
        assert storage_ref.endswith('.pdf')
        assert 'Secret' not in storage_ref
        assert len(storage_ref) == 32 + len('.pdf')

    def test_ref_drops_unsafe_extension(self, blob_store):
        """Test odd extensions are dropped from blob names."""
        storage_ref = blob_store.put(BytesIO(b'x'), 'evil.p$h/p')

        assert is_storage_ref(storage_ref)
        assert len(storage_ref) == 32

    def test_path_traversal_name_stays_in_root(self, blob_store, blob_root):
        """Test traversal attempts in filenames are ignored."""
        storage_ref = blob_store.put(BytesIO(b'x'), '../../etc/passwd')

        assert (blob_root / storage_ref).is_file()
        assert not (blob_root.parent / 'etc').exists()

    def test_refs_are_unique(self, blob_store):
        """Test two uploads of the same name get different refs."""
        first = blob_store.put(BytesIO(b'one'), 'same.txt')
        second = blob_store.put(BytesIO(b'two'), 'same.txt')

        assert first != second

    def test_creates_root_directory(self, blob_store, blob_root):
        """Test the store creates its root on first write."""
        assert not blob_root.exists()

        blob_store.put(BytesIO(b'x'), 'a.txt')

        assert blob_root.is_dir()

    def test_no_staging_leftovers(self, blob_store, blob_root):
        """Test staging files are removed after publishing."""
        blob_store.put(BytesIO(b'x'), 'a.txt')

        assert list((blob_root / '.staging').iterdir()) == []

    def test_failed_stream_leaves_nothing(self, blob_store, blob_root):
        """Test a failing stream raises and leaves no blob behind."""
        with pytest.raises(StorageWriteError):
            blob_store.put(_BrokenStream(), 'a.txt')

        assert list(blob_store.iter_storage_refs()) == []
        assert list((blob_root / '.staging').iterdir()) == []

    def test_collision_is_retried(self, blob_store, monkeypatch):
        """Test a colliding name is regenerated instead of overwritten."""
        existing = blob_store.put(BytesIO(b'original'), 'a.txt')
        tokens = iter([existing.removesuffix('.txt'), 'f' * 32])
        monkeypatch.setattr(
            blob_store_module.secrets,
            'token_hex',
            lambda _: next(tokens),
        )

        storage_ref = blob_store.put(BytesIO(b'new'), 'a.txt')

        assert storage_ref == 'f' * 32 + '.txt'
        with blob_store.get(existing) as stream:
            assert stream.read() == b'original'

    def test_persistent_collision_fails_loudly(self, blob_store, monkeypatch):
        """Test generation gives up instead of overwriting."""
        existing = blob_store.put(BytesIO(b'original'), 'a.txt')
        monkeypatch.setattr(
            blob_store_module.secrets,
            'token_hex',
            lambda _: existing.removesuffix('.txt'),
        )

        with pytest.raises(StorageWriteError):
            blob_store.put(BytesIO(b'new'), 'a.txt')

        with blob_store.get(existing) as stream:
            assert stream.read() == b'original'


class TestGetAndSize:
    """Tests for BlobStore.get and BlobStore.size."""

    def test_get_missing(self, blob_store):
        """Test unknown refs raise NotFoundError."""
        with pytest.raises(NotFoundError):
            blob_store.get('0' * 32)

    def test_get_malformed(self, blob_store):
        """Test malformed refs never touch the filesystem."""
        with pytest.raises(NotFoundError):
            blob_store.get('../settings.py')

    def test_get_unreadable(self, blob_store, blob_root):
        """Test a directory under a ref name is a read error."""
        blob_root.mkdir(parents=True)
        (blob_root / ('1' * 32)).mkdir()

        with pytest.raises(StorageReadError):
            blob_store.get('1' * 32)

    def test_size(self, blob_store):
        """Test size reports stored byte count."""
        storage_ref = blob_store.put(BytesIO(b'12345'), 'a.txt')

        assert blob_store.size(storage_ref) == 5

    def test_size_missing(self, blob_store):
        """Test size of unknown refs raises NotFoundError."""
        with pytest.raises(NotFoundError):
            blob_store.size('0' * 32)


class TestDelete:
    """Tests for BlobStore.delete."""

    def test_delete_removes_blob(self, blob_store):
        """Test deleted blobs can no longer be read."""
        storage_ref = blob_store.put(BytesIO(b'x'), 'a.txt')

        blob_store.delete(storage_ref)

        with pytest.raises(NotFoundError):
            blob_store.get(storage_ref)

    def test_delete_is_idempotent(self, blob_store):
        """Test deleting twice succeeds both times."""
        storage_ref = blob_store.put(BytesIO(b'x'), 'a.txt')

        blob_store.delete(storage_ref)
        blob_store.delete(storage_ref)

        assert list(blob_store.iter_storage_refs()) == []

    def test_delete_malformed_is_ignored(self, blob_store):
        """Test malformed refs are logged, not raised."""
        blob_store.delete('not-a-ref')

    def test_delete_failure_raises(self, blob_store, monkeypatch):
        """Test real I/O failures surface as StorageWriteError."""
        storage_ref = blob_store.put(BytesIO(b'x'), 'a.txt')

        def _fail(path):
            raise PermissionError(path)

        monkeypatch.setattr(blob_store_module.os, 'remove', _fail)

        with pytest.raises(StorageWriteError):
            blob_store.delete(storage_ref)

    def test_rollback_put_swallows_failures(self, blob_store, monkeypatch):
        """Test rollback is best-effort."""
        storage_ref = blob_store.put(BytesIO(b'x'), 'a.txt')

        def _fail(path):
            raise PermissionError(path)

        monkeypatch.setattr(blob_store_module.os, 'remove', _fail)

        blob_store.rollback_put(storage_ref)

        assert storage_ref in set(blob_store.iter_storage_refs())


class TestMaintenance:
    """Tests for listing and staging cleanup."""

    def test_iter_storage_refs_skips_foreign_files(self, blob_store, blob_root):
        """Test only generated refs are listed."""
        storage_ref = blob_store.put(BytesIO(b'x'), 'a.txt')
        (blob_root / 'README').write_text('not a blob')

        assert list(blob_store.iter_storage_refs()) == [storage_ref]

    def test_iter_storage_refs_without_root(self, blob_store):
        """Test listing an unused store yields nothing."""
        assert list(blob_store.iter_storage_refs()) == []

    def test_purge_stale_staging(self, blob_store, blob_root):
        """Test old staging files are removed, fresh ones kept."""
        staging = blob_root / '.staging'
        staging.mkdir(parents=True)
        stale = staging / 'upload-stale'
        fresh = staging / 'upload-fresh'
        stale.write_bytes(b'x')
        fresh.write_bytes(b'y')
        two_hours_ago = (datetime.now(tz=UTC) - timedelta(hours=2)).timestamp()
        os.utime(stale, (two_hours_ago, two_hours_ago))

        removed = blob_store.purge_stale_staging(
            datetime.now(tz=UTC) - timedelta(hours=1),
        )

        assert removed == 1
        assert not stale.exists()
        assert fresh.exists()

    def test_purge_skips_vanished_staging_files(self, blob_store, blob_root):
        """Test files removed while scanning do not abort the purge."""
        staging = blob_root / '.staging'
        staging.mkdir(parents=True)
        stale = staging / 'upload-stale'
        stale.write_bytes(b'x')
        two_hours_ago = (datetime.now(tz=UTC) - timedelta(hours=2)).timestamp()
        os.utime(stale, (two_hours_ago, two_hours_ago))
        # stat() of a dangling link fails like a file unlinked mid-scan
        (staging / 'upload-gone').symlink_to(staging / 'missing')

        removed = blob_store.purge_stale_staging(
            datetime.now(tz=UTC) - timedelta(hours=1),
        )

        assert removed == 1
        assert not stale.exists()


def test_build_blob_store_uses_settings(tmp_path):
    """Test the factory reads the root from settings."""
    with override_settings(BLOB_STORAGE_ROOT=str(tmp_path / 'configured')):
        store = build_blob_store()

    assert isinstance(store, BlobStore)
    assert store.location == str(tmp_path / 'configured')
