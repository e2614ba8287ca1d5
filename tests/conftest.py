"""Shared fixtures for drive app tests."""

import pytest
from django.contrib.auth import get_user_model

from server.apps.drive.infrastructure.blob_store import BlobStore

User = get_user_model()


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def blob_root(tmp_path):
    """Isolated blob directory.

    Returns:
        Path of an empty directory for blobs.
    """
    return tmp_path / 'blobs'


@pytest.fixture
def blob_store(blob_root):
    """Blob store rooted in a temporary directory.

    Returns:
        BlobStore instance.
    """
    return BlobStore(location=blob_root)
