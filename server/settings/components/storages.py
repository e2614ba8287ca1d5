"""Blob storage configuration.

User file content lives in a single local (or locally mounted) directory.
Blobs are stored under random names, so the directory is shared by all
users without per-user subfolders.
"""

from typing import Any, Final

from server.settings.components import BASE_DIR, config

# Root directory of the blob store
BLOB_STORAGE_ROOT: Final = config(
    'BLOB_STORAGE_ROOT',
    default=str(BASE_DIR.joinpath('storage', 'blobs')),
)

# Unreferenced blobs younger than this are left alone by the sweep,
# they may belong to an upload that has not been recorded yet
BLOB_ORPHAN_GRACE_MINUTES: Final = config(
    'BLOB_ORPHAN_GRACE_MINUTES',
    cast=int,
    default=60,
)

STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        # Keep static files separate from user files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
