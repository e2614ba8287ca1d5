"""Database models for drive app."""

from typing import Any, Final, final

from typing_extensions import override

from django.conf import settings
from django.db import models
from django.utils import timezone

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_MIME_TYPE_MAX_LENGTH: Final = 255
_EXTENSION_MAX_LENGTH: Final = 32
_STORAGE_REF_MAX_LENGTH: Final = 64
_ENCRYPTION_FIELD_MAX_LENGTH: Final = 64

# Longest allowed root-to-leaf chain of items (root-level items have depth 1)
MAX_TREE_DEPTH: Final = 64

# Default quota: 10 GB in bytes
_DEFAULT_QUOTA_BYTES: Final = 10 * 1024 * 1024 * 1024


class ItemType(models.TextChoices):
    """Kind of node in the item tree."""

    FILE = 'file', 'File'
    FOLDER = 'folder', 'Folder'


@final
class Item(models.Model):
    """File or folder in a user's tree.

    Folders only organize other items. Files point at their bytes through
    ``storage_ref``, a random name inside the blob store that has nothing
    to do with the user-visible ``name``.
    """

    # Owner relationship
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='items',
        db_index=True,
    )

    # Null for root-level items
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='children',
    )

    item_type = models.CharField(
        max_length=6,
        choices=ItemType.choices,
    )

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
    )

    # File-only fields
    storage_ref = models.CharField(
        max_length=_STORAGE_REF_MAX_LENGTH,
        null=True,
        blank=True,
        unique=True,
        help_text='Random blob name in storage, never shown to clients',
    )

    mime_type = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
        null=True,
        blank=True,
    )

    size_bytes = models.BigIntegerField(
        default=0,
        help_text='File size in bytes (0 for folders)',
    )

    extension = models.CharField(
        max_length=_EXTENSION_MAX_LENGTH,
        null=True,
        blank=True,
    )

    # Reserved for encryption at rest, not read by the item store
    is_encrypted = models.BooleanField(default=False)
    encryption_iv = models.CharField(
        max_length=_ENCRYPTION_FIELD_MAX_LENGTH,
        null=True,
        blank=True,
    )
    encryption_auth_tag = models.CharField(
        max_length=_ENCRYPTION_FIELD_MAX_LENGTH,
        null=True,
        blank=True,
    )

    # Flags
    is_starred = models.BooleanField(default=False)
    is_trashed = models.BooleanField(default=False, db_index=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_accessed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        """Model metadata."""

        verbose_name = 'Item'  # type: ignore[mutable-override]
        verbose_name_plural = 'Items'  # type: ignore[mutable-override]
        ordering = ['-created_at', '-id']

        indexes = [
            # Optimize folder listing queries
            models.Index(
                fields=['user', 'parent'],
                name='items_user_parent_idx',
            ),
            # Optimize recent files queries
            models.Index(
                fields=['user', '-last_accessed_at'],
                name='items_user_recent_idx',
            ),
        ]

        constraints = [
            # Files always have bytes, folders never do
            models.CheckConstraint(
                condition=(
                    models.Q(item_type=ItemType.FILE, storage_ref__isnull=False)
                    | models.Q(
                        item_type=ItemType.FOLDER,
                        storage_ref__isnull=True,
                    )
                ),
                name='items_storage_ref_matches_type',
            ),
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='items_size_bytes_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.get_username()}:{self.item_type}:{self.name}'

    @property
    def is_folder(self) -> bool:
        """Whether this item is a folder."""
        return self.item_type == ItemType.FOLDER

    @property
    def is_file(self) -> bool:
        """Whether this item is a file."""
        return self.item_type == ItemType.FILE

    def as_public_dict(self) -> dict[str, Any]:
        """Client-safe representation of the item.

        ``storage_ref`` and the encryption placeholders are left out.

        Returns:
            Mapping of public field names to values.
        """
        return {
            'id': self.id,
            'parent_id': self.parent_id,
            'type': self.item_type,
            'name': self.name,
            'mime_type': self.mime_type,
            'size_bytes': self.size_bytes,
            'extension': self.extension,
            'is_starred': self.is_starred,
            'is_trashed': self.is_trashed,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'last_accessed_at': self.last_accessed_at,
        }


@final
class UserQuota(models.Model):
    """Storage quota for a user.

    Only stored and displayed. Uploads are never blocked by it.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='quota',
        primary_key=True,
    )

    quota_bytes = models.BigIntegerField(
        default=_DEFAULT_QUOTA_BYTES,
        help_text='Storage quota limit in bytes',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'User Quota'  # type: ignore[mutable-override]
        verbose_name_plural = 'User Quotas'  # type: ignore[mutable-override]

        constraints = [
            models.CheckConstraint(
                condition=models.Q(quota_bytes__gte=0),
                name='quota_bytes_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.get_username()}: {self.quota_bytes}'
