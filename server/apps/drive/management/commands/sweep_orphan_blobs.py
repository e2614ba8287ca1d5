"""Management command to remove blobs that no item references."""

import logging
from datetime import timedelta
from typing import Any

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from server.apps.drive.exceptions import StorageWriteError
from server.apps.drive.infrastructure.blob_store import build_blob_store
from server.apps.drive.models import Item, ItemType

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Delete orphaned blobs and report file items with missing content."""

    help = 'Remove unreferenced blobs and stale staging files'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--grace-minutes',
            type=int,
            default=settings.BLOB_ORPHAN_GRACE_MINUTES,
            help=(
                'Skip blobs younger than this, they may belong to an '
                'upload in progress (default: %(default)s)'
            ),
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the sweep command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        grace_minutes = options['grace_minutes']

        blob_store = build_blob_store()
        cutoff = timezone.now() - timedelta(minutes=grace_minutes)

        self.stdout.write(
            f'Sweeping {blob_store.location} for blobs older than {cutoff}',
        )

        referenced = set(
            Item.objects.filter(
                item_type=ItemType.FILE,
            ).values_list('storage_ref', flat=True),
        )
        on_disk = set(blob_store.iter_storage_refs())

        count = 0
        failed = 0

        for storage_ref in sorted(on_disk - referenced):
            if blob_store.get_modified_time(storage_ref) >= cutoff:
                continue

            if dry_run:
                self.stdout.write(f'Would delete: {storage_ref}')
                count += 1
                continue

            try:
                blob_store.delete(storage_ref)
            except StorageWriteError as exc:
                self.stderr.write(f'Failed to delete {storage_ref}: {exc}')
                logger.exception('Failed to sweep orphaned blob: %s', storage_ref)
                failed += 1
            else:
                count += 1
                logger.info('Swept orphaned blob: %s', storage_ref)

        for missing_ref in sorted(referenced - on_disk):
            self.stderr.write(f'Missing content for file record: {missing_ref}')
            logger.warning('File record without blob: %s', missing_ref)

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would sweep {count} orphaned blobs'),
            )
            return

        staged = blob_store.purge_stale_staging(cutoff)
        self.stdout.write(
            self.style.SUCCESS(
                f'Swept {count} orphaned blobs, {failed} failed, '
                f'{staged} stale staging files removed',
            ),
        )
