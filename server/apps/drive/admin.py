"""Django admin configuration for drive app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.html import format_html

from server.apps.drive.logic.usage_operations import storage_usage
from server.apps.drive.models import Item, UserQuota


def _format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < 1024:
        return f'{size_bytes} B'
    if size_bytes < 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / 1024:.1f} KB'
    if size_bytes < 1024 * 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / (1024 * 1024):.1f} MB'
    return f'{size_bytes / (1024 * 1024 * 1024):.1f} GB'


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin[Item]):
    """Admin interface for Item model.

    Deleting is disabled: removing rows here would skip blob cleanup.
    """

    list_display = [
        'name',
        'item_type',
        'user',
        'size_display',
        'is_starred',
        'is_trashed',
        'created_at',
    ]

    list_filter = [
        'item_type',
        'is_trashed',
        'is_starred',
        'user',
    ]

    search_fields = [
        'name',
    ]

    readonly_fields = [
        'item_type',
        'storage_ref',
        'size_bytes',
        'mime_type',
        'extension',
        'created_at',
        'updated_at',
        'last_accessed_at',
    ]

    fieldsets = (
        ('Item Information', {
            'fields': ('name', 'item_type', 'user', 'parent'),
        }),
        ('File Metadata', {
            'fields': (
                'storage_ref',
                'size_bytes',
                'mime_type',
                'extension',
            ),
        }),
        ('Flags', {
            'fields': ('is_starred', 'is_trashed'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_accessed_at'),
        }),
    )

    def size_display(self, obj: Item) -> str:
        """Display item size in human-readable format.

        Args:
            obj: Item instance.

        Returns:
            Formatted size string, '-' for folders.
        """
        if obj.is_folder:
            return '-'
        return _format_bytes(obj.size_bytes)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def has_delete_permission(
        self,
        request: HttpRequest,
        obj: Item | None = None,
    ) -> bool:
        """Disallow deletes that would bypass blob cleanup.

        Args:
            request: HTTP request.
            obj: Item instance, if any.

        Returns:
            Always False.
        """
        return False

    def get_queryset(self, request: HttpRequest) -> QuerySet[Item]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user', 'parent')


@admin.register(UserQuota)
class UserQuotaAdmin(admin.ModelAdmin[UserQuota]):
    """Admin interface for UserQuota model."""

    list_display = [
        'user',
        'quota_display',
        'used_display',
        'status_display',
    ]

    search_fields = [
        'user__username',
        'user__email',
    ]

    readonly_fields = [
        'user',
    ]

    def quota_display(self, obj: UserQuota) -> str:
        """Display quota in human-readable format.

        Args:
            obj: UserQuota instance.

        Returns:
            Formatted quota string.
        """
        return _format_bytes(obj.quota_bytes)
    quota_display.short_description = 'Quota'  # type: ignore[attr-defined]

    def used_display(self, obj: UserQuota) -> str:
        """Display current usage in human-readable format.

        Args:
            obj: UserQuota instance.

        Returns:
            Formatted usage string.
        """
        return _format_bytes(storage_usage(obj.user))
    used_display.short_description = 'Used'  # type: ignore[attr-defined]

    def status_display(self, obj: UserQuota) -> str:
        """Display status indicator based on usage.

        Args:
            obj: UserQuota instance.

        Returns:
            HTML formatted status indicator.
        """
        used_bytes = storage_usage(obj.user)
        if obj.quota_bytes == 0:
            percentage = 0.0
        else:
            percentage = (used_bytes / obj.quota_bytes) * 100

        if percentage >= 100:
            color = '#dc3545'  # Red - over quota
            status = 'Over Quota'
        elif percentage >= 90:
            color = '#ffc107'  # Yellow - warning
            status = 'Warning'
        else:
            color = '#28a745'  # Green - ok
            status = 'OK'

        return format_html(
            '<span style="color: {color}; font-weight: bold;">'
            '{status}</span>',
            color=color,
            status=status,
        )
    status_display.short_description = 'Status'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[UserQuota]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user')
