"""Business logic for storage usage reporting.

Usage is computed for display only. The quota is stored per user but
uploads are never checked against it.
"""

import logging
from dataclasses import dataclass
from typing import Any, final

from django.db.models import Sum

from server.apps.drive.models import Item, UserQuota

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class UsageSummary:
    """Storage usage next to the user's quota."""

    used_bytes: int
    quota_bytes: int

    @property
    def available_bytes(self) -> int:
        """Remaining bytes under the quota (never negative)."""
        return max(0, self.quota_bytes - self.used_bytes)

    @property
    def percentage_used(self) -> float:
        """Share of the quota in use, in percent."""
        if self.quota_bytes == 0:
            return 0.0
        return self.used_bytes / self.quota_bytes * 100


def storage_usage(user: _User) -> int:
    """Total size of a user's items.

    Trashed items count, since their bytes are still stored.

    Args:
        user: Owner of the items.

    Returns:
        Sum of item sizes in bytes.
    """
    return Item.objects.filter(user=user).aggregate(
        total=Sum('size_bytes'),
    )['total'] or 0


def get_or_create_quota(user: _User) -> UserQuota:
    """Get or create quota for user (on-demand creation).

    Args:
        user: User to get quota for.

    Returns:
        UserQuota instance for the user.
    """
    quota, created = UserQuota.objects.get_or_create(user=user)
    if created:
        logger.info(
            'Created quota for user %s: %d bytes',
            user.get_username(),
            quota.quota_bytes,
        )
    return quota


def get_usage_summary(user: _User) -> UsageSummary:
    """Usage and quota of a user, for display.

    Args:
        user: User to summarize.

    Returns:
        UsageSummary with current usage and quota.
    """
    quota = get_or_create_quota(user)
    return UsageSummary(
        used_bytes=storage_usage(user),
        quota_bytes=quota.quota_bytes,
    )
