"""Business logic for daily upload quotas."""

import logging
from dataclasses import dataclass
from typing import Final, final

from server.apps.uploader.config import BYTES_PER_MB, UploaderSettings
from server.apps.uploader.entities import DailyUsageRecord, UsageLimits
from server.apps.uploader.exceptions import QuotaExceededError

logger = logging.getLogger(__name__)

# Reported as "remaining" when a limit does not apply
UNLIMITED: Final = -1


@final
@dataclass(frozen=True, slots=True)
class DailyLimits:
    """Daily caps for one entitlement tier, ``0`` meaning unlimited."""

    max_files: int
    max_size_mb: int

    @property
    def is_unlimited(self) -> bool:
        """Whether neither cap applies."""
        return self.max_files <= 0 and self.max_size_mb <= 0


def daily_limits_for(settings: UploaderSettings, *, is_premium: bool) -> DailyLimits:
    """Get daily caps for a tier.

    Args:
        settings: Uploader configuration.
        is_premium: Whether the caller is premium.

    Returns:
        DailyLimits for the tier. Premium is unlimited unless premium
        caps are configured.
    """
    if is_premium:
        return DailyLimits(
            max_files=settings.premium_user_max_files,
            max_size_mb=settings.premium_user_max_size_mb,
        )
    return DailyLimits(
        max_files=settings.free_user_daily_upload_limit,
        max_size_mb=settings.free_user_daily_size_limit_mb,
    )


def check_daily_quota(
    usage: DailyUsageRecord,
    limits: DailyLimits,
    file_count: int,
    total_bytes: int,
) -> None:
    """Check whether a batch fits into today's quota.

    Args:
        usage: Today's usage for the user.
        limits: Caps for the user's tier.
        file_count: Files in the batch.
        total_bytes: Cumulative batch size in bytes.

    Raises:
        QuotaExceededError: If the batch would exceed either cap.
    """
    if limits.max_files > 0 and usage.files_uploaded + file_count > limits.max_files:
        logger.warning(
            'Daily file limit exceeded for user %s: %d + %d > %d',
            usage.user_id,
            usage.files_uploaded,
            file_count,
            limits.max_files,
        )
        raise QuotaExceededError(
            'Daily file upload limit exceeded. '
            f'Limit: {limits.max_files}, Current: {usage.files_uploaded}',
            limit=limits.max_files,
            used=usage.files_uploaded,
            requested=file_count,
        )

    limit_bytes = limits.max_size_mb * BYTES_PER_MB
    if limit_bytes > 0 and usage.bytes_uploaded + total_bytes > limit_bytes:
        logger.warning(
            'Daily size limit exceeded for user %s: %d + %d > %d bytes',
            usage.user_id,
            usage.bytes_uploaded,
            total_bytes,
            limit_bytes,
        )
        raise QuotaExceededError(
            'Daily size upload limit exceeded. '
            f'Limit: {limits.max_size_mb}MB, '
            f'Current: {usage.bytes_uploaded // BYTES_PER_MB}MB',
            limit=limit_bytes,
            used=usage.bytes_uploaded,
            requested=total_bytes,
        )


def _remaining(limit: int, used: int) -> int:
    if limit <= 0:
        return UNLIMITED
    return max(0, limit - used)


def describe_limits(
    settings: UploaderSettings,
    usage: DailyUsageRecord,
    *,
    is_premium: bool,
) -> UsageLimits:
    """Summarize limits and usage for the limits endpoint.

    Args:
        settings: Uploader configuration.
        usage: Today's usage for the user.
        is_premium: Resolved entitlement.

    Returns:
        UsageLimits snapshot.
    """
    limits = daily_limits_for(settings, is_premium=is_premium)
    used_mb = usage.bytes_uploaded // BYTES_PER_MB
    remaining_bytes = _remaining(
        limits.max_size_mb * BYTES_PER_MB,
        usage.bytes_uploaded,
    )
    return UsageLimits(
        is_premium=is_premium,
        daily_upload_limit=max(0, limits.max_files),
        daily_size_limit_mb=max(0, limits.max_size_mb),
        max_file_size_mb=settings.max_file_size_mb_for(is_premium=is_premium),
        files_uploaded_today=usage.files_uploaded,
        size_uploaded_today_mb=used_mb,
        remaining_files=_remaining(limits.max_files, usage.files_uploaded),
        remaining_size_mb=(
            UNLIMITED if remaining_bytes == UNLIMITED
            else remaining_bytes // BYTES_PER_MB
        ),
    )
