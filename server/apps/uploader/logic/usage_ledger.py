"""In-memory daily upload counters."""

import dataclasses
import datetime as dt
import logging
import threading
from collections.abc import Callable
from typing import final

from django.utils import timezone

from server.apps.uploader.entities import DailyUsageRecord
from server.apps.uploader.logic.quota_operations import (
    DailyLimits,
    check_daily_quota,
)

logger = logging.getLogger(__name__)


def _check_increment(file_count: int, total_bytes: int) -> None:
    if file_count < 0 or total_bytes < 0:
        raise ValueError('Usage increments must not be negative')


def _log_usage(
    action: str,
    record: DailyUsageRecord,
    file_count: int,
    total_bytes: int,
) -> None:
    logger.info(
        '%s usage for user %s: %d files, %d bytes '
        '(today: %d files, %d bytes)',
        action,
        record.user_id,
        file_count,
        total_bytes,
        record.files_uploaded,
        record.bytes_uploaded,
    )


@final
class DailyUsageLedger:
    """Per-user, per-day counters of uploaded files and bytes.

    Records are keyed by ``(user_id, day)`` where the day comes from the
    server's local calendar, so counters reset when the date changes.
    Every read-modify-write happens under one lock; contention is low
    and no increment may be lost.

    The ledger lives for the process lifetime. Records older than
    ``retention_days`` are evicted on every write.
    """

    def __init__(
        self,
        retention_days: int = 2,
        today: Callable[[], dt.date] = timezone.localdate,
    ) -> None:
        """Initialize an empty ledger.

        Args:
            retention_days: Days of history to keep, counting today.
                ``0`` keeps every record.
            today: Clock returning the current local date.
        """
        self._retention_days = retention_days
        self._today = today
        self._lock = threading.Lock()
        self._records: dict[tuple[str, dt.date], DailyUsageRecord] = {}

    def __len__(self) -> int:
        """Number of records currently held."""
        with self._lock:
            return len(self._records)

    def get(self, user_id: str) -> DailyUsageRecord:
        """Get today's usage for a user.

        Args:
            user_id: User to look up.

        Returns:
            Today's record, or a zero record if nothing was uploaded yet.
        """
        day = self._today()
        with self._lock:
            record = self._records.get((user_id, day))
        if record is None:
            return DailyUsageRecord(user_id=user_id, day=day)
        return record

    def record(
        self,
        user_id: str,
        file_count: int,
        total_bytes: int,
    ) -> DailyUsageRecord:
        """Add an accepted batch to today's usage.

        Args:
            user_id: Uploading user.
            file_count: Files in the batch.
            total_bytes: Cumulative size of the batch in bytes.

        Returns:
            Updated record.

        Raises:
            ValueError: If a count is negative.
        """
        _check_increment(file_count, total_bytes)

        day = self._today()
        with self._lock:
            updated = self._add(user_id, day, file_count, total_bytes)

        _log_usage('Recorded', updated, file_count, total_bytes)
        return updated

    def reserve(
        self,
        user_id: str,
        limits: DailyLimits,
        file_count: int,
        total_bytes: int,
    ) -> DailyUsageRecord:
        """Check a batch against the daily caps and count it in one step.

        Concurrent batches of the same user cannot both pass the check
        before either is counted.

        Args:
            user_id: Uploading user.
            limits: Caps of the user's tier.
            file_count: Files in the batch.
            total_bytes: Cumulative size of the batch in bytes.

        Returns:
            Updated record, its ``day`` identifies the reservation.

        Raises:
            QuotaExceededError: If the batch does not fit; nothing is
                counted then.
            ValueError: If a count is negative.
        """
        _check_increment(file_count, total_bytes)

        day = self._today()
        with self._lock:
            current = self._records.get((user_id, day)) or DailyUsageRecord(
                user_id=user_id,
                day=day,
            )
            check_daily_quota(current, limits, file_count, total_bytes)
            updated = self._add(user_id, day, file_count, total_bytes)

        _log_usage('Reserved', updated, file_count, total_bytes)
        return updated

    def release(
        self,
        user_id: str,
        day: dt.date,
        file_count: int,
        total_bytes: int,
    ) -> None:
        """Give back part of a reservation that was never written.

        Counters never drop below zero. Releasing a day that was already
        evicted is a no-op.

        Args:
            user_id: User holding the reservation.
            day: Day the reservation was made on.
            file_count: Files to give back.
            total_bytes: Bytes to give back.

        Raises:
            ValueError: If a count is negative.
        """
        _check_increment(file_count, total_bytes)

        key = (user_id, day)
        with self._lock:
            current = self._records.get(key)
            if current is None:
                return
            updated = dataclasses.replace(
                current,
                files_uploaded=max(0, current.files_uploaded - file_count),
                bytes_uploaded=max(0, current.bytes_uploaded - total_bytes),
            )
            self._records[key] = updated

        _log_usage('Released', updated, file_count, total_bytes)

    @property
    def retention_days(self) -> int:
        """Days of history kept, counting today."""
        return self._retention_days

    def prune(self) -> int:
        """Evict records that fell out of the retention window.

        Returns:
            Number of records removed.
        """
        with self._lock:
            return self._evict(self._today())

    def _add(
        self,
        user_id: str,
        day: dt.date,
        file_count: int,
        total_bytes: int,
    ) -> DailyUsageRecord:
        # Caller holds the lock
        current = self._records.get((user_id, day)) or DailyUsageRecord(
            user_id=user_id,
            day=day,
        )
        updated = dataclasses.replace(
            current,
            files_uploaded=current.files_uploaded + file_count,
            bytes_uploaded=current.bytes_uploaded + total_bytes,
        )
        self._records[(user_id, day)] = updated
        self._evict(day)
        return updated

    def _evict(self, today: dt.date) -> int:
        # Caller holds the lock
        if self._retention_days <= 0:
            return 0

        cutoff = today - dt.timedelta(days=self._retention_days - 1)
        stale = [key for key in self._records if key[1] < cutoff]
        for key in stale:
            del self._records[key]

        if stale:
            logger.debug('Evicted %d stale usage records', len(stale))
        return len(stale)
