"""Request-scoped value objects of the uploader pipeline.

None of these are persisted; the only long-lived state is the
``DailyUsageRecord`` held by the usage ledger.
"""

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, final

from server.apps.uploader.exceptions import FailureReason, UploaderError


@final
@dataclass(frozen=True, slots=True)
class Principal:
    """User identity resolved from a session token."""

    user_id: str
    user_name: str


@final
@dataclass(frozen=True, slots=True)
class Entitlement:
    """Premium tier resolved for a single request."""

    is_premium: bool
    reason: str | None = None


@final
@dataclass(frozen=True, slots=True)
class DailyUsageRecord:
    """Files and bytes a user uploaded on one calendar day."""

    user_id: str
    day: dt.date
    files_uploaded: int = 0
    bytes_uploaded: int = 0


@final
@dataclass(frozen=True, slots=True)
class LibraryRef:
    """Read-only projection of a host library."""

    id: str
    name: str
    root_path: str
    category: str


@final
@dataclass(frozen=True, slots=True)
class FolderEntry:
    """Single folder inside a library, path relative to the library root."""

    name: str
    path: str
    is_directory: bool = True


@final
@dataclass(frozen=True, slots=True)
class UploadCandidate:
    """One file of an inbound batch.

    ``content`` is a Django ``File`` (usually an ``UploadedFile``) or any
    binary file-like object.
    """

    file_name: str
    byte_size: int
    content: Any = field(repr=False)


@final
@dataclass(frozen=True, slots=True)
class UploadOutcome:
    """Result of persisting one candidate."""

    file_name: str
    final_path: str
    byte_size: int


@final
@dataclass(frozen=True, slots=True)
class UploadRequest:
    """Parsed upload request."""

    library_id: str
    candidates: tuple[UploadCandidate, ...]
    folder_id: str = ''
    claimed_premium: bool = False
    premium_token: str | None = None

    @property
    def total_bytes(self) -> int:
        """Cumulative size of the batch."""
        return sum(candidate.byte_size for candidate in self.candidates)


@final
@dataclass(frozen=True, slots=True)
class UploadResult:
    """Accepted batch."""

    outcomes: tuple[UploadOutcome, ...]
    is_premium: bool


@final
@dataclass(frozen=True, slots=True)
class AdmissionDecision:
    """Accept/reject verdict for a candidate or a whole request."""

    accepted: bool
    failure_reason: FailureReason | None = None
    upgrade_required: bool = False
    message: str = ''
    error: UploaderError | None = field(default=None, repr=False, compare=False)

    @classmethod
    def accept(cls) -> 'AdmissionDecision':
        """Build an accepting decision.

        Returns:
            Decision with ``accepted`` set.
        """
        return cls(accepted=True)

    @classmethod
    def reject(cls, error: UploaderError) -> 'AdmissionDecision':
        """Build a rejecting decision from an uploader error.

        Args:
            error: The rejection raised by a gate step.

        Returns:
            Decision carrying the error's reason and upgrade hint.
        """
        return cls(
            accepted=False,
            failure_reason=error.reason,
            upgrade_required=error.upgrade_required,
            message=error.message,
            error=error,
        )

    def raise_if_rejected(self) -> None:
        """Raise the error behind a rejecting decision.

        Raises:
            UploaderError: The rejection this decision was built from.
        """
        if self.error is not None:
            raise self.error


@final
@dataclass(frozen=True, slots=True)
class UsageLimits:
    """Current usage and remaining quota reported to the client.

    Remaining values are ``-1`` when the corresponding limit is unlimited.
    """

    is_premium: bool
    daily_upload_limit: int
    daily_size_limit_mb: int
    max_file_size_mb: int
    files_uploaded_today: int
    size_uploaded_today_mb: int
    remaining_files: int
    remaining_size_mb: int
