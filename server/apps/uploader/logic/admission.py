"""Upload admission pipeline.

The gate runs every check in a fixed order and stops at the first
failure. Nothing is written until the whole batch has passed:

1. App authentication (shared secrets in headers)
2. Session validation (bearer token)
3. Uploads enabled
4. Input shape (library id, non-empty batch, sane file names)
5. Entitlement resolution
6. Daily quota reservation (free tier, or premium with premium caps)
7. Library lookup
8. Target directory (auto-created when folder creation is allowed)
9. Per-file size and extension checks
10. Persist files, give back the quota of files never written
11. Ask the host to rescan (best effort)
"""

import dataclasses
import logging
from collections.abc import Mapping
from pathlib import Path, PurePosixPath
from typing import final

from server.apps.uploader.config import BYTES_PER_MB, UploaderSettings
from server.apps.uploader.entities import (
    AdmissionDecision,
    DailyUsageRecord,
    Entitlement,
    LibraryRef,
    Principal,
    UploadCandidate,
    UploadOutcome,
    UploadRequest,
    UploadResult,
    UsageLimits,
)
from server.apps.uploader.exceptions import (
    FeatureDisabledError,
    SessionInvalidError,
    SizeExceededError,
    TypeRejectedError,
    UploaderError,
    UploadValidationError,
)
from server.apps.uploader.infrastructure.library_host import LibraryHost
from server.apps.uploader.infrastructure.sessions import (
    SessionStore,
    extract_bearer_token,
)
from server.apps.uploader.logic import extension_policy
from server.apps.uploader.logic.app_auth import authenticate_app
from server.apps.uploader.logic.entitlements import EntitlementResolver
from server.apps.uploader.logic.library_directory import LibraryDirectory
from server.apps.uploader.logic.quota_operations import (
    daily_limits_for,
    describe_limits,
)
from server.apps.uploader.logic.upload_executor import UploadExecutor
from server.apps.uploader.logic.usage_ledger import DailyUsageLedger

logger = logging.getLogger(__name__)


def clean_file_name(file_name: str) -> str:
    """Reduce a client supplied file name to a safe base name.

    Args:
        file_name: Name from the multipart part.

    Returns:
        Base name without directory components.

    Raises:
        UploadValidationError: If no usable name remains.
    """
    base_name = PurePosixPath(file_name.replace('\\', '/')).name
    if not base_name or base_name in {'.', '..'} or '\x00' in base_name:
        raise UploadValidationError(f'Invalid file name: {file_name!r}')
    return base_name


@final
class AdmissionGate:
    """Decides whether upload batches are accepted and persists them."""

    def __init__(  # noqa: WPS211
        self,
        settings: UploaderSettings,
        ledger: DailyUsageLedger,
        sessions: SessionStore,
        host: LibraryHost,
        resolver: EntitlementResolver,
        directory: LibraryDirectory,
        executor: UploadExecutor,
    ) -> None:
        """Initialize gate with its collaborators.

        Args:
            settings: Uploader configuration.
            ledger: Process-wide daily usage ledger.
            sessions: Session store resolving bearer tokens.
            host: Media library host, used for rescans.
            resolver: Premium entitlement resolver.
            directory: Library and folder directory.
            executor: Writes admitted files.
        """
        self._settings = settings
        self._ledger = ledger
        self._sessions = sessions
        self._host = host
        self._resolver = resolver
        self._directory = directory
        self._executor = executor

    @property
    def directory(self) -> LibraryDirectory:
        """Library directory used for lookups and folder creation."""
        return self._directory

    def authenticate(self, headers: Mapping[str, str]) -> Principal:
        """Run app authentication and session validation.

        The session store is not consulted unless the app headers pass.

        Args:
            headers: Request headers.

        Returns:
            Principal of the calling user.

        Raises:
            AuthenticationFailedError: If app identity checks fail.
            SessionInvalidError: If the bearer token is missing or unknown.
        """
        authenticate_app(headers, self._settings)

        token = extract_bearer_token(headers)
        if token is None:
            raise SessionInvalidError('Invalid or expired session')

        try:
            principal = self._sessions.resolve(token)
        except Exception as error:
            logger.exception('Session lookup failed')
            raise SessionInvalidError('Invalid or expired session') from error

        if principal is None:
            logger.warning('Rejected unknown session token')
            raise SessionInvalidError('Invalid or expired session')
        return principal

    def resolve_entitlement(
        self,
        principal: Principal,
        claimed_premium: bool,
        premium_token: str | None,
    ) -> Entitlement:
        """Resolve the caller's entitlement for this request."""
        return self._resolver.resolve(
            principal.user_id,
            claimed_premium,
            premium_token,
        )

    def upload(
        self,
        headers: Mapping[str, str],
        upload_request: UploadRequest,
    ) -> UploadResult:
        """Admit and persist an upload batch.

        Args:
            headers: Request headers carrying app identity and session.
            upload_request: Parsed upload request.

        Returns:
            UploadResult with one outcome per file.

        Raises:
            UploaderError: Subclass naming the first failed step.
        """
        principal = self.authenticate(headers)

        if not self._settings.enable_uploads:
            raise FeatureDisabledError(
                'Upload functionality is currently disabled',
            )

        upload_request = self._validate_shape(upload_request)

        entitlement = self.resolve_entitlement(
            principal,
            upload_request.claimed_premium,
            upload_request.premium_token,
        )
        reservation = None
        if self._tracks_usage(entitlement):
            reservation = self._ledger.reserve(
                principal.user_id,
                daily_limits_for(
                    self._settings,
                    is_premium=entitlement.is_premium,
                ),
                len(upload_request.candidates),
                upload_request.total_bytes,
            )

        outcomes: list[UploadOutcome] = []
        try:
            library = self._directory.get_library(upload_request.library_id)
            target_dir = self._directory.resolve_target_directory(
                library,
                upload_request.folder_id,
            )
            self._check_batch(principal, entitlement, library, upload_request)
            self._persist(
                principal,
                entitlement,
                library,
                target_dir,
                upload_request.candidates,
                outcomes,
            )
        finally:
            # Only files that landed on disk stay counted
            if reservation is not None:
                self._release_unwritten(
                    reservation,
                    upload_request,
                    outcomes,
                )

        self._request_rescan(library, outcomes)
        return UploadResult(
            outcomes=tuple(outcomes),
            is_premium=entitlement.is_premium,
        )

    def evaluate_candidate(
        self,
        candidate: UploadCandidate,
        *,
        entitlement: Entitlement,
        allowed: frozenset[str],
    ) -> AdmissionDecision:
        """Run per-file checks for one candidate.

        Args:
            candidate: File to check.
            entitlement: Resolved tier of the caller.
            allowed: Extension allow-list of the target library.

        Returns:
            AdmissionDecision for the file.
        """
        try:
            self._check_candidate(candidate, entitlement, allowed)
        except UploaderError as error:
            return AdmissionDecision.reject(error)
        return AdmissionDecision.accept()

    def describe_limits(
        self,
        principal: Principal,
        claimed_premium: bool,
        premium_token: str | None,
    ) -> UsageLimits:
        """Report the caller's limits and today's usage.

        Args:
            principal: Authenticated caller.
            claimed_premium: Premium flag sent by the app.
            premium_token: Optional premium token.

        Returns:
            UsageLimits for the resolved tier.
        """
        entitlement = self.resolve_entitlement(
            principal,
            claimed_premium,
            premium_token,
        )
        return describe_limits(
            self._settings,
            self._ledger.get(principal.user_id),
            is_premium=entitlement.is_premium,
        )

    def _validate_shape(self, upload_request: UploadRequest) -> UploadRequest:
        if not upload_request.library_id:
            raise UploadValidationError('LibraryId parameter is required')
        if not upload_request.candidates:
            raise UploadValidationError('No files provided')

        candidates = tuple(
            dataclasses.replace(
                candidate,
                file_name=clean_file_name(candidate.file_name),
            )
            for candidate in upload_request.candidates
        )
        return dataclasses.replace(upload_request, candidates=candidates)

    def _tracks_usage(self, entitlement: Entitlement) -> bool:
        if not entitlement.is_premium:
            return True
        return self._settings.premium_caps_configured

    def _check_candidate(
        self,
        candidate: UploadCandidate,
        entitlement: Entitlement,
        allowed: frozenset[str],
    ) -> None:
        cap_mb = self._settings.max_file_size_mb_for(
            is_premium=entitlement.is_premium,
        )
        if cap_mb > 0 and candidate.byte_size > cap_mb * BYTES_PER_MB:
            if entitlement.is_premium:
                raise SizeExceededError(
                    f'File {candidate.file_name} exceeds maximum size '
                    f'of {cap_mb}MB',
                )
            raise SizeExceededError(
                f'File {candidate.file_name} exceeds free user limit '
                f'of {cap_mb}MB. Upgrade to premium for larger files.',
                upgrade_required=True,
            )

        if not extension_policy.is_allowed(candidate.file_name, allowed):
            extension = PurePosixPath(candidate.file_name).suffix
            raise TypeRejectedError(
                f'File type not allowed for this library: {extension}',
            )

    def _check_batch(
        self,
        principal: Principal,
        entitlement: Entitlement,
        library: LibraryRef,
        upload_request: UploadRequest,
    ) -> None:
        allowed = extension_policy.allowed_extensions(
            library.category,
            self._settings.extensions,
        )
        for candidate in upload_request.candidates:
            decision = self.evaluate_candidate(
                candidate,
                entitlement=entitlement,
                allowed=allowed,
            )
            if not decision.accepted:
                logger.warning(
                    'Rejected batch of user %s at %s: %s',
                    principal.user_name,
                    candidate.file_name,
                    decision.message,
                )
                decision.raise_if_rejected()

    def _persist(  # noqa: WPS211
        self,
        principal: Principal,
        entitlement: Entitlement,
        library: LibraryRef,
        target_dir: Path,
        candidates: tuple[UploadCandidate, ...],
        outcomes: list[UploadOutcome],
    ) -> None:
        for candidate in candidates:
            try:
                outcome = self._executor.persist(target_dir, candidate)
            except Exception:
                # Files written before the failure stay on disk
                if outcomes:
                    self._request_rescan(library, outcomes)
                raise
            outcomes.append(outcome)
            logger.info(
                'File uploaded: %s by user %s (Premium: %s)',
                outcome.final_path,
                principal.user_name,
                entitlement.is_premium,
            )

    def _release_unwritten(
        self,
        reservation: DailyUsageRecord,
        upload_request: UploadRequest,
        outcomes: list[UploadOutcome],
    ) -> None:
        unwritten_files = len(upload_request.candidates) - len(outcomes)
        if unwritten_files <= 0:
            return
        written_bytes = sum(outcome.byte_size for outcome in outcomes)
        self._ledger.release(
            reservation.user_id,
            reservation.day,
            unwritten_files,
            upload_request.total_bytes - written_bytes,
        )

    def _request_rescan(
        self,
        library: LibraryRef,
        outcomes: list[UploadOutcome],
    ) -> None:
        try:
            self._host.request_rescan(
                library,
                [outcome.final_path for outcome in outcomes],
            )
        except Exception:
            # Files are persisted already, a failed rescan is not fatal
            logger.exception('Library rescan failed for %s', library.id)
