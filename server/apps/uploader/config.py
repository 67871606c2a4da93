"""Typed uploader configuration passed into every component."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Final, final

from django.conf import settings as django_settings

# Bytes in one megabyte as used by every size cap
BYTES_PER_MB: Final = 1024 * 1024


@final
@dataclass(frozen=True, slots=True)
class UploaderSettings:
    """Uploader configuration snapshot.

    Built once from Django settings and handed to components explicitly,
    so tests can construct synthetic configurations directly.
    Every size is in megabytes and ``0`` disables the corresponding cap.
    """

    api_key: str = ''
    security_token: str = ''
    allowed_app_package: str = ''
    client_identifier: str = 'MobileUploader'

    enable_uploads: bool = True
    allow_folder_creation: bool = True
    max_folder_depth: int = 3

    max_file_size_mb: int = 100
    free_user_max_file_size_mb: int = 50
    free_user_daily_upload_limit: int = 10
    free_user_daily_size_limit_mb: int = 500
    premium_user_max_files: int = 0
    premium_user_max_size_mb: int = 0
    usage_retention_days: int = 2

    enable_premium_bypass: bool = False
    premium_api_key: str = ''
    premium_verification_endpoint: str = ''
    premium_verification_timeout: float = 5.0

    extensions: Mapping[str, Sequence[str]] = field(default_factory=dict)

    @property
    def premium_caps_configured(self) -> bool:
        """Whether premium users have daily caps of their own."""
        return self.premium_user_max_files > 0 or self.premium_user_max_size_mb > 0

    def max_file_size_mb_for(self, *, is_premium: bool) -> int:
        """Get the per-file cap for an entitlement tier.

        Args:
            is_premium: Whether the caller is premium.

        Returns:
            Cap in megabytes, ``0`` for no cap.
        """
        if is_premium:
            return self.max_file_size_mb
        return self.free_user_max_file_size_mb

    @classmethod
    def from_django_settings(cls, settings: Any = django_settings) -> 'UploaderSettings':
        """Build settings from ``UPLOADER_*`` Django settings.

        Args:
            settings: Django settings object (defaults to the global one).

        Returns:
            UploaderSettings snapshot.
        """
        defaults = cls()
        return cls(
            api_key=getattr(settings, 'UPLOADER_API_KEY', defaults.api_key),
            security_token=getattr(
                settings, 'UPLOADER_SECURITY_TOKEN', defaults.security_token,
            ),
            allowed_app_package=getattr(
                settings,
                'UPLOADER_ALLOWED_APP_PACKAGE',
                defaults.allowed_app_package,
            ),
            client_identifier=getattr(
                settings,
                'UPLOADER_CLIENT_IDENTIFIER',
                defaults.client_identifier,
            ),
            enable_uploads=getattr(
                settings, 'UPLOADER_ENABLE_UPLOADS', defaults.enable_uploads,
            ),
            allow_folder_creation=getattr(
                settings,
                'UPLOADER_ALLOW_FOLDER_CREATION',
                defaults.allow_folder_creation,
            ),
            max_folder_depth=getattr(
                settings, 'UPLOADER_MAX_FOLDER_DEPTH', defaults.max_folder_depth,
            ),
            max_file_size_mb=getattr(
                settings, 'UPLOADER_MAX_FILE_SIZE_MB', defaults.max_file_size_mb,
            ),
            free_user_max_file_size_mb=getattr(
                settings,
                'UPLOADER_FREE_USER_MAX_FILE_SIZE_MB',
                defaults.free_user_max_file_size_mb,
            ),
            free_user_daily_upload_limit=getattr(
                settings,
                'UPLOADER_FREE_USER_DAILY_UPLOAD_LIMIT',
                defaults.free_user_daily_upload_limit,
            ),
            free_user_daily_size_limit_mb=getattr(
                settings,
                'UPLOADER_FREE_USER_DAILY_SIZE_LIMIT_MB',
                defaults.free_user_daily_size_limit_mb,
            ),
            premium_user_max_files=getattr(
                settings,
                'UPLOADER_PREMIUM_USER_MAX_FILES',
                defaults.premium_user_max_files,
            ),
            premium_user_max_size_mb=getattr(
                settings,
                'UPLOADER_PREMIUM_USER_MAX_SIZE_MB',
                defaults.premium_user_max_size_mb,
            ),
            usage_retention_days=getattr(
                settings,
                'UPLOADER_USAGE_RETENTION_DAYS',
                defaults.usage_retention_days,
            ),
            enable_premium_bypass=getattr(
                settings,
                'UPLOADER_ENABLE_PREMIUM_BYPASS',
                defaults.enable_premium_bypass,
            ),
            premium_api_key=getattr(
                settings, 'UPLOADER_PREMIUM_API_KEY', defaults.premium_api_key,
            ),
            premium_verification_endpoint=getattr(
                settings,
                'UPLOADER_PREMIUM_VERIFICATION_ENDPOINT',
                defaults.premium_verification_endpoint,
            ),
            premium_verification_timeout=getattr(
                settings,
                'UPLOADER_PREMIUM_VERIFICATION_TIMEOUT',
                defaults.premium_verification_timeout,
            ),
            extensions=getattr(settings, 'UPLOADER_EXTENSIONS', {}),
        )
