"""Assembly of uploader components for a request."""

from django.apps import apps
from django.conf import settings

from server.apps.uploader.config import UploaderSettings
from server.apps.uploader.infrastructure.library_host import (
    SettingsLibraryHost,
)
from server.apps.uploader.infrastructure.premium_verification import (
    HttpPremiumVerifier,
)
from server.apps.uploader.infrastructure.sessions import DjangoSessionStore
from server.apps.uploader.logic.admission import AdmissionGate
from server.apps.uploader.logic.entitlements import EntitlementResolver
from server.apps.uploader.logic.library_directory import LibraryDirectory
from server.apps.uploader.logic.upload_executor import UploadExecutor
from server.apps.uploader.logic.usage_ledger import DailyUsageLedger


def get_usage_ledger() -> DailyUsageLedger:
    """Get the ledger created at app startup.

    Returns:
        Process-wide DailyUsageLedger.
    """
    return apps.get_app_config('uploader').usage_ledger


def build_library_directory(
    uploader_settings: UploaderSettings,
    host: SettingsLibraryHost | None = None,
) -> LibraryDirectory:
    """Build a library directory over the configured host.

    Args:
        uploader_settings: Uploader configuration.
        host: Library host, defaults to the settings registry.

    Returns:
        LibraryDirectory instance.
    """
    if host is None:
        host = SettingsLibraryHost(getattr(settings, 'UPLOADER_LIBRARIES', []))
    return LibraryDirectory(uploader_settings, host)


def build_admission_gate(
    uploader_settings: UploaderSettings | None = None,
) -> AdmissionGate:
    """Build an admission gate from current Django settings.

    Configuration is read per request, the ledger is shared.

    Args:
        uploader_settings: Configuration override, read from Django
            settings when omitted.

    Returns:
        AdmissionGate wired with production collaborators.
    """
    if uploader_settings is None:
        uploader_settings = UploaderSettings.from_django_settings(settings)

    verifier = None
    if uploader_settings.premium_verification_endpoint:
        verifier = HttpPremiumVerifier(
            uploader_settings.premium_verification_endpoint,
            timeout=uploader_settings.premium_verification_timeout,
        )

    host = SettingsLibraryHost(getattr(settings, 'UPLOADER_LIBRARIES', []))
    return AdmissionGate(
        settings=uploader_settings,
        ledger=get_usage_ledger(),
        sessions=DjangoSessionStore(),
        host=host,
        resolver=EntitlementResolver(uploader_settings, verifier),
        directory=build_library_directory(uploader_settings, host),
        executor=UploadExecutor(),
    )
