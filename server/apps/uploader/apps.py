"""Django app configuration for uploader app."""

from typing import override

from django.apps import AppConfig
from django.conf import settings


class UploaderConfig(AppConfig):
    """Configuration for uploader app.

    Owns the process-wide daily usage ledger, created once when the app
    registry is ready and handed to request handlers explicitly.
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'server.apps.uploader'
    label = 'uploader'
    verbose_name = 'Mobile Uploader'

    @override
    def ready(self) -> None:
        """Create the usage ledger and connect signal handlers."""
        from server.apps.uploader import signals  # noqa: F401
        from server.apps.uploader.config import UploaderSettings
        from server.apps.uploader.logic.usage_ledger import DailyUsageLedger

        uploader_settings = UploaderSettings.from_django_settings(settings)
        self.usage_ledger = DailyUsageLedger(
            retention_days=uploader_settings.usage_retention_days,
        )
