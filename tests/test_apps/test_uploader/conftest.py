"""Shared fixtures for uploader app tests."""

import datetime as dt

import pytest
from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile

from server.apps.uploader.config import UploaderSettings
from server.apps.uploader.entities import Principal, UploadCandidate
from server.apps.uploader.infrastructure.library_host import (
    SettingsLibraryHost,
)
from server.apps.uploader.logic.admission import AdmissionGate
from server.apps.uploader.logic.entitlements import EntitlementResolver
from server.apps.uploader.logic.library_directory import LibraryDirectory
from server.apps.uploader.logic.upload_executor import UploadExecutor
from server.apps.uploader.logic.usage_ledger import DailyUsageLedger

PHOTOS_LIBRARY_ID = '0f8fad5b-d9cb-469f-a165-70867728950e'
MIXED_LIBRARY_ID = '7c9e6679-7425-40de-944b-e07fc1f90ae7'
VALID_TOKEN = 'valid-session-token'
TODAY = dt.date(2026, 3, 14)


class FakeSessionStore:
    """In-memory session store recording lookups."""

    def __init__(self, sessions: dict[str, Principal]) -> None:
        self.sessions = sessions
        self.lookups: list[str] = []

    def resolve(self, token: str) -> Principal | None:
        self.lookups.append(token)
        return self.sessions.get(token)


class RecordingHost:
    """Wraps a library host and records rescan requests."""

    def __init__(self, host: SettingsLibraryHost) -> None:
        self._host = host
        self.rescans: list[tuple[str, list[str]]] = []

    def root_children(self):
        return self._host.root_children()

    def get_item(self, item_id):
        return self._host.get_item(item_id)

    def request_rescan(self, library, paths):
        self.rescans.append((library.id, list(paths)))


@pytest.fixture
def uploader_settings():
    """Create uploader settings with known secrets and small caps.

    Returns:
        UploaderSettings instance.
    """
    return UploaderSettings(
        api_key='test-api-key',
        security_token='test-security-token',
        allowed_app_package='com.example.uploader',
        client_identifier='MobileUploader',
        free_user_max_file_size_mb=50,
        max_file_size_mb=100,
        free_user_daily_upload_limit=10,
        free_user_daily_size_limit_mb=500,
        premium_api_key='premium-secret',
        extensions={
            'photos': ['.jpg', '.jpeg', '.png'],
            'movies': ['.mp4', 'mkv'],
            'music': ['.mp3'],
        },
    )


@pytest.fixture
def app_headers():
    """Headers of a correctly authenticated app with a valid session.

    Returns:
        Header dictionary.
    """
    return {
        'X-API-Key': 'test-api-key',
        'X-Security-Token': 'test-security-token',
        'X-App-Package': 'com.example.uploader',
        'User-Agent': 'MobileUploader/2.1 (Android 14)',
        'Authorization': f'Bearer {VALID_TOKEN}',
    }


@pytest.fixture
def principal():
    """Authenticated test user.

    Returns:
        Principal instance.
    """
    return Principal(user_id='42', user_name='testuser')


@pytest.fixture
def session_store(principal):
    """Session store knowing one valid token.

    Returns:
        FakeSessionStore instance.
    """
    return FakeSessionStore({VALID_TOKEN: principal})


@pytest.fixture
def library_root(tmp_path):
    """Root folder of the photos library.

    Returns:
        Path to an existing directory.
    """
    root = tmp_path / 'photos'
    root.mkdir()
    return root


@pytest.fixture
def library_host(library_root, tmp_path):
    """Library host with a photos library and a mixed library.

    Returns:
        RecordingHost wrapping a SettingsLibraryHost.
    """
    mixed_root = tmp_path / 'mixed'
    mixed_root.mkdir()
    return RecordingHost(SettingsLibraryHost([
        {'id': 'root', 'name': 'Root', 'path': str(tmp_path), 'is_root': True},
        {
            'id': PHOTOS_LIBRARY_ID,
            'name': 'Photos',
            'path': str(library_root),
            'collection_type': 'photos',
        },
        {'id': MIXED_LIBRARY_ID, 'name': 'Mixed', 'path': str(mixed_root)},
    ]))


@pytest.fixture
def usage_ledger():
    """Ledger pinned to a fixed day.

    Returns:
        DailyUsageLedger instance.
    """
    return DailyUsageLedger(retention_days=2, today=lambda: TODAY)


@pytest.fixture
def make_gate(uploader_settings, usage_ledger, session_store, library_host):
    """Factory building a gate, optionally with other settings.

    Returns:
        Callable accepting optional settings, verifier and executor.
    """
    def factory(settings=None, verifier=None, executor=None):
        settings = settings or uploader_settings
        return AdmissionGate(
            settings=settings,
            ledger=usage_ledger,
            sessions=session_store,
            host=library_host,
            resolver=EntitlementResolver(settings, verifier),
            directory=LibraryDirectory(settings, library_host),
            executor=executor or UploadExecutor(),
        )

    return factory


@pytest.fixture
def gate(make_gate):
    """Gate built from the default test settings.

    Returns:
        AdmissionGate instance.
    """
    return make_gate()


@pytest.fixture
def make_candidate():
    """Factory for upload candidates.

    Returns:
        Callable building an UploadCandidate.
    """
    def factory(file_name='photo.jpg', content=b'image bytes', byte_size=None):
        return UploadCandidate(
            file_name=file_name,
            byte_size=len(content) if byte_size is None else byte_size,
            content=ContentFile(content, name=file_name),
        )

    return factory


@pytest.fixture
def photos_library_id():
    """Id of the photos library registered by ``library_host``."""
    return PHOTOS_LIBRARY_ID


@pytest.fixture
def mixed_library_id():
    """Id of the untyped library registered by ``library_host``."""
    return MIXED_LIBRARY_ID


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return get_user_model().objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )
