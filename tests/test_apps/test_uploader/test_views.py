"""Tests for the mobile uploader HTTP endpoints."""

import json
from unittest.mock import patch

import pytest
from django.apps import apps
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from server.apps.uploader.config import BYTES_PER_MB
from server.apps.uploader.logic.usage_ledger import DailyUsageLedger

LIBRARY_ID = '0f8fad5b-d9cb-469f-a165-70867728950e'
BROKEN_LIBRARY_ID = '9b2d1c1e-4f3a-4e7b-8a61-2f0c4d5e6a7b'


@pytest.fixture
def photos_root(tmp_path):
    """Root folder of the configured photos library."""
    root = tmp_path / 'Photos'
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def uploader_config(settings, tmp_path, photos_root):
    """Configure the uploader with known secrets and a photos library."""
    not_a_directory = tmp_path / 'broken'
    not_a_directory.write_bytes(b'')

    settings.UPLOADER_API_KEY = 'test-api-key'
    settings.UPLOADER_SECURITY_TOKEN = 'test-security-token'
    settings.UPLOADER_ALLOWED_APP_PACKAGE = 'com.example.uploader'
    settings.UPLOADER_CLIENT_IDENTIFIER = 'MobileUploader'
    settings.UPLOADER_PREMIUM_API_KEY = 'premium-secret'
    settings.UPLOADER_PREMIUM_VERIFICATION_ENDPOINT = ''
    settings.UPLOADER_EXTENSIONS = {'photos': ['.jpg', '.png']}
    settings.UPLOADER_LIBRARIES = [
        {'id': 'root', 'name': 'Root', 'path': str(tmp_path), 'is_root': True},
        {
            'id': LIBRARY_ID,
            'name': 'Photos',
            'path': str(photos_root),
            'collection_type': 'photos',
        },
        {
            'id': BROKEN_LIBRARY_ID,
            'name': 'Broken',
            'path': str(not_a_directory),
            'collection_type': 'photos',
        },
    ]
    return settings


@pytest.fixture(autouse=True)
def usage_ledger(monkeypatch):
    """Fresh process ledger for every test."""
    ledger = DailyUsageLedger()
    monkeypatch.setattr(apps.get_app_config('uploader'), 'usage_ledger', ledger)
    return ledger


@pytest.fixture
def auth_headers(client, user):
    """Headers of the mobile app with a logged-in session."""
    client.force_login(user)
    return {
        'X-API-Key': 'test-api-key',
        'X-Security-Token': 'test-security-token',
        'X-App-Package': 'com.example.uploader',
        'User-Agent': 'MobileUploader/2.1',
        'Authorization': f'Bearer {client.session.session_key}',
    }


def _upload_url(**params):
    query = '&'.join(f'{key}={value}' for key, value in params.items())
    return f"{reverse('uploader:upload')}?{query}"


def _photo(name='photo.jpg', content=b'jpeg bytes'):
    return SimpleUploadedFile(name, content, content_type='image/jpeg')


@pytest.mark.django_db
class TestVerify:
    """GET /verify."""

    def test_valid_session(self, client, auth_headers, user):
        """Test a valid session reports the user and upload settings."""
        response = client.get(reverse('uploader:verify'), headers=auth_headers)

        assert response.status_code == 200
        payload = response.json()
        assert payload['success']
        assert payload['username'] == 'testuser'
        assert payload['userId'] == str(user.pk)
        assert payload['uploadsEnabled']
        assert payload['maxFileSizeMB'] == 100

    def test_missing_app_headers(self, client):
        """Test requests without app identity are unauthorized."""
        response = client.get(reverse('uploader:verify'))

        assert response.status_code == 401
        assert response.json() == {
            'success': False,
            'message': 'Invalid app authentication',
            'reason': 'authentication',
            'upgradeRequired': False,
        }

    def test_invalid_session(self, client, auth_headers):
        """Test unknown bearer tokens are unauthorized."""
        auth_headers['Authorization'] = 'Bearer not-a-session'

        response = client.get(reverse('uploader:verify'), headers=auth_headers)

        assert response.status_code == 401
        assert response.json()['reason'] == 'session'

    def test_post_not_allowed(self, client, auth_headers):
        """Test verify only answers GET."""
        response = client.post(reverse('uploader:verify'), headers=auth_headers)

        assert response.status_code == 405


@pytest.mark.django_db
def test_libraries(client, auth_headers, photos_root):
    """Test configured libraries are listed without the root."""
    response = client.get(reverse('uploader:libraries'), headers=auth_headers)

    assert response.status_code == 200
    libraries = response.json()['libraries']
    assert libraries[0] == {
        'id': LIBRARY_ID,
        'name': 'Photos',
        'path': str(photos_root),
        'type': 'photos',
    }
    assert [library['name'] for library in libraries] == ['Photos', 'Broken']


@pytest.mark.django_db
class TestFolders:
    """GET /folders."""

    def test_lists_folders(self, client, auth_headers, photos_root):
        """Test subfolders of a library are listed."""
        (photos_root / '2024').mkdir()

        response = client.get(
            reverse('uploader:folders'),
            {'libraryId': LIBRARY_ID},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()['folders'] == [
            {'name': '2024', 'path': '2024', 'isDirectory': True},
        ]

    def test_library_id_required(self, client, auth_headers):
        """Test a missing libraryId is a validation error."""
        response = client.get(reverse('uploader:folders'), headers=auth_headers)

        assert response.status_code == 400
        assert response.json()['reason'] == 'validation'

    def test_unknown_library(self, client, auth_headers):
        """Test unknown libraries are not found."""
        response = client.get(
            reverse('uploader:folders'),
            {'libraryId': 'unknown'},
            headers=auth_headers,
        )

        assert response.status_code == 404


@pytest.mark.django_db
class TestCreateFolder:
    """POST /create-folder."""

    def _post(self, client, headers, payload):
        return client.post(
            reverse('uploader:create_folder'),
            data=json.dumps(payload),
            content_type='application/json',
            headers=headers,
        )

    def test_creates_folder(self, client, auth_headers, photos_root):
        """Test a folder is created inside the library."""
        response = self._post(client, auth_headers, {
            'libraryId': LIBRARY_ID,
            'folderName': 'Summer',
            'parentPath': '2024',
        })

        assert response.status_code == 200
        assert response.json()['message'] == 'Folder created successfully'
        assert (photos_root / '2024' / 'Summer').is_dir()

    def test_existing_folder_conflicts(self, client, auth_headers, photos_root):
        """Test creating an existing folder is a conflict."""
        (photos_root / 'Summer').mkdir()

        response = self._post(client, auth_headers, {
            'libraryId': LIBRARY_ID,
            'folderName': 'Summer',
        })

        assert response.status_code == 409
        assert response.json()['reason'] == 'already_exists'

    def test_disabled(self, client, auth_headers, settings):
        """Test folder creation honors the feature switch."""
        settings.UPLOADER_ALLOW_FOLDER_CREATION = False

        response = self._post(client, auth_headers, {
            'libraryId': LIBRARY_ID,
            'folderName': 'Summer',
        })

        assert response.status_code == 403
        assert response.json()['reason'] == 'disabled'

    def test_missing_fields(self, client, auth_headers):
        """Test libraryId and folderName are required."""
        response = self._post(client, auth_headers, {'libraryId': LIBRARY_ID})

        assert response.status_code == 400

    def test_invalid_json(self, client, auth_headers):
        """Test malformed bodies are rejected."""
        response = client.post(
            reverse('uploader:create_folder'),
            data='{not json',
            content_type='application/json',
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()['message'] == 'Request body must be JSON'


@pytest.mark.django_db
class TestUpload:
    """POST /upload."""

    def test_uploads_files(self, client, auth_headers, photos_root, usage_ledger, user):
        """Test files are written and usage is recorded."""
        response = client.post(
            _upload_url(libraryId=LIBRARY_ID, folderId='2024'),
            {'files': [_photo('a.jpg'), _photo('b.png', b'png')]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        payload = response.json()
        assert payload['message'] == 'Successfully uploaded 2 file(s)'
        assert not payload['isPremiumUpload']
        assert payload['uploadedFiles'] == [
            {
                'fileName': 'a.jpg',
                'size': 10,
                'path': str(photos_root / '2024' / 'a.jpg'),
            },
            {
                'fileName': 'b.png',
                'size': 3,
                'path': str(photos_root / '2024' / 'b.png'),
            },
        ]
        assert (photos_root / '2024' / 'a.jpg').read_bytes() == b'jpeg bytes'
        assert usage_ledger.get(str(user.pk)).files_uploaded == 2

    def test_collision_gets_suffix(self, client, auth_headers, photos_root):
        """Test existing files are never overwritten."""
        (photos_root / 'photo.jpg').write_bytes(b'original')

        response = client.post(
            _upload_url(libraryId=LIBRARY_ID),
            {'files': [_photo()]},
            headers=auth_headers,
        )

        assert response.json()['uploadedFiles'][0]['fileName'] == 'photo_1.jpg'
        assert (photos_root / 'photo.jpg').read_bytes() == b'original'

    def test_quota_exceeded(self, client, auth_headers, usage_ledger, user):
        """Test exhausted free quota asks for an upgrade."""
        usage_ledger.record(str(user.pk), 10, 0)

        response = client.post(
            _upload_url(libraryId=LIBRARY_ID),
            {'files': [_photo()]},
            headers=auth_headers,
        )

        assert response.status_code == 403
        payload = response.json()
        assert payload['reason'] == 'quota'
        assert payload['upgradeRequired']
        assert payload['message'] == (
            'Daily file upload limit exceeded. Limit: 10, Current: 10'
        )

    def test_premium_ignores_free_quota(self, client, auth_headers, usage_ledger, user):
        """Test a valid premium token lifts the free caps."""
        usage_ledger.record(str(user.pk), 10, 0)

        response = client.post(
            _upload_url(
                libraryId=LIBRARY_ID,
                isPremium='true',
                premiumToken='premium-secret',
            ),
            {'files': [_photo()]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()['isPremiumUpload']

    def test_type_rejected(self, client, auth_headers, photos_root):
        """Test disallowed extensions are refused."""
        response = client.post(
            _upload_url(libraryId=LIBRARY_ID),
            {'files': [_photo(), SimpleUploadedFile('notes.txt', b'hi')]},
            headers=auth_headers,
        )

        assert response.status_code == 415
        assert response.json()['reason'] == 'type_rejected'
        assert list(photos_root.iterdir()) == []

    def test_size_rejected(self, client, auth_headers, settings):
        """Test files over the free cap are refused with an upgrade hint."""
        settings.UPLOADER_FREE_USER_MAX_FILE_SIZE_MB = 1

        response = client.post(
            _upload_url(libraryId=LIBRARY_ID),
            {'files': [_photo(content=b'x' * (BYTES_PER_MB + 1))]},
            headers=auth_headers,
        )

        assert response.status_code == 413
        assert response.json()['upgradeRequired']

    def test_no_files(self, client, auth_headers):
        """Test an empty multipart body is a validation error."""
        response = client.post(
            _upload_url(libraryId=LIBRARY_ID),
            {},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()['message'] == 'No files provided'

    def test_uploads_disabled(self, client, auth_headers, settings):
        """Test uploads honor the feature switch."""
        settings.UPLOADER_ENABLE_UPLOADS = False

        response = client.post(
            _upload_url(libraryId=LIBRARY_ID),
            {'files': [_photo()]},
            headers=auth_headers,
        )

        assert response.status_code == 403
        assert response.json()['message'] == (
            'Upload functionality is currently disabled'
        )

    def test_io_failure_is_generic(self, client, auth_headers):
        """Test filesystem failures do not leak details."""
        response = client.post(
            _upload_url(libraryId=BROKEN_LIBRARY_ID),
            {'files': [_photo()]},
            headers=auth_headers,
        )

        assert response.status_code == 500
        assert response.json()['message'] == 'Internal server error'

    def test_unexpected_error_is_generic(self, client, auth_headers):
        """Test unexpected exceptions become a generic 500."""
        with patch(
            'server.apps.uploader.views.build_admission_gate',
            side_effect=RuntimeError('boom'),
        ):
            response = client.post(
                _upload_url(libraryId=LIBRARY_ID),
                {'files': [_photo()]},
                headers=auth_headers,
            )

        assert response.status_code == 500
        assert response.json()['reason'] == 'internal'

    def test_get_not_allowed(self, client, auth_headers):
        """Test upload only accepts POST."""
        response = client.get(reverse('uploader:upload'), headers=auth_headers)

        assert response.status_code == 405


@pytest.mark.django_db
class TestUserLimits:
    """GET /user-limits."""

    def test_free_limits(self, client, auth_headers, usage_ledger, user):
        """Test free usage and remaining quota are reported."""
        usage_ledger.record(str(user.pk), 3, 5 * BYTES_PER_MB)

        response = client.get(reverse('uploader:user_limits'), headers=auth_headers)

        assert response.status_code == 200
        payload = response.json()
        assert payload == {
            'success': True,
            'message': '',
            'isPremium': False,
            'dailyUploadLimit': 10,
            'dailySizeLimitMB': 500,
            'maxFileSizeMB': 50,
            'filesUploadedToday': 3,
            'sizeUploadedTodayMB': 5,
            'remainingFiles': 7,
            'remainingSizeMB': 495,
        }

    def test_premium_limits(self, client, auth_headers):
        """Test premium callers see unlimited daily quota."""
        response = client.get(
            reverse('uploader:user_limits'),
            {'isPremium': 'true', 'premiumToken': 'premium-secret'},
            headers=auth_headers,
        )

        payload = response.json()
        assert payload['isPremium']
        assert payload['remainingFiles'] == -1
        assert payload['remainingSizeMB'] == -1
