"""Tests for LibraryStorage."""

from unittest.mock import patch

import pytest
from django.core.files.base import ContentFile

from server.apps.uploader.infrastructure.storage import (
    LibraryStorage,
    numbered_name,
)


@pytest.mark.parametrize(('name', 'counter', 'expected'), [
    ('a.txt', 1, 'a_1.txt'),
    ('photos/a.jpg', 2, 'photos/a_2.jpg'),
    ('archive.tar.gz', 3, 'archive.tar_3.gz'),
    ('README', 1, 'README_1'),
])
def test_numbered_name(name, counter, expected):
    """Test suffixes are inserted before the last extension."""
    assert numbered_name(name, counter) == expected


def test_get_available_name_free(tmp_path):
    """Test free names are returned unchanged."""
    storage = LibraryStorage(location=str(tmp_path))

    assert storage.get_available_name('a.txt') == 'a.txt'


def test_get_available_name_skips_taken_names(tmp_path):
    """Test the first free numbered name is chosen."""
    (tmp_path / 'a.txt').write_bytes(b'')
    (tmp_path / 'a_1.txt').write_bytes(b'')
    storage = LibraryStorage(location=str(tmp_path))

    assert storage.get_available_name('a.txt') == 'a_2.txt'


def test_save_writes_content(tmp_path):
    """Test save writes the file and returns its name."""
    storage = LibraryStorage(location=str(tmp_path))

    saved_name = storage.save('clip.mp4', ContentFile(b'frames'))

    assert saved_name == 'clip.mp4'
    assert (tmp_path / 'clip.mp4').read_bytes() == b'frames'


def test_save_logs_and_reraises_errors(tmp_path, caplog):
    """Test write errors are logged and propagated."""
    storage = LibraryStorage(location=str(tmp_path))

    with patch.object(
        LibraryStorage,
        '_save',
        side_effect=PermissionError('denied'),
    ):
        with pytest.raises(PermissionError):
            storage.save('a.txt', ContentFile(b'x'))

    assert 'Failed to write file to library: a.txt' in caplog.text
