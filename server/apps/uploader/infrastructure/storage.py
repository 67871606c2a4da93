"""Filesystem storage backend for library folders."""

import logging
import os
from typing import Any, final, override

from django.core.files.storage import FileSystemStorage

logger = logging.getLogger(__name__)


def numbered_name(name: str, counter: int) -> str:
    """Build the ``counter``-th alternative of a file name.

    Example: ('photos/a.jpg', 2) -> 'photos/a_2.jpg'

    Args:
        name: Original relative name.
        counter: Positive suffix number.

    Returns:
        Name with ``_<counter>`` inserted before the extension.
    """
    directory, file_name = os.path.split(name)
    stem, extension = os.path.splitext(file_name)
    return os.path.join(directory, f'{stem}_{counter}{extension}')


@final
class LibraryStorage(FileSystemStorage):
    """Storage rooted at a library folder.

    Extends Django's FileSystemStorage with:
    - Deterministic collision naming (``a.txt``, ``a_1.txt``, ``a_2.txt``)
    - Logging around writes

    Files are created with ``O_EXCL``, so a name taken between
    allocation and write makes Django ask for the next free name.
    """

    @override
    def get_available_name(self, name: str, max_length: int | None = None) -> str:
        """Return the first free name, appending ``_N`` on collisions.

        Args:
            name: Requested relative name.
            max_length: Ignored, library file names are not truncated.

        Returns:
            Name that does not exist yet.
        """
        candidate = name
        counter = 1
        while self.exists(candidate):
            candidate = numbered_name(name, counter)
            counter += 1

        if candidate != name:
            logger.info('Name collision for %s, using %s', name, candidate)
        return candidate

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save file to the library folder with logging.

        Args:
            name: Relative name for the file.
            content: File content (file-like object).
            max_length: Optional maximum length for the filename.

        Returns:
            Actual relative name used (differs from name on conflicts).

        Raises:
            OSError: If the file cannot be written.
        """
        try:
            saved_name = super().save(name, content, max_length)
        except Exception:
            logger.exception('Failed to write file to library: %s', name)
            raise
        logger.info('Wrote file %s to %s', saved_name, self.location)
        return saved_name
