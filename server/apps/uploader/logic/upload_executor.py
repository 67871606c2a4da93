"""Business logic for persisting admitted files."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import final

from server.apps.uploader.entities import UploadCandidate, UploadOutcome
from server.apps.uploader.exceptions import IOFailureError
from server.apps.uploader.infrastructure.storage import LibraryStorage

logger = logging.getLogger(__name__)


@final
class UploadExecutor:
    """Writes admitted candidates into a target directory.

    Writes never overwrite: a taken name gets a numeric suffix. A failed
    write is not rolled back and stops the caller's batch; files written
    earlier in the batch stay on disk.
    """

    def __init__(
        self,
        storage_factory: Callable[[str], LibraryStorage] = LibraryStorage,
    ) -> None:
        """Initialize executor.

        Args:
            storage_factory: Builds a storage rooted at a directory.
        """
        self._storage_factory = storage_factory

    def persist(self, target_dir: Path, candidate: UploadCandidate) -> UploadOutcome:
        """Stream one candidate to disk.

        Args:
            target_dir: Existing directory inside a library.
            candidate: File to write.

        Returns:
            UploadOutcome with the final name and absolute path.

        Raises:
            IOFailureError: If the file cannot be written.
        """
        storage = self._storage_factory(str(target_dir))
        try:
            saved_name = storage.save(candidate.file_name, candidate.content)
        except OSError as error:
            raise IOFailureError(
                f'Could not write {candidate.file_name}',
            ) from error

        final_path = Path(storage.path(saved_name))
        return UploadOutcome(
            file_name=final_path.name,
            final_path=str(final_path),
            byte_size=candidate.byte_size,
        )
