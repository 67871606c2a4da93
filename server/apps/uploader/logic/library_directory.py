"""Business logic for library and folder browsing."""

import logging
from pathlib import Path, PurePosixPath
from typing import Final, final

from server.apps.uploader.config import UploaderSettings
from server.apps.uploader.entities import FolderEntry, LibraryRef
from server.apps.uploader.exceptions import (
    AlreadyExistsError,
    FeatureDisabledError,
    IOFailureError,
    NotFoundError,
    UploadValidationError,
)
from server.apps.uploader.infrastructure.library_host import (
    HostItem,
    LibraryHost,
)

logger = logging.getLogger(__name__)

# Categories for host items without a collection type
MIXED_CATEGORY: Final = 'mixed'
FOLDER_CATEGORY: Final = 'folder'


def library_category(item: HostItem) -> str:
    """Derive the extension-policy category of a host item.

    Args:
        item: Host library item.

    Returns:
        Lowercase collection type, 'mixed' for untyped collections,
        'folder' for plain folders.
    """
    if not item.is_collection:
        return FOLDER_CATEGORY
    return (item.collection_type or MIXED_CATEGORY).lower()


def to_library_ref(item: HostItem) -> LibraryRef:
    """Project a host item onto a LibraryRef."""
    return LibraryRef(
        id=item.id,
        name=item.name,
        root_path=item.path,
        category=library_category(item),
    )


def split_relative_path(raw_path: str | None) -> tuple[str, ...]:
    """Split a client supplied folder path into safe components.

    Args:
        raw_path: Path relative to a library root, '' or None for root.

    Returns:
        Path components, empty tuple for the root.

    Raises:
        UploadValidationError: If the path is absolute, contains '..'
            or NUL characters.
    """
    if not raw_path:
        return ()

    if '\x00' in raw_path:
        raise UploadValidationError('Folder path contains invalid characters')

    normalized = raw_path.replace('\\', '/')
    if PurePosixPath(normalized).is_absolute():
        raise UploadValidationError('Folder path must be relative')

    parts = tuple(
        part for part in normalized.split('/')
        if part and part != '.'
    )
    if '..' in parts:
        raise UploadValidationError('Folder path must not leave the library')
    return parts


@final
class LibraryDirectory:
    """Lists libraries and manages folders beneath library roots."""

    def __init__(self, settings: UploaderSettings, host: LibraryHost) -> None:
        """Initialize directory.

        Args:
            settings: Uploader configuration.
            host: Media library host.
        """
        self._settings = settings
        self._host = host

    def list_libraries(self) -> list[LibraryRef]:
        """List libraries available for uploads.

        Returns:
            LibraryRef for each root child except the synthetic root.
        """
        return [
            to_library_ref(item)
            for item in self._host.root_children()
            if not item.is_root
        ]

    def get_library(self, library_id: str) -> LibraryRef:
        """Resolve a library by id.

        Args:
            library_id: Library id from the request.

        Returns:
            LibraryRef for the library.

        Raises:
            NotFoundError: If the host has no such library.
        """
        item = self._host.get_item(library_id)
        if item is None or item.is_root:
            logger.warning('Library not found: %s', library_id)
            raise NotFoundError(f'Library not found: {library_id}')
        return to_library_ref(item)

    def list_folders(
        self,
        library: LibraryRef,
        sub_path: str | None = None,
    ) -> list[FolderEntry]:
        """List folders one level below a library path.

        Args:
            library: Library to browse.
            sub_path: Folder relative to the library root.

        Returns:
            Folders sorted by name. Empty if the path does not exist or
            cannot be read.
        """
        root = Path(library.root_path)
        base = root.joinpath(*split_relative_path(sub_path))
        try:
            if not base.is_dir():
                return []
            directories = sorted(
                (entry for entry in base.iterdir() if entry.is_dir()),
                key=lambda entry: entry.name,
            )
        except OSError:
            logger.warning('Error reading folders in %s', base, exc_info=True)
            return []

        return [
            FolderEntry(
                name=directory.name,
                path=directory.relative_to(root).as_posix(),
            )
            for directory in directories
        ]

    def create_folder(
        self,
        library: LibraryRef,
        folder_name: str,
        parent_path: str | None = None,
    ) -> Path:
        """Create a new folder in a library.

        Args:
            library: Target library.
            folder_name: Name of the folder to create.
            parent_path: Existing or new parent relative to the root.

        Returns:
            Absolute path of the created folder.

        Raises:
            FeatureDisabledError: If folder creation is disabled.
            UploadValidationError: If the name or path is invalid or too
                deep.
            AlreadyExistsError: If the folder already exists.
            IOFailureError: If the directory cannot be created.
        """
        if not self._settings.allow_folder_creation:
            raise FeatureDisabledError('Folder creation is disabled')

        name_parts = split_relative_path(folder_name)
        if len(name_parts) != 1:
            raise UploadValidationError('Folder name must be a single name')

        parts = split_relative_path(parent_path) + name_parts
        self._check_depth(parts)

        folder = Path(library.root_path).joinpath(*parts)
        if folder.exists():
            raise AlreadyExistsError('Folder already exists')

        try:
            folder.mkdir(parents=True)
        except FileExistsError as error:
            raise AlreadyExistsError('Folder already exists') from error
        except OSError as error:
            raise IOFailureError('Could not create folder') from error

        logger.info('Created folder %s in library %s', folder, library.id)
        return folder

    def resolve_target_directory(
        self,
        library: LibraryRef,
        folder_id: str | None,
    ) -> Path:
        """Resolve, and create if allowed, the upload directory.

        Args:
            library: Target library.
            folder_id: Optional folder relative to the library root.

        Returns:
            Existing directory for the upload.

        Raises:
            UploadValidationError: If the folder path is invalid or too
                deep.
            NotFoundError: If the folder is missing and creation is
                disabled.
            IOFailureError: If the directory cannot be created.
        """
        parts = split_relative_path(folder_id)
        self._check_depth(parts)
        target = Path(library.root_path).joinpath(*parts)
        if target.is_dir():
            return target

        if not self._settings.allow_folder_creation:
            logger.warning('Upload target %s missing, creation disabled', target)
            raise NotFoundError(
                'Target folder does not exist and folder creation is disabled',
            )

        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise IOFailureError('Could not create target folder') from error

        logger.info('Created upload folder %s', target)
        return target

    def _check_depth(self, parts: tuple[str, ...]) -> None:
        max_depth = self._settings.max_folder_depth
        if max_depth > 0 and len(parts) > max_depth:
            raise UploadValidationError(
                f'Folder nesting is limited to {max_depth} levels',
            )
