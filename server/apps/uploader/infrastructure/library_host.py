"""Media library host binding.

The host owns the library graph. The uploader only needs to enumerate
the root's children, resolve an item by id and ask for a rescan.
"""

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, final

from server.apps.uploader.entities import LibraryRef
from server.apps.uploader.signals import library_rescan_requested

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class HostItem:
    """Folder-like item of the host library graph."""

    id: str
    name: str
    path: str
    collection_type: str | None = None
    is_collection: bool = True
    is_root: bool = False


class LibraryHost(Protocol):
    """Operations the uploader needs from the media library host."""

    def root_children(self) -> Sequence[HostItem]:
        """Items directly under the host's root container."""

    def get_item(self, item_id: str) -> HostItem | None:
        """Resolve an item by id, None if it does not exist."""

    def request_rescan(self, library: LibraryRef, paths: Sequence[str]) -> None:
        """Ask the host to pick up new files in a library."""


def normalize_item_id(item_id: str) -> str:
    """Normalize an item id for lookups.

    UUIDs are compared in canonical form so braces and case do not
    matter. Other ids are compared verbatim.

    Args:
        item_id: Raw id from a request or the registry.

    Returns:
        Normalized id.
    """
    try:
        return str(uuid.UUID(item_id))
    except ValueError:
        return item_id.strip()


def _item_from_entry(entry: Mapping[str, Any]) -> HostItem:
    return HostItem(
        id=normalize_item_id(str(entry['id'])),
        name=str(entry.get('name', '')),
        path=str(entry.get('path', '')),
        collection_type=entry.get('collection_type') or None,
        is_collection=bool(entry.get('is_collection', True)),
        is_root=bool(entry.get('is_root', False)),
    )


@final
class SettingsLibraryHost:
    """Library host backed by the ``UPLOADER_LIBRARIES`` registry.

    Rescans are announced through the ``library_rescan_requested``
    signal; the media server integration listens to it.
    """

    def __init__(self, entries: Iterable[Mapping[str, Any]]) -> None:
        """Initialize host from registry entries.

        Args:
            entries: Library definitions with ``id``, ``name``, ``path``
                and optional ``collection_type``, ``is_collection`` and
                ``is_root`` keys.
        """
        self._items = [_item_from_entry(entry) for entry in entries]
        self._by_id = {item.id: item for item in self._items}

    def root_children(self) -> Sequence[HostItem]:
        """Get items registered under the root container.

        Returns:
            Registered items in registry order.
        """
        return tuple(self._items)

    def get_item(self, item_id: str) -> HostItem | None:
        """Resolve an item by id.

        Args:
            item_id: Item id from the request.

        Returns:
            HostItem, or None if unknown.
        """
        return self._by_id.get(normalize_item_id(item_id))

    def request_rescan(self, library: LibraryRef, paths: Sequence[str]) -> None:
        """Announce new files to rescan receivers.

        Receiver errors are logged and never raised.

        Args:
            library: Library that received files.
            paths: Written file paths.
        """
        responses = library_rescan_requested.send_robust(
            sender=type(self),
            library=library,
            paths=list(paths),
        )
        for rescan_receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    'Rescan receiver %r failed for library %s: %s',
                    rescan_receiver,
                    library.id,
                    response,
                )
