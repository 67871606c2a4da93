"""Signals for uploader app."""

import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

# Sent after files land in a library so the media host can rescan it.
# Receivers get ``library`` (LibraryRef) and ``paths`` (written files).
library_rescan_requested = Signal()


@receiver(library_rescan_requested)
def log_rescan_request(
    sender: type,
    library: object,
    paths: list[str],
    **kwargs: object,
) -> None:
    """Log every rescan request.

    Args:
        sender: Host class that sent the signal.
        library: Library that changed.
        paths: Files written by the upload.
        **kwargs: Additional signal arguments.
    """
    logger.info(
        'Library rescan requested for %s (%d new files)',
        library,
        len(paths),
    )
