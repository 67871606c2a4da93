"""Allowed file extensions per library category."""

from collections.abc import Iterable, Mapping
from pathlib import PurePath
from typing import Final

# Categories with a dedicated allow-list. Anything else gets the union.
KNOWN_CATEGORIES: Final = frozenset((
    'photos',
    'movies',
    'tvshows',
    'music',
    'books',
))


def normalize_extension(extension: str) -> str:
    """Normalize an extension for comparison.

    Args:
        extension: Extension with or without leading dot (e.g. '.JPG').

    Returns:
        Lowercase extension without dot (e.g. 'jpg').
    """
    return extension.strip().lstrip('.').lower()


def _normalize_all(extensions: Iterable[str]) -> set[str]:
    normalized = {normalize_extension(extension) for extension in extensions}
    normalized.discard('')
    return normalized


def allowed_extensions(
    category: str,
    extensions_by_category: Mapping[str, Iterable[str]],
) -> frozenset[str]:
    """Get the allow-list for a library category.

    Unknown categories (mixed libraries, plain folders) are permitted
    every extension configured for any category.

    Args:
        category: Library category, e.g. 'photos' or 'mixed'.
        extensions_by_category: Configured extensions keyed by category.

    Returns:
        Normalized extensions. Empty means no restriction.
    """
    key = category.lower()
    if key in KNOWN_CATEGORIES:
        return frozenset(_normalize_all(extensions_by_category.get(key, ())))

    union: set[str] = set()
    for extensions in extensions_by_category.values():
        union |= _normalize_all(extensions)
    return frozenset(union)


def is_allowed(file_name: str, allowed: frozenset[str] | set[str]) -> bool:
    """Check a file name against an allow-list.

    Args:
        file_name: Uploaded file name.
        allowed: Normalized allow-list from ``allowed_extensions``.

    Returns:
        True if the extension is allowed or the list is empty.
    """
    if not allowed:
        return True
    return normalize_extension(PurePath(file_name).suffix) in allowed
