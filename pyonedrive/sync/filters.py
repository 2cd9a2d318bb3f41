"""Predicates deciding which entries are outside a sync's scope."""

import fnmatch
import logging
from collections.abc import Iterable
from typing import Optional

from .protocols import EntryProtocol, ExcludePredicate

logger = logging.getLogger(__name__)


def _normalize_extension(extension: str) -> str:
    extension = extension.strip().lower()
    if extension and not extension.startswith("."):
        extension = "." + extension
    return extension


def build_exclude_predicate(
    extensions: Optional[Iterable[str]] = None,
    patterns: Optional[Iterable[str]] = None,
    exclude_dot_files: bool = False,
    exclude_directories: bool = False,
) -> Optional[ExcludePredicate]:
    """Build a predicate returning True for entries that must not be synced.

    Excluded entries are neither downloaded nor deleted locally.

    Args:
        extensions: If given, only files with one of these extensions are
            in scope (case-insensitive, with or without leading dot)
        patterns: Glob patterns matched against the entry name
        exclude_dot_files: Exclude names starting with a dot
        exclude_directories: Exclude directories on both sides

    Returns:
        The predicate, or None if nothing is excluded

    Examples:
        >>> only_mp3 = build_exclude_predicate(extensions=["mp3"])
        >>> only_mp3(LocalEntry("song.MP3", False, 1, Path("song.MP3")))
        False
        >>> only_mp3(LocalEntry("cover.jpg", False, 1, Path("cover.jpg")))
        True
    """
    wanted = {_normalize_extension(e) for e in extensions or [] if e.strip()}
    globs = list(patterns or [])

    if not wanted and not globs and not exclude_dot_files and not exclude_directories:
        return None

    def exclude(entry: EntryProtocol) -> bool:
        name = entry.name
        if exclude_directories and entry.is_directory:
            return True
        if exclude_dot_files and name.startswith("."):
            return True
        for pattern in globs:
            if fnmatch.fnmatch(name, pattern):
                logger.debug(f"Excluding {name} (matches {pattern})")
                return True
        if wanted and not entry.is_directory:
            suffix = name[name.rfind(".") :].lower() if "." in name else ""
            if suffix not in wanted:
                return True
        return False

    return exclude
