"""Helpers for slash-separated repository paths.

Paths used inside the drive are relative to the backend's root site, use
forward slashes only and carry no leading or trailing slash. Matching is
case-insensitive while the original case is kept for display.
"""

from typing import List, Optional, Sequence, Tuple

SEPARATOR = "/"
WILDCARD = "*"


def normalize_path(path: str) -> str:
    """Convert backslashes to slashes and trim surrounding slashes and blanks.

    Example:
        >>> normalize_path(" /Site/Docs/ ")
        'Site/Docs'
    """
    if path is None:
        raise ValueError("path cannot be None")
    return path.strip().replace("\\", SEPARATOR).strip("/ ")


def split_path(path: str) -> List[str]:
    """Split a path to its non-empty, whitespace-trimmed segments."""
    if path is None:
        raise ValueError("path cannot be None")
    return [part.strip() for part in path.split(SEPARATOR) if part.strip()]


def join_path(root: str, *parts: str) -> str:
    """Join path parts with single separating slashes.

    Empty parts are skipped, so joining to the root site ("") yields the
    child name alone.

    Example:
        >>> join_path("", "Site", "/Docs", "")
        'Site/Docs'
    """
    result = root.strip()
    for part in parts:
        part = part.strip()
        if not part:
            continue
        if part.startswith(SEPARATOR):
            part = part[1:]
        if result and not result.endswith(SEPARATOR):
            result += SEPARATOR
        result += part
    return result


def join_segments(segments: Sequence[str], start: int = 0) -> str:
    """Join path segments starting at the given index."""
    return join_path("", *segments[start:])


def get_parent_path(path: str) -> str:
    """Return everything before the last slash, or "" for a top-level name."""
    separator = path.rfind(SEPARATOR)
    return path[:separator] if separator > 0 else ""


def split_parent(path: str) -> Tuple[str, str]:
    """Return the parent path and the child name of a path."""
    separator = path.rfind(SEPARATOR)
    if separator > 0:
        return path[:separator], path[separator + 1:]
    return "", path


def get_child_name(path: str) -> str:
    """Return the last segment of a path."""
    return path[path.rfind(SEPARATOR) + 1:]


def paths_equal(left: str, right: str) -> bool:
    return left.casefold() == right.casefold()


def starts_with_path(path: str, prefix: str) -> bool:
    """Check case-insensitively whether a path lies at or below a prefix path."""
    if not prefix:
        return True
    folded = path.casefold()
    folded_prefix = prefix.casefold()
    return folded == folded_prefix or folded.startswith(folded_prefix + SEPARATOR)


def strip_prefix(path: str, prefix: str) -> Optional[str]:
    """Return the part of path below prefix, or None if it lies elsewhere."""
    if not starts_with_path(path, prefix):
        return None
    return path[len(prefix):].lstrip(SEPARATOR)


def wildcard_index(segments: Sequence[str]) -> int:
    """Return the index of the first bare "*" segment, or -1 if none is.

    Only a whole-segment star counts; "Iss*" is an ordinary name.
    """
    for index, segment in enumerate(segments):
        if segment == WILDCARD:
            return index
    return -1
