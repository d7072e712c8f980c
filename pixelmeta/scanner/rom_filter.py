"""
ROM filename normalization and filtering.

Produces clean search terms from No-Intro/Redump style filenames and
decides which files in a system directory take part in a scrape.
"""

import os
import re
from typing import Iterable, List, Optional, Tuple

# Region, language and dump tags: (USA), [!], {Proto}
_TAG_PATTERNS = (
    re.compile(r"\([^)]*\)"),
    re.compile(r"\[[^\]]*\]"),
    re.compile(r"\{[^}]*\}"),
)
_WHITESPACE = re.compile(r"\s+")
_EXTENSION = re.compile(r"\.[^.]+$")


def clean_rom_name(file_name: str) -> str:
    """
    Clean a ROM filename for searching.

    Strips the extension, removes bracketed tag groups and collapses
    whitespace.

    Args:
        file_name: ROM filename (e.g., "Super Mario World (USA) [!].sfc")

    Returns:
        Search term (e.g., "Super Mario World"); may be empty

    Example:
        >>> clean_rom_name("Sonic (Europe) {Beta}.md")
        'Sonic'
    """
    clean = os.path.splitext(file_name)[0]

    for pattern in _TAG_PATTERNS:
        clean = pattern.sub("", clean)

    return _WHITESPACE.sub(" ", clean).strip()


def _normalize_patterns(patterns: Optional[Iterable[str]]) -> List[str]:
    """Trim, drop empties and lowercase a pattern list."""
    return [p.strip().lower() for p in (patterns or []) if p and p.strip()]


def _glob_to_regex(pattern: str) -> "re.Pattern[str]":
    escaped = re.escape(pattern)
    escaped = escaped.replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}$", re.IGNORECASE)


def _remove_ext(name: str) -> str:
    return _EXTENSION.sub("", name)


def should_exclude(file_name: str, patterns: Optional[Iterable[str]] = None) -> bool:
    """
    Check whether a file matches any exclude pattern.

    Matching is case-insensitive and tried in this order:

    1. glob match (``*`` and ``?``) against the full filename
    2. basename without extension equals the pattern's basename
    3. pattern appears as a substring of the filename

    Args:
        file_name: Filename to test (no directory part)
        patterns: Exclude patterns from the system catalog

    Returns:
        True if the file should be ignored
    """
    pats = _normalize_patterns(patterns)
    if not pats:
        return False

    lower = file_name.lower()
    base = _remove_ext(lower)

    if any(_glob_to_regex(p).match(lower) for p in pats):
        return True

    exclude_bases = [_remove_ext(re.split(r"[\\/]", p)[-1] or p) for p in pats]
    if base in exclude_bases:
        return True

    return any(p in lower for p in pats)


def _normalize_extensions(extensions: Optional[Iterable[str]]) -> List[str]:
    normalized = []
    for ext in _normalize_patterns(extensions):
        normalized.append(ext if ext.startswith(".") else f".{ext}")
    return normalized


def filter_roms(
    files: Iterable[str],
    extensions: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> Tuple[List[str], List[str]]:
    """
    Split filenames into kept and excluded lists.

    Args:
        files: Filenames in enumeration order
        extensions: Allowed extensions (e.g., ['.zip', '.sfc']); None allows all
        exclude: Exclude patterns (see should_exclude)

    Returns:
        Tuple of (kept, excluded), both preserving input order
    """
    allowed = _normalize_extensions(extensions)
    pats = _normalize_patterns(exclude)

    kept: List[str] = []
    excluded: List[str] = []

    for name in files:
        if allowed and os.path.splitext(name)[1].lower() not in allowed:
            excluded.append(name)
            continue
        if should_exclude(name, pats):
            excluded.append(name)
            continue
        kept.append(name)

    return kept, excluded
