"""Naming helpers for scratch branches, backup tags and new branches.

All functions are pure; timestamps are supplied by the caller (normally from
the Time gateway).
"""

import re

TEMP_BRANCH_PREFIX = "temp/"
REPLACE_TEMP_PREFIX = "temp/rewrite-messages-"
SQUASH_TEMP_PREFIX = "temp/squash-"
BACKUP_TAG_PREFIX = "backup/"

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_REF_CHARS_RE = re.compile(r"[^a-z0-9._/-]+")
_REPEATED_DASHES_RE = re.compile(r"-{2,}")


def replace_temp_branch_name(timestamp: int) -> str:
    """Scratch branch used while rewriting commit messages.

    Examples:
        >>> replace_temp_branch_name(1700000000000)
        'temp/rewrite-messages-1700000000000'
    """
    return f"{REPLACE_TEMP_PREFIX}{timestamp}"


def squash_temp_branch_name(timestamp: int) -> str:
    """Scratch branch used while squashing commits."""
    return f"{SQUASH_TEMP_PREFIX}{timestamp}"


def backup_tag_name(branch: str, timestamp: int) -> str:
    """Local tag marking the pre-rewrite tip of a branch.

    Examples:
        >>> backup_tag_name("feat/login", 1700000000000)
        'backup/feat/login/1700000000000'
    """
    return f"{BACKUP_TAG_PREFIX}{branch}/{timestamp}"


def is_temp_branch(name: str) -> bool:
    return name.startswith(REPLACE_TEMP_PREFIX) or name.startswith(SQUASH_TEMP_PREFIX)


def normalize_branch_suffix(suffix: str) -> str:
    """Turn free text into a branch-name suffix.

    Whitespace becomes dashes, everything is lowercased and characters git
    rejects in ref names are dropped.

    Examples:
        >>> normalize_branch_suffix("  1234 Add Login  page ")
        '1234-add-login-page'
        >>> normalize_branch_suffix("fix: crash on ~save")
        'fix-crash-on-save'
    """
    text = _WHITESPACE_RE.sub("-", suffix.strip()).lower()
    text = _UNSAFE_REF_CHARS_RE.sub("", text)
    text = _REPEATED_DASHES_RE.sub("-", text)
    return text.strip("-./")


def branch_name_for(branch_type: str, suffix: str) -> str:
    """Build `<type>/<normalized suffix>`.

    Raises:
        ValueError: If the suffix normalizes to an empty string
    """
    normalized = normalize_branch_suffix(suffix)
    if not normalized:
        raise ValueError(f"Branch suffix '{suffix}' has no usable characters")
    return f"{branch_type}/{normalized}"
