"""Card (ticket) link discovery from branch names and PR text."""

import re
from datetime import date

from prflow.config import PrflowConfig

# Date-named branches such as release/2024-03-01 carry no card reference
_DATED_BRANCH_RE = re.compile(r"\w+/(\d{4})-(\d{2})-(\d{2})(?:-?.+)?")


def _is_dated_branch(branch: str) -> bool:
    match = _DATED_BRANCH_RE.match(branch)
    if match is None:
        return False
    year, month, day = (int(part) for part in match.groups())
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def infer_card_link(branch: str | None, config: PrflowConfig) -> str | None:
    """Infer a card URL from a branch name using the configured pattern.

    Returns None when no pattern is configured, the branch is date-named, or
    the pattern does not change the branch name.
    """
    if not branch:
        return None
    pattern = config.card_link_infer_pattern
    replacement = config.card_link_infer_replacement
    if pattern is None or replacement is None:
        return None
    if _is_dated_branch(branch):
        return None
    link = pattern.sub(replacement, branch)
    if not link or link == branch:
        return None
    return link


def find_card_links(text: str, config: PrflowConfig) -> list[str]:
    """All card URLs mentioned in text, in order of first appearance."""
    pattern = config.card_link_website_pattern
    if pattern is None:
        return []
    seen: dict[str, None] = {}
    for match in pattern.finditer(text):
        seen.setdefault(match.group(0), None)
    return list(seen)
