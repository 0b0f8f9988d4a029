"""Parse the repository strings users paste into the config panel."""

import re
from typing import Optional

_URL_PATTERN = re.compile(r"github\.com/([^/\s]+)/([^/\s?#]+)", re.IGNORECASE)
_SHORT_PATTERN = re.compile(r"^([^/\s]+)/([^/\s]+)$")


def parse_repo_input(value: str) -> Optional[tuple[str, str]]:
    """
    Accept "owner/repo" or a GitHub URL and return ``(owner, name)``.

    Examples:
        "facebook/react" -> ("facebook", "react")
        "https://github.com/facebook/react.git" -> ("facebook", "react")
        "not a repo" -> None
    """
    trimmed = value.strip().rstrip("/")
    match = _URL_PATTERN.search(trimmed) or _SHORT_PATTERN.match(trimmed)
    if not match:
        return None
    owner, name = match.group(1), match.group(2)
    if name.endswith(".git"):
        name = name[:-4]
    if not owner or not name:
        return None
    return owner, name
