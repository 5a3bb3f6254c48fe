import html
from typing import Optional
import bleach

MAX_SANITIZE_PASSES = 5


def _clean_once(value: str) -> str:
    val = html.unescape(value)
    val = bleach.clean(val, tags=set(), strip=True)
    return html.unescape(val).strip()


def sanitize_input(value: Optional[str]) -> str:
    """Sanitize a user-supplied string before it is stored or used as a filter.

    - Removes NULL bytes (rejected by PostgreSQL text columns)
    - Decodes entities, then strips HTML tags using bleach.clean(..., strip=True)
    - Trims whitespace

    Entity-encoded markup (``&lt;script&gt;``) is decoded before stripping so it
    cannot come back out as a live tag. Passes repeat until the value stops
    changing, which makes the function idempotent; plain ``"Tom & Jerry"`` is
    left as is.
    """
    if value is None:
        return ""
    val = value.replace("\x00", "")
    for _ in range(MAX_SANITIZE_PASSES):
        cleaned = _clean_once(val)
        if cleaned == val:
            break
        val = cleaned
    else:
        # still changing: drop every remaining angle bracket
        val = val.replace("<", "").replace(">", "")
    return val
