import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional

_NUMBER_RE = re.compile(r"\d[\d\s]*")

# largest value a signed 64-bit INTEGER column holds
MAX_ROW_ID = 2**63 - 1


def utcnow() -> datetime:
    # naive UTC, stored as-is in both SQLite and Postgres
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()


def extract_number(text: str) -> int:
    """
    First integer found in a free-text amount.
    '1 500 USD' -> 1500, 'from $900' -> 900, 'negotiable' -> 0
    """
    if not text:
        return 0
    match = _NUMBER_RE.search(text)
    if not match:
        return 0
    digits = re.sub(r"\s", "", match.group(0))
    return int(digits) if digits else 0


def is_row_id(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= MAX_ROW_ID


def unique_ids(ids: Iterable[int]) -> List[int]:
    """Drop duplicates, keep the first-seen order."""
    seen = set()
    out = []
    for i in ids:
        if i in seen:
            continue
        seen.add(i)
        out.append(i)
    return out


def truncate_text(text: Optional[str], limit: int) -> str:
    if not text:
        return ""
    if len(text) > limit:
        return text[:limit] + "..."
    return text
