"""Input parsing, pagination and literal search helpers shared by the services."""

import math
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import InstrumentedAttribute, Query

from app.core.errors import ValidationError
from app.schemas.common import PageMeta

MIN_PAGE_LIMIT = 5
MAX_PAGE_LIMIT = 100

# Characters with special meaning inside a LIKE pattern, plus the escape itself.
_LIKE_ESCAPE = "\\"
_LIKE_SPECIAL = (_LIKE_ESCAPE, "%", "_")


def parse_id(value: Any, label: str = "id") -> uuid.UUID:
    """Parse a record identifier; malformed ids are a client error."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"Invalid {label}")


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 timestamp. Returns None when the value cannot be parsed.

    Naive values are taken to be UTC; aware values are converted to UTC.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _to_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class PageParams:
    """Clamped page/limit pair with the derived row offset."""

    page: int
    limit: int

    @classmethod
    def from_query(cls, page: Any, limit: Any, default_limit: int) -> "PageParams":
        """Clamp page to >= 1 and limit to [MIN_PAGE_LIMIT, MAX_PAGE_LIMIT]."""
        page_n = max(1, _to_int(page, 1))
        limit_n = min(MAX_PAGE_LIMIT, max(MIN_PAGE_LIMIT, _to_int(limit, default_limit)))
        return cls(page=page_n, limit=limit_n)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> PageMeta:
        return PageMeta(
            page=self.page,
            limit=self.limit,
            total=total,
            pages=math.ceil(total / self.limit),
        )


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term only ever matches literally."""
    for ch in _LIKE_SPECIAL:
        term = term.replace(ch, _LIKE_ESCAPE + ch)
    return term


def apply_search(
    query: Query,
    term: str | None,
    columns: list[InstrumentedAttribute],
) -> Query:
    """Filter rows where any of the columns contains term, case-insensitively."""
    term = (term or "").strip()
    if not term:
        return query
    pattern = f"%{escape_like(term)}%"
    return query.filter(
        or_(*(col.ilike(pattern, escape=_LIKE_ESCAPE) for col in columns))
    )
