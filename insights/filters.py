"""Caller-side filtering, sorting and pagination of finalized sessions.

Nothing here is applied by the pipeline itself: aggregation always returns
the complete session list, and the presentation layer narrows it down with
these helpers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar

from insights import config
from insights.exceptions import InvalidQueryError
from insights.models import SessionStatus
from insights.session_data import Session

__all__ = [
    "SessionQuery",
    "FilterOptions",
    "Page",
    "SORT_KEYS",
    "apply_query",
    "filter_sessions",
    "sort_sessions",
    "paginate",
    "filter_options",
    "format_score",
]

T = TypeVar("T")

SORT_KEYS: Dict[str, Callable[[Session], Any]] = {
    "end_time": lambda s: s.end_time,
    "start_time": lambda s: s.start_time,
    "score": lambda s: s.score,
    "participant": lambda s: s.participant,
    "message_count": lambda s: s.message_count,
}


def format_score(score: Optional[float]) -> str:
    """Render *score* without a trailing ``.0`` (``9.0`` → ``"9"``)."""
    if score is None:
        return ""
    return f"{score:g}"


@dataclass(slots=True)
class SessionQuery:
    """Filter and sort parameters chosen by the user.

    ``None`` means *no restriction* for every filter field.
    """

    unit: Optional[str] = None
    tag: Optional[str] = None
    pill: Optional[str] = None
    status: Optional[SessionStatus] = None
    type_label: Optional[str] = None
    search: Optional[str] = None
    sort_key: str = "end_time"
    direction: str = "desc"

    def __post_init__(self) -> None:
        if self.sort_key not in SORT_KEYS:
            raise InvalidQueryError(f"Unknown sort key '{self.sort_key}'.")
        if self.direction not in ("asc", "desc"):
            raise InvalidQueryError(f"Unknown sort direction '{self.direction}'.")
        if self.status is not None and not isinstance(self.status, SessionStatus):
            try:
                self.status = SessionStatus(self.status)
            except ValueError as exc:
                raise InvalidQueryError(f"Unknown status '{self.status}'.") from exc


def _tags_contain(tags: Any, wanted: str) -> bool:
    if not tags:
        return False
    if isinstance(tags, (list, tuple, set)):
        return wanted in tags
    return wanted in str(tags)


def _matches_search(session: Session, term: str) -> bool:
    term = term.lower()
    return (
        term in (session.participant or "").lower()
        or term in session.comment.lower()
        or term in format_score(session.score)
    )


def _matches(session: Session, query: SessionQuery) -> bool:
    attributes = session.attributes
    if query.unit is not None and attributes.get("unidade") != query.unit:
        return False
    if query.tag is not None and not _tags_contain(attributes.get("tags"), query.tag):
        return False
    if query.pill is not None and attributes.get("pill") != query.pill:
        return False
    if query.status is not None and session.status is not query.status:
        return False
    if query.type_label is not None and query.type_label not in session.type_set:
        return False
    if query.search and not _matches_search(session, query.search):
        return False
    return True


def filter_sessions(sessions: Iterable[Session], query: SessionQuery) -> List[Session]:
    return [session for session in sessions if _matches(session, query)]


def sort_sessions(
    sessions: Iterable[Session], sort_key: str = "end_time", direction: str = "desc"
) -> List[Session]:
    """Stable sort; missing values rank lowest in either direction's terms."""
    if sort_key not in SORT_KEYS:
        raise InvalidQueryError(f"Unknown sort key '{sort_key}'.")
    if direction not in ("asc", "desc"):
        raise InvalidQueryError(f"Unknown sort direction '{direction}'.")

    getter = SORT_KEYS[sort_key]

    def _key(session: Session):
        value = getter(session)
        return (0,) if value is None else (1, value)

    return sorted(sessions, key=_key, reverse=direction == "desc")


def apply_query(sessions: Iterable[Session], query: SessionQuery) -> List[Session]:
    """Filter then sort *sessions*; the result is never truncated."""
    return sort_sessions(filter_sessions(sessions, query), query.sort_key, query.direction)


@dataclass(slots=True)
class Page(Generic[T]):
    items: List[T]
    page: int
    per_page: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.per_page) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def paginate(items: Sequence[T], page: int = 1, per_page: Optional[int] = None) -> Page[T]:
    """Slice *items* for display.  Pages are 1-based."""
    per_page = config.PAGE_SIZE if per_page is None else per_page
    if page < 1:
        raise InvalidQueryError(f"Page must be >= 1, got {page}.")
    if per_page < 1:
        raise InvalidQueryError(f"Page size must be >= 1, got {per_page}.")
    start = (page - 1) * per_page
    return Page(items=list(items[start : start + per_page]), page=page, per_page=per_page, total=len(items))


# ---------------------------------------------------------------------------
# Filter dropdown options
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class FilterOptions:
    units: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    # (label, value) pairs: survey title and the pill id selecting it
    surveys: List[tuple] = field(default_factory=list)
    types: List[str] = field(default_factory=list)


def _split_tags(tags: Any) -> List[str]:
    if not tags:
        return []
    if isinstance(tags, (list, tuple, set)):
        return [str(tag).strip() for tag in tags]
    return [part.strip() for part in str(tags).split(",")]


def filter_options(sessions: Iterable[Session]) -> FilterOptions:
    """Distinct values offered by the unit / tag / survey / type dropdowns."""
    units = set()
    tags = set()
    surveys: Dict[str, Any] = {}
    types = set()

    for session in sessions:
        attributes = session.attributes
        unit = attributes.get("unidade")
        if isinstance(unit, str) and unit.strip():
            units.add(unit)
        tags.update(tag for tag in _split_tags(attributes.get("tags")) if tag)
        title = attributes.get("titulo")
        if title and title not in surveys:
            surveys[title] = attributes.get("pill") or title
        types.update(session.type_set)

    return FilterOptions(
        units=sorted(units),
        tags=sorted(tags),
        surveys=sorted(surveys.items(), key=lambda item: item[0]),
        types=sorted(types),
    )
