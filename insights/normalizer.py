"""Turn raw backend rows into :class:`~insights.models.NormalizedEvent` objects.

Every helper here is forgiving: a value that cannot be interpreted becomes
``None`` instead of raising, so one bad row never breaks a dashboard.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Iterable, List, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from insights import config
from insights.mapping import FieldMapping
from insights.models import NormalizedEvent, Role

logger = logging.getLogger(__name__)

HUMAN_ROLE_MARKERS = frozenset({"human", "user"})


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Return *value* as an aware UTC datetime, or ``None`` if unparseable.

    Naive values are assumed to be UTC.  A bare :class:`~datetime.date` is
    read as midnight of that day.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Unparseable timestamp %r", value)
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def display_zone() -> tzinfo:
    """Return the zone dates and hours are shown in (``INSIGHTS_DISPLAY_TIMEZONE``)."""
    try:
        return ZoneInfo(config.DISPLAY_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "Unknown display timezone %r; falling back to UTC", config.DISPLAY_TIMEZONE
        )
        return ZoneInfo("UTC")


def to_display_time(timestamp: datetime) -> datetime:
    """Convert the UTC *timestamp* to the display zone."""
    return timestamp.astimezone(display_zone())


def parse_score(value: Any) -> Optional[float]:
    """Coerce *value* to a finite float; empty, null or junk yields ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def classify_role(value: Any) -> Role:
    """Collapse a free-text role into :class:`Role` (case-insensitive)."""
    if isinstance(value, str) and value.strip().lower() in HUMAN_ROLE_MARKERS:
        return Role.HUMAN
    return Role.AUTOMATED


def clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _clean_optional(value: Any) -> Optional[str]:
    text = clean_text(value)
    return text or None


def _resolve_type(raw_type: str, mapping: FieldMapping) -> str:
    label = mapping.type_aliases.get(raw_type, raw_type) if raw_type else ""
    if not label:
        label = mapping.fallback_type
    return mapping.translate_type(label)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_row(
    row: Mapping[str, Any], index: int, mapping: FieldMapping
) -> NormalizedEvent:
    """Normalize a single *row* that already passed the exclusion filter."""

    def _get(column: Optional[str]) -> Any:
        return row.get(column) if column else None

    if mapping.role:
        role = classify_role(_get(mapping.role))
    else:
        role = mapping.default_role

    fields = {}
    for column in mapping.passthrough:
        fields[column] = row.get(column)

    return NormalizedEvent(
        index=index,
        session_key=_clean_optional(_get(mapping.session_key)),
        role=role,
        text=clean_text(_get(mapping.text)),
        timestamp=parse_timestamp(_get(mapping.timestamp)),
        type_tag=_resolve_type(clean_text(_get(mapping.type_tag)), mapping),
        score=parse_score(_get(mapping.score)),
        participant=_clean_optional(_get(mapping.participant)),
        fields=fields,
        raw=dict(row),
    )


def is_excluded(row: Mapping[str, Any], mapping: FieldMapping) -> bool:
    """Return *True* if the view drops *row* because of its type sentinel."""
    if not mapping.excluded_types or not mapping.type_tag:
        return False
    return clean_text(row.get(mapping.type_tag)) in mapping.excluded_types


def normalize_rows(
    rows: Iterable[Any], mapping: FieldMapping
) -> List[NormalizedEvent]:
    """Normalize *rows* in arrival order.

    Rows without a session key are kept (``session_key is None``) so raw
    tallies still see them; the aggregator skips them.  Rows of an excluded
    type and values that are not mappings are dropped.
    """
    events: List[NormalizedEvent] = []
    skipped = 0
    excluded = 0

    for index, row in enumerate(rows or ()):
        if not isinstance(row, Mapping):
            skipped += 1
            logger.warning("Ignoring non-mapping row at position %d: %r", index, row)
            continue
        if is_excluded(row, mapping):
            excluded += 1
            continue
        events.append(normalize_row(row, index, mapping))

    logger.debug(
        "Normalized %d rows for view=%s (excluded=%d skipped=%d)",
        len(events),
        mapping.name,
        excluded,
        skipped,
    )
    return events
