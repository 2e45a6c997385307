"""End-to-end transforms: raw rows → sessions → statistics, per dashboard view.

Every builder is a pure function of its arguments.  Tenant / company and
date range are passed explicitly through :class:`DashboardScope`; nothing is
read from ambient state, so the same rows always give the same result.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from insights.aggregator import aggregate_sessions, scored_sessions
from insights.companies import normalize_company_name
from insights.exceptions import UnknownViewError
from insights.filters import sort_sessions
from insights.mapping import (
    CONVERSATIONS_MAPPING,
    GROUPS_MAPPING,
    NPS_MAPPING,
    FieldMapping,
)
from insights.models import NormalizedEvent
from insights.normalizer import normalize_rows, to_display_time
from insights.ranking import EntityScore, rank_sessions
from insights.session_data import Session
from insights.statistics import (
    ConversationOverview,
    GroupActivity,
    MessageStats,
    NpsSummary,
    conversation_overview,
    group_activity,
    message_stats,
    nps_summary,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DashboardScope",
    "DashboardResult",
    "VIEWS",
    "build_nps_dashboard",
    "build_conversation_dashboard",
    "build_group_dashboard",
    "build_dashboard",
    "NPS_RANKING_FIELDS",
]

# Store and user rankings shown next to the NPS breakdown
NPS_RANKING_FIELDS = ("unidade", "participant")


@dataclass(frozen=True, slots=True)
class DashboardScope:
    """Explicit company and inclusive date window a dashboard is limited to.

    Companies are compared on their normalized form so spelling variants of
    the same tenant match.  When a date bound is set, rows without a
    parseable timestamp fall outside the window.  Days are taken in the
    display timezone, the same one the daily and hourly volumes use.
    """

    company: Optional[str] = None
    start: Optional[date] = None
    end: Optional[date] = None

    def includes(self, event: NormalizedEvent, mapping: FieldMapping) -> bool:
        if self.company and mapping.company:
            wanted = normalize_company_name(self.company)
            raw_company = event.raw.get(mapping.company)
            actual = normalize_company_name(raw_company if isinstance(raw_company, str) else None)
            if actual != wanted:
                return False
        if self.start is not None or self.end is not None:
            if event.timestamp is None:
                return False
            day = to_display_time(event.timestamp).date()
            if self.start is not None and day < self.start:
                return False
            if self.end is not None and day > self.end:
                return False
        return True

    def apply(
        self, events: Iterable[NormalizedEvent], mapping: FieldMapping
    ) -> List[NormalizedEvent]:
        return [event for event in events if self.includes(event, mapping)]


@dataclass(slots=True)
class DashboardResult:
    """Everything a view needs to render, unpaginated."""

    view: str
    scope: DashboardScope
    events: List[NormalizedEvent]
    sessions: List[Session]
    message_stats: MessageStats
    nps: Optional[NpsSummary] = None
    conversations: Optional[ConversationOverview] = None
    groups: Optional[GroupActivity] = None
    # Average-score rankings keyed by the field they group on
    rankings: Dict[str, List[EntityScore]] = field(default_factory=dict)


def _prepare(
    rows: Iterable[Any], mapping: FieldMapping, scope: DashboardScope
) -> tuple[List[NormalizedEvent], List[Session]]:
    events = scope.apply(normalize_rows(rows, mapping), mapping)
    sessions = list(aggregate_sessions(events).values())
    if mapping.requires_score:
        sessions = scored_sessions(sessions)
    logger.info(
        "dashboard_built",
        extra={"view": mapping.name, "rows": len(events), "sessions": len(sessions)},
    )
    return events, sort_sessions(sessions, "end_time", "desc")


def build_nps_dashboard(
    rows: Iterable[Any],
    scope: Optional[DashboardScope] = None,
    mapping: FieldMapping = NPS_MAPPING,
) -> DashboardResult:
    """Feedback sessions that received a score, with the NPS breakdown."""
    scope = scope or DashboardScope()
    events, sessions = _prepare(rows, mapping, scope)
    return DashboardResult(
        view=mapping.name,
        scope=scope,
        events=events,
        sessions=sessions,
        message_stats=message_stats(events),
        nps=nps_summary(sessions),
        rankings={name: rank_sessions(sessions, name) for name in NPS_RANKING_FIELDS},
    )


def build_conversation_dashboard(
    rows: Iterable[Any],
    scope: Optional[DashboardScope] = None,
    mapping: FieldMapping = CONVERSATIONS_MAPPING,
) -> DashboardResult:
    """Customer-service conversations; score is optional here."""
    scope = scope or DashboardScope()
    events, sessions = _prepare(rows, mapping, scope)
    return DashboardResult(
        view=mapping.name,
        scope=scope,
        events=events,
        sessions=sessions,
        message_stats=message_stats(events),
        conversations=conversation_overview(sessions),
    )


def build_group_dashboard(
    rows: Iterable[Any],
    scope: Optional[DashboardScope] = None,
    mapping: FieldMapping = GROUPS_MAPPING,
) -> DashboardResult:
    """WhatsApp group monitoring: one session per group, KPIs over messages."""
    scope = scope or DashboardScope()
    events, sessions = _prepare(rows, mapping, scope)
    return DashboardResult(
        view=mapping.name,
        scope=scope,
        events=events,
        sessions=sessions,
        message_stats=message_stats(events),
        groups=group_activity(events, start=scope.start, end=scope.end),
    )


VIEWS: Dict[str, Callable[..., DashboardResult]] = {
    NPS_MAPPING.name: build_nps_dashboard,
    CONVERSATIONS_MAPPING.name: build_conversation_dashboard,
    GROUPS_MAPPING.name: build_group_dashboard,
}


def build_dashboard(
    rows: Iterable[Any],
    view: Union[str, Callable[..., DashboardResult]],
    scope: Optional[DashboardScope] = None,
) -> DashboardResult:
    """Dispatch to the builder registered for *view*.

    Raises
    ------
    UnknownViewError
        If *view* is a name that is not registered in :data:`VIEWS`.
    """
    if callable(view):
        return view(rows, scope)
    builder = VIEWS.get(view)
    if builder is None:
        raise UnknownViewError(view)
    return builder(rows, scope)
