"""Roll-up statistics computed from normalized events and finalized sessions.

Every reducer accepts empty input and returns zeroed values; none of them
raise for data-quality issues.
"""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from insights import config
from insights.models import NormalizedEvent, Role, ScoreClass, SessionStatus
from insights.normalizer import display_zone
from insights.session_data import Session, classify_score

__all__ = [
    "TypeBucket",
    "MessageStats",
    "NpsSummary",
    "UserLoad",
    "ConversationOverview",
    "DailyVolume",
    "GroupActivity",
    "round_half_up",
    "format_percentage",
    "type_distribution",
    "message_stats",
    "nps_summary",
    "conversation_overview",
    "group_activity",
]

UNKNOWN_USER_LABEL = "Desconhecido"


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class TypeBucket:
    type: str
    count: int
    percentage: str


@dataclass(slots=True)
class MessageStats:
    """Raw volume figures computed over the ungrouped event list."""

    total: int = 0
    human: int = 0
    automated: int = 0
    human_percentage: str = "0.00"
    automated_percentage: str = "0.00"
    unique_participants: int = 0
    type_distribution: List[TypeBucket] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class NpsSummary:
    """Promoter / neutral / detractor counts and the composite score."""

    total: int = 0
    promoters: int = 0
    passives: int = 0
    detractors: int = 0
    nps_score: int = 0
    average_score: float = 0.0

    def share(self, bucket: ScoreClass) -> str:
        """Return the percentage of scored sessions that fall in *bucket*."""
        counts = {
            ScoreClass.PROMOTER: self.promoters,
            ScoreClass.NEUTRAL: self.passives,
            ScoreClass.DETRACTOR: self.detractors,
        }
        return format_percentage(counts[bucket], self.total)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class UserLoad:
    user: str
    conversations: int = 0
    messages: int = 0


@dataclass(slots=True)
class ConversationOverview:
    """Overview cards of the conversations view."""

    total_conversations: int = 0
    total_messages: int = 0
    unique_users: int = 0
    avg_messages: int = 0
    total_human: int = 0
    total_automated: int = 0
    answered: int = 0
    unanswered: int = 0
    type_distribution: List[TypeBucket] = field(default_factory=list)
    top_users: List[UserLoad] = field(default_factory=list)
    hourly_volume: List[int] = field(default_factory=lambda: [0] * 24)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class DailyVolume:
    day: date
    count: int


@dataclass(slots=True)
class GroupActivity:
    """KPIs of the WhatsApp group monitoring view."""

    total: int = 0
    active_groups: int = 0
    active_users: int = 0
    avg_per_day: int = 0
    daily_volume: List[DailyVolume] = field(default_factory=list)
    type_distribution: List[TypeBucket] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Arithmetic helpers
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""
    return math.floor(value + 0.5)


def format_percentage(count: int, total: int) -> str:
    """Return ``count / total * 100`` with two decimals; ``"0.00"`` if total is 0."""
    if total <= 0:
        return "0.00"
    value = Decimal(str(count / total * 100))
    return str(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------


def type_distribution(labels: Iterable[str]) -> List[TypeBucket]:
    """Count *labels* and return buckets sorted by count desc, then name."""
    counts: Counter[str] = Counter(labels)
    total = sum(counts.values())
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [
        TypeBucket(type=label, count=count, percentage=format_percentage(count, total))
        for label, count in ordered
    ]


def message_stats(events: Sequence[NormalizedEvent]) -> MessageStats:
    """Raw message-volume statistics, including rows without a session key."""
    total = len(events)
    human = sum(1 for event in events if event.role is Role.HUMAN)
    automated = total - human
    participants = {event.participant for event in events if event.participant}

    return MessageStats(
        total=total,
        human=human,
        automated=automated,
        human_percentage=format_percentage(human, total),
        automated_percentage=format_percentage(automated, total),
        unique_participants=len(participants),
        type_distribution=type_distribution(event.type_tag for event in events),
    )


def nps_summary(sessions: Iterable[Session]) -> NpsSummary:
    """Classify every scored session and compute the composite NPS."""
    summary = NpsSummary()
    score_sum = 0.0

    for session in sessions:
        if session.score is None:
            continue
        summary.total += 1
        score_sum += session.score
        bucket = classify_score(session.score)
        if bucket is ScoreClass.PROMOTER:
            summary.promoters += 1
        elif bucket is ScoreClass.NEUTRAL:
            summary.passives += 1
        else:
            summary.detractors += 1

    if summary.total:
        summary.nps_score = round_half_up(
            ((summary.promoters - summary.detractors) / summary.total) * 100
        )
        summary.average_score = score_sum / summary.total
    return summary


def conversation_overview(
    sessions: Sequence[Session], *, top_n: Optional[int] = None
) -> ConversationOverview:
    """Compute the conversations view cards from *sessions*."""
    top_n = config.TOP_USERS if top_n is None else top_n
    overview = ConversationOverview()
    if not sessions:
        return overview

    zone = display_zone()
    load: Dict[str, UserLoad] = {}
    type_labels: List[str] = []

    for session in sessions:
        overview.total_conversations += 1
        overview.total_messages += session.message_count
        overview.total_human += session.human_count
        overview.total_automated += session.automated_count
        if session.status is SessionStatus.ANSWERED:
            overview.answered += 1
        else:
            overview.unanswered += 1

        name = session.participant or UNKNOWN_USER_LABEL
        entry = load.setdefault(name, UserLoad(user=name))
        entry.conversations += 1
        entry.messages += session.message_count

        type_labels.extend(session.types)
        for event in session.messages:
            if event.timestamp is not None:
                overview.hourly_volume[event.timestamp.astimezone(zone).hour] += 1

    # Sessions without a participant count as one "Desconhecido" user
    overview.unique_users = len(load)
    overview.avg_messages = round_half_up(
        overview.total_messages / overview.total_conversations
    )
    overview.type_distribution = type_distribution(type_labels)
    overview.top_users = sorted(
        load.values(), key=lambda item: (-item.messages, item.user)
    )[:top_n]
    return overview


def group_activity(
    events: Sequence[NormalizedEvent],
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> GroupActivity:
    """Compute group-monitoring KPIs over the (ungrouped) message list.

    The per-day average divides by the number of days between *start* and
    *end* (at least one).  Without explicit bounds the span of the messages'
    own dates is used.
    """
    activity = GroupActivity(total=len(events))
    if not events:
        return activity

    zone = display_zone()
    per_day: Dict[date, int] = defaultdict(int)
    for event in events:
        if event.timestamp is not None:
            per_day[event.timestamp.astimezone(zone).date()] += 1

    activity.active_groups = len({event.session_key for event in events if event.session_key})
    activity.active_users = len({event.participant for event in events if event.participant})

    if start is None and per_day:
        start = min(per_day)
    if end is None and per_day:
        end = max(per_day)
    span = (end - start).days if start is not None and end is not None else 0
    activity.avg_per_day = round_half_up(activity.total / max(1, span))

    activity.daily_volume = [
        DailyVolume(day=day, count=count) for day, count in sorted(per_day.items())
    ]
    activity.type_distribution = type_distribution(event.type_tag for event in events)
    return activity
