"""Context dataclass for rendering dashboard reports.

This module defines `ReportContext`, a typed container that holds all
values expected by the master Jinja2 template located in
`insights/reporting/templates/report.md.j2`.

Keeping *context building* apart from *template rendering* lets the
statistics be unit-tested without touching template strings, and lets other
outputs (JSON, HTML) reuse the same context object.
"""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from datetime import datetime as _dt
from datetime import timezone as _tz
from typing import Any, Dict, List, Optional

from insights import config
from insights.filters import format_score
from insights.models import ScoreClass
from insights.normalizer import to_display_time
from insights.pipeline import DashboardResult

__all__ = [
    "Headline",
    "CommentLine",
    "RankingTable",
    "ReportContext",
    "build_report_context",
]

_DATE_FORMAT = "%d/%m/%Y %H:%M"


@dataclass(slots=True)
class Headline:
    """One labelled figure shown at the top of the report."""

    label: str
    value: str


@dataclass(slots=True)
class CommentLine:
    participant: str
    score: str
    classification: str
    comment: str
    when: str


_RANKING_TITLES = {
    "unidade": "Ranking por unidade",
    "participant": "Ranking por usuário",
}


@dataclass(slots=True)
class RankingTable:
    title: str
    entries: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class ReportContext:
    """Container with all fields used by the report template."""

    # Header & meta
    view: str
    date: str  # ISO-8601 date string (UTC)
    company: Optional[str] = None
    period: Optional[str] = None

    headlines: List[Headline] = field(default_factory=list)
    type_rows: List[Dict[str, Any]] = field(default_factory=list)
    top_users: List[Dict[str, Any]] = field(default_factory=list)
    rankings: List[RankingTable] = field(default_factory=list)
    comments: List[CommentLine] = field(default_factory=list)
    hidden_comments: int = 0

    version: str = "1"

    def to_dict(self) -> Dict[str, Any]:  # noqa: D401 – simple helper
        """Return a *plain* ``dict`` (recursively) for Jinja rendering."""
        return asdict(self)


def _format_when(value: Optional[_dt]) -> str:
    return to_display_time(value).strftime(_DATE_FORMAT) if value else "-"


def _period(result: DashboardResult) -> Optional[str]:
    scope = result.scope
    if scope.start is None and scope.end is None:
        return None
    start = scope.start.isoformat() if scope.start else "…"
    end = scope.end.isoformat() if scope.end else "…"
    return f"{start} → {end}"


def _headlines(result: DashboardResult) -> List[Headline]:
    stats = result.message_stats
    lines: List[Headline] = []

    if result.nps is not None:
        nps = result.nps
        lines += [
            Headline("NPS", str(nps.nps_score)),
            Headline("Respostas", str(nps.total)),
            Headline("Promotores", f"{nps.promoters} ({nps.share(ScoreClass.PROMOTER)}%)"),
            Headline("Neutros", f"{nps.passives} ({nps.share(ScoreClass.NEUTRAL)}%)"),
            Headline("Detratores", f"{nps.detractors} ({nps.share(ScoreClass.DETRACTOR)}%)"),
        ]
    if result.conversations is not None:
        overview = result.conversations
        lines += [
            Headline("Conversas", str(overview.total_conversations)),
            Headline("Mensagens", str(overview.total_messages)),
            Headline("Usuários únicos", str(overview.unique_users)),
            Headline("Média de mensagens", str(overview.avg_messages)),
            Headline("Respondidas", str(overview.answered)),
            Headline("Sem resposta", str(overview.unanswered)),
        ]
    if result.groups is not None:
        groups = result.groups
        lines += [
            Headline("Mensagens", str(groups.total)),
            Headline("Grupos ativos", str(groups.active_groups)),
            Headline("Usuários ativos", str(groups.active_users)),
            Headline("Média por dia", str(groups.avg_per_day)),
        ]

    lines += [
        Headline("Humano", f"{stats.human} ({stats.human_percentage}%)"),
        Headline("Automático", f"{stats.automated} ({stats.automated_percentage}%)"),
    ]
    return lines


def _rankings(result: DashboardResult) -> List[RankingTable]:
    tables = []
    for name, entities in result.rankings.items():
        if not entities:
            continue
        entries = [
            {"name": entity.name, "average": entity.display_average, "count": entity.count}
            for entity in entities[: config.MAX_RANKING]
        ]
        tables.append(RankingTable(title=_RANKING_TITLES.get(name, name), entries=entries))
    return tables


def _type_rows(result: DashboardResult) -> List[Dict[str, Any]]:
    if result.conversations is not None:
        buckets = result.conversations.type_distribution
    elif result.groups is not None:
        buckets = result.groups.type_distribution
    else:
        buckets = result.message_stats.type_distribution
    return [asdict(bucket) for bucket in buckets[: config.MAX_TYPES]]


def build_report_context(result: DashboardResult) -> ReportContext:
    """Convert a :class:`DashboardResult` into :class:`ReportContext`.

    The function is *pure*: it does not mutate *result*.  Comments are
    capped at ``REPORT_MAX_COMMENTS``; the number left out is reported.
    Only feedback views list comments; conversation and group comments are
    whole transcripts.
    """
    commented: List = []
    if result.nps is not None:
        commented = [session for session in result.sessions if session.has_comment]
    comments = [
        CommentLine(
            participant=session.participant or "Anônimo",
            score=format_score(session.score) or "-",
            classification=session.classification.value if session.classification else "-",
            comment=session.comment,
            when=_format_when(session.end_time),
        )
        for session in commented[: config.MAX_COMMENTS]
    ]

    top_users = []
    if result.conversations is not None:
        top_users = [asdict(load) for load in result.conversations.top_users]

    return ReportContext(
        view=result.view,
        date=_dt.now(tz=_tz.utc).strftime("%Y-%m-%d"),
        company=result.scope.company,
        period=_period(result),
        headlines=_headlines(result),
        type_rows=_type_rows(result),
        top_users=top_users,
        rankings=_rankings(result),
        comments=comments,
        hidden_comments=max(0, len(commented) - len(comments)),
        version=os.getenv("REPORT_VERSION", "0.1"),
    )
