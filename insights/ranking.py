"""Average-score rankings of stores and users with a deterministic tie-break."""

from __future__ import annotations

import functools
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from insights import config
from insights.exceptions import InvalidQueryError
from insights.normalizer import clean_text, parse_score
from insights.session_data import Session

logger = logging.getLogger(__name__)

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(slots=True)
class EntityScore:
    """Average score of one named entity (store, user, consultant)."""

    name: str
    total: float = 0.0
    count: int = 0

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0

    @property
    def display_average(self) -> str:
        return f"{self.average:.2f}"


def average_by_entity(
    rows: Iterable[Mapping[str, Any]], *, name_field: str, score_field: str
) -> List[EntityScore]:
    """Average *score_field* per *name_field* across *rows*.

    Rows without a name or without a usable score are skipped.  Entities are
    returned in first-seen order; use :func:`rank_entities` to sort them.
    """
    entities: "OrderedDict[str, EntityScore]" = OrderedDict()
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        name = clean_text(row.get(name_field))
        score = parse_score(row.get(score_field))
        if not name or score is None:
            continue
        entity = entities.setdefault(name, EntityScore(name=name))
        entity.total += score
        entity.count += 1
    return list(entities.values())


def compare_scores(
    a_score: float,
    a_name: str,
    b_score: float,
    b_name: str,
    *,
    direction: str = "desc",
    epsilon: Optional[float] = None,
) -> int:
    """``cmp``-style comparison: scores within *epsilon* fall back to name asc."""
    epsilon = config.TIE_EPSILON if epsilon is None else epsilon
    if abs(a_score - b_score) < epsilon:
        return (a_name > b_name) - (a_name < b_name)
    if direction == "asc":
        return -1 if a_score < b_score else 1
    return -1 if a_score > b_score else 1


def rank_entities(
    entities: Iterable[EntityScore],
    *,
    direction: str = "desc",
    epsilon: Optional[float] = None,
) -> List[EntityScore]:
    """Return *entities* sorted by average score.

    Raises
    ------
    InvalidQueryError
        If *direction* is neither ``"asc"`` nor ``"desc"``.
    """
    if direction not in SORT_DIRECTIONS:
        raise InvalidQueryError(f"Unknown sort direction '{direction}'.")

    def _cmp(a: EntityScore, b: EntityScore) -> int:
        return compare_scores(
            a.average, a.name, b.average, b.name, direction=direction, epsilon=epsilon
        )

    return sorted(entities, key=functools.cmp_to_key(_cmp))


def rank_sessions(
    sessions: Iterable[Session],
    name_field: str,
    *,
    direction: str = "desc",
    epsilon: Optional[float] = None,
) -> List[EntityScore]:
    """Rank the average score of *sessions* grouped by *name_field*.

    *name_field* names a passthrough attribute (``"unidade"``) or
    ``"participant"``.  Sessions without a score or a name are left out.
    """
    rows = []
    for session in sessions:
        row = dict(session.attributes)
        row["participant"] = session.participant
        row["score"] = session.score
        rows.append(row)
    entities = average_by_entity(rows, name_field=name_field, score_field="score")
    logger.debug("Ranking %d entities by %s", len(entities), name_field)
    return rank_entities(entities, direction=direction, epsilon=epsilon)
