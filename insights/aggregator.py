"""Fold normalized events into :class:`~insights.session_data.Session` records."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from insights.models import NormalizedEvent, Role
from insights.session_data import Session, is_numeric_reply

logger = logging.getLogger(__name__)


def _has_value(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def fold_event(session: Session, event: NormalizedEvent) -> None:
    """Apply *event* to *session*.

    Precedence rules, applied in arrival order:

    * ``start_time`` / ``end_time`` only ever widen; untimed events leave
      them untouched.
    * ``participant``, ``score`` and passthrough attributes are last write
      wins, but only non-empty values overwrite.
    * Human text is collected unless empty or purely numeric.  The event is
      appended to ``messages`` either way.
    """
    session.widen(event.timestamp)

    if event.participant:
        session.participant = event.participant
    if event.score is not None:
        session.score = event.score
    for column, value in event.fields.items():
        if _has_value(value):
            session.attributes[column] = value

    session.messages.append(event)

    if event.role is Role.HUMAN and event.text and not is_numeric_reply(event.text):
        session.collected_texts.append((event.text, event.timestamp))

    session.type_set.add(event.type_tag)


def aggregate_sessions(events: Iterable[NormalizedEvent]) -> Dict[str, Session]:
    """Group *events* by session key and return finalized sessions.

    Events without a session key are ignored.  The mapping preserves the
    order in which each key was first seen.  The function is read-only with
    respect to *events*.
    """
    sessions: Dict[str, Session] = {}
    ungrouped = 0

    for event in events:
        if event.session_key is None:
            ungrouped += 1
            continue
        session = sessions.get(event.session_key)
        if session is None:
            session = Session(
                key=event.session_key,
                participant=event.participant,
                start_time=event.timestamp,
            )
            sessions[event.session_key] = session
        fold_event(session, event)

    for session in sessions.values():
        session.finalize()

    logger.debug(
        "Aggregated %d sessions (ungrouped rows=%d)", len(sessions), ungrouped
    )
    return sessions


def scored_sessions(sessions: Iterable[Session]) -> List[Session]:
    """Return only sessions that received a usable score."""
    return [session for session in sessions if session.has_score]
