import datetime
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from insights import config
from insights.models import NormalizedEvent, Role, ScoreClass, SessionStatus

_NUMERIC_ONLY_RE = re.compile(r"\d+", re.ASCII)

CommentEntry = Tuple[str, Optional[datetime.datetime]]


def classify_score(score: float) -> ScoreClass:
    """Return the promoter / neutral / detractor bucket for *score*."""
    if score >= config.PROMOTER_MIN_SCORE:
        return ScoreClass.PROMOTER
    if score >= config.NEUTRAL_MIN_SCORE:
        return ScoreClass.NEUTRAL
    return ScoreClass.DETRACTOR


def is_numeric_reply(text: str) -> bool:
    """Return *True* for replies made only of ASCII digits (scale answers)."""
    return bool(_NUMERIC_ONLY_RE.fullmatch(text))


class Session:
    """A conversation or feedback submission rebuilt from its event rows.

    A *session* is created by the aggregator the first time it sees a
    ``key`` and is folded with every later row sharing that key.  After
    :py:meth:`finalize` the ``messages`` and ``collected_texts`` lists are in
    chronological order and the derived properties (``comment``, ``status``)
    are meaningful.
    """

    def __init__(
        self,
        key: str,
        participant: Optional[str] = None,
        start_time: Optional[datetime.datetime] = None,
    ):
        self.key: str = key
        self.participant: Optional[str] = participant
        self.start_time: Optional[datetime.datetime] = start_time
        self.end_time: Optional[datetime.datetime] = start_time
        self.score: Optional[float] = None
        self.collected_texts: List[CommentEntry] = []
        self.messages: List[NormalizedEvent] = []
        self.type_set: Set[str] = set()
        # Passthrough columns (company, unit, tags...), last non-empty wins
        self.attributes: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Fold helpers
    # ------------------------------------------------------------------

    def widen(self, timestamp: Optional[datetime.datetime]) -> None:
        """Stretch ``start_time`` / ``end_time`` to cover *timestamp*."""
        if timestamp is None:
            return
        if self.start_time is None or timestamp < self.start_time:
            self.start_time = timestamp
        if self.end_time is None or timestamp > self.end_time:
            self.end_time = timestamp

    def finalize(self) -> None:
        """Order messages and comments chronologically.

        Rows with an unknown timestamp sort before every timed row; ties keep
        arrival order.
        """
        self.messages.sort(key=lambda event: _chronological_key(event.timestamp, event.index))
        ordered = sorted(
            enumerate(self.collected_texts),
            key=lambda item: _chronological_key(item[1][1], item[0]),
        )
        self.collected_texts = [entry for _, entry in ordered]

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def has_score(self) -> bool:
        return self.score is not None

    @property
    def comment(self) -> str:
        """Human comments joined in chronological order (``""`` if none)."""
        return config.COMMENT_SEPARATOR.join(text for text, _ in self.collected_texts)

    @property
    def has_comment(self) -> bool:
        return bool(self.collected_texts)

    @property
    def last_message(self) -> Optional[NormalizedEvent]:
        return self.messages[-1] if self.messages else None

    @property
    def status(self) -> SessionStatus:
        """Answered only when the chronologically last turn was automated."""
        last = self.last_message
        if last is not None and last.role is Role.AUTOMATED:
            return SessionStatus.ANSWERED
        return SessionStatus.UNANSWERED

    @property
    def classification(self) -> Optional[ScoreClass]:
        return classify_score(self.score) if self.score is not None else None

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def human_count(self) -> int:
        return sum(1 for event in self.messages if event.role is Role.HUMAN)

    @property
    def automated_count(self) -> int:
        return sum(1 for event in self.messages if event.role is Role.AUTOMATED)

    @property
    def types(self) -> List[str]:
        """Distinct type tags, sorted for stable display."""
        return sorted(self.type_set)

    @property
    def phone(self) -> str:
        """Phone prefix of keys shaped like ``<phone>_<suffix>``."""
        return self.key.split("_", 1)[0]

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain ``dict`` suitable for templates and JSON output."""
        return {
            "key": self.key,
            "participant": self.participant,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "score": self.score,
            "classification": self.classification.value if self.classification else None,
            "comment": self.comment,
            "status": self.status.value,
            "message_count": self.message_count,
            "types": self.types,
            "attributes": dict(self.attributes),
        }

    def __repr__(self) -> str:
        parts = [
            f"key='{self.key}'",
            f"messages={self.message_count}",
            f"status='{self.status.value}'",
        ]
        if self.participant:
            parts.append(f"participant='{self.participant}'")
        if self.score is not None:
            parts.append(f"score={self.score}")
        comment = self.comment
        if comment:
            parts.append(
                f"comment='{comment[:20]}...'" if len(comment) > 20 else f"comment='{comment}'"
            )
        return f"Session({', '.join(parts)})"


def _chronological_key(
    timestamp: Optional[datetime.datetime], index: int
) -> Tuple[int, datetime.datetime, int]:
    if timestamp is None:
        return (0, datetime.datetime.min.replace(tzinfo=datetime.timezone.utc), index)
    return (1, timestamp, index)
