"""Shared value types for the normalization and aggregation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    """Binary classification of who produced an event."""

    HUMAN = "human"
    AUTOMATED = "automated"


class SessionStatus(str, Enum):
    """Whether the most recent turn of a conversation came from the bot."""

    ANSWERED = "Respondida"
    UNANSWERED = "Sem Resposta"


class ScoreClass(str, Enum):
    """Three-bucket classification of a 0-10 score."""

    PROMOTER = "PROMOTOR"
    NEUTRAL = "NEUTRO"
    DETRACTOR = "DETRATOR"


@dataclass(slots=True)
class NormalizedEvent:
    """One source row after cleaning, ready for grouping."""

    index: int  # arrival position in the source list
    session_key: Optional[str]
    role: Role
    text: str
    timestamp: Optional[datetime]
    type_tag: str
    score: Optional[float] = None
    participant: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_human(self) -> bool:
        return self.role is Role.HUMAN
