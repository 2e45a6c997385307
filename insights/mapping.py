"""Field mappings that adapt each view's row schema to the generic pipeline.

The NPS, conversation and WhatsApp group tables store the same logical
information under different column names.  A :class:`FieldMapping` names the
column that plays each logical role so a single normalizer/aggregator serves
all of them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from insights import config
from insights.exceptions import InvalidFieldMappingError
from insights.models import Role

__all__ = [
    "FieldMapping",
    "NPS_MAPPING",
    "CONVERSATIONS_MAPPING",
    "GROUPS_MAPPING",
    "GROUP_TYPE_CATEGORIES",
]

# Keyword buckets used to translate free-text group message types.
# Order matters: the first bucket whose keyword occurs in the type wins.
GROUP_TYPE_CATEGORIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Reclamações", ("reclam", "complain")),
    ("Perguntas", ("dúvida", "duvida", "question")),
    ("Elogios", ("elogio", "praise")),
    ("Solicitações", ("solicita", "request")),
    ("Riscos", ("risco", "risk")),
    ("Neutro", ("neutr",)),
)
GROUP_TYPE_OTHER = "Outros"


@dataclass(frozen=True, slots=True)
class FieldMapping:
    """Names of the source columns feeding each logical event field.

    ``session_key`` and ``timestamp`` are mandatory.  Every other field may be
    ``None`` when the view has no such column; ``role`` then falls back to
    ``default_role``.
    """

    name: str
    session_key: str
    timestamp: str
    role: Optional[str] = None
    text: Optional[str] = None
    score: Optional[str] = None
    type_tag: Optional[str] = None
    participant: Optional[str] = None
    company: Optional[str] = None
    passthrough: Tuple[str, ...] = ()
    default_role: Role = Role.AUTOMATED
    fallback_type: str = config.FALLBACK_TYPE_LABEL
    type_aliases: Dict[str, str] = field(default_factory=dict)
    excluded_types: Tuple[str, ...] = ()
    type_categories: Optional[Tuple[Tuple[str, Tuple[str, ...]], ...]] = None
    requires_score: bool = False

    def __post_init__(self) -> None:
        if not self.session_key:
            raise InvalidFieldMappingError(
                f"Field mapping '{self.name}' must name a session key field."
            )
        if not self.timestamp:
            raise InvalidFieldMappingError(
                f"Field mapping '{self.name}' must name a timestamp field."
            )

    def translate_type(self, value: str) -> str:
        """Return the display label for the already-cleaned type *value*."""
        if self.type_categories is None:
            return value
        lowered = value.lower()
        for label, keywords in self.type_categories:
            if any(keyword in lowered for keyword in keywords):
                return label
        return GROUP_TYPE_OTHER


NPS_MAPPING = FieldMapping(
    name="nps",
    session_key="session_id",
    timestamp="created_at",
    role="role",
    text="text",
    score="NPS",
    participant="user",
    company="empresa",
    passthrough=("empresa", "unidade", "tags", "pill", "titulo"),
    requires_score=True,
)

CONVERSATIONS_MAPPING = FieldMapping(
    name="conversations",
    session_key="session_id",
    timestamp="created_at",
    role="role",
    text="text",
    type_tag="type",
    participant="user",
    company="empresa",
    passthrough=("empresa",),
    type_aliases={"text": config.FALLBACK_TYPE_LABEL},
    excluded_types=("group",),
)

# Group messages are written by people; there is no role column.
GROUPS_MAPPING = FieldMapping(
    name="groups",
    session_key="group_name",
    timestamp="created_at",
    text="message",
    type_tag="type",
    participant="phone",
    company="company",
    passthrough=("company", "group_name", "user", "phone"),
    default_role=Role.HUMAN,
    fallback_type=GROUP_TYPE_OTHER,
    type_categories=GROUP_TYPE_CATEGORIES,
)
