"""Flatten sessions into header + rows tables for spreadsheet / print export.

The table helpers only decide which values go in which column; `write_csv`
backs the CLI `--export` option.  PDF output is left to the caller.  The
full, unpaginated session list is always exported.
"""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, List, Sequence, Tuple

from insights.filters import format_score
from insights.normalizer import to_display_time
from insights.pipeline import DashboardResult
from insights.session_data import Session

logger = logging.getLogger(__name__)

FEEDBACK_HEADERS: Tuple[str, ...] = (
    "Nome",
    "Nota",
    "Comentário",
    "Data e Hora",
    "Classificação",
    "Empresa",
    "Unidade",
    "Tag",
    "Pesquisa",
)

CONVERSATION_HEADERS: Tuple[str, ...] = (
    "Sessão",
    "Telefone",
    "Usuário",
    "Início",
    "Fim",
    "Mensagens",
    "Status",
    "Tipos",
)

_DATE_FORMAT = "%d/%m/%Y %H:%M"


def _when(value) -> str:
    return to_display_time(value).strftime(_DATE_FORMAT) if value else "-"


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


def feedback_rows(sessions: Sequence[Session]) -> Tuple[Tuple[str, ...], List[List[str]]]:
    """Rows of the NPS listing, one per scored session."""
    rows = []
    for session in sessions:
        attributes = session.attributes
        classification = session.classification
        rows.append(
            [
                session.participant or "Anônimo",
                format_score(session.score),
                session.comment,
                _when(session.end_time),
                classification.value if classification else "",
                _text(attributes.get("empresa")),
                _text(attributes.get("unidade")),
                _text(attributes.get("tags")),
                _text(attributes.get("titulo")),
            ]
        )
    return FEEDBACK_HEADERS, rows


def conversation_rows(sessions: Sequence[Session]) -> Tuple[Tuple[str, ...], List[List[str]]]:
    """Rows of the conversations listing, one per session."""
    rows = [
        [
            session.key,
            session.phone,
            session.participant or "",
            _when(session.start_time),
            _when(session.end_time),
            str(session.message_count),
            session.status.value,
            ", ".join(session.types),
        ]
        for session in sessions
    ]
    return CONVERSATION_HEADERS, rows


def export_table(result: DashboardResult) -> Tuple[Tuple[str, ...], List[List[str]]]:
    """Pick the listing matching *result*'s view: feedback for NPS, else conversations."""
    if result.nps is not None:
        return feedback_rows(result.sessions)
    return conversation_rows(result.sessions)


def write_csv(result: DashboardResult, path: Path) -> int:
    """Write the full session listing of *result* to *path* and return the row count."""
    headers, rows = export_table(result)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(headers)
        writer.writerows(rows)
    logger.info("Exported %d %s sessions to %s", len(rows), result.view, path)
    return len(rows)
