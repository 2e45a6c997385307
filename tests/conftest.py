"""Shared row fixtures for the insights test-suite."""
from __future__ import annotations

import pytest


def nps_row(session_id, when, role="human", text="", score=None, **extra):
    row = {
        "session_id": session_id,
        "created_at": when,
        "role": role,
        "text": text,
        "NPS": score,
    }
    row.update(extra)
    return row


@pytest.fixture
def nps_rows():
    """Three feedback sessions plus one that never received a score."""
    return [
        nps_row("5511_a", "2024-05-01T10:00:00Z", role="ai", text="De 0 a 10, que nota?", empresa="Divino Fogão"),
        nps_row("5511_a", "2024-05-01T10:01:00Z", text="10", score="10", user="Ana",
                empresa="Divino Fogão", unidade="Centro", tags="vip, novo", pill="p1", titulo="Pesquisa A"),
        nps_row("5511_a", "2024-05-01T10:02:00Z", text="Atendimento ótimo", user="Ana", empresa="Divino Fogão"),
        nps_row("5522_b", "2024-05-02T09:00:00Z", text="6", score=6, user="Bia",
                empresa="DIVINO FOGAO ", unidade="Norte", tags="novo", pill="p2", titulo="Pesquisa B"),
        nps_row("5522_b", "2024-05-02T09:05:00Z", role="ai", text="Obrigado!", empresa="DIVINO FOGAO "),
        nps_row("5533_c", "2024-05-03T15:00:00Z", text="8", score="8", user="Caio",
                empresa="Outra Rede", unidade="Centro", pill="p1", titulo="Pesquisa A"),
        nps_row("5544_d", "2024-05-03T16:00:00Z", text="oi", user="Duda", empresa="Outra Rede"),
    ]
