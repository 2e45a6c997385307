"""Integration tests for insights.pipeline."""
from __future__ import annotations

from datetime import date

import pytest

from insights import config
from insights.exceptions import UnknownViewError
from insights.pipeline import (
    VIEWS,
    DashboardScope,
    build_conversation_dashboard,
    build_dashboard,
    build_group_dashboard,
    build_nps_dashboard,
)


def _keys(result):
    return [session.key for session in result.sessions]


def test_nps_dashboard(nps_rows):
    result = build_nps_dashboard(nps_rows)

    assert result.view == "nps"
    # Unscored session 5544_d is dropped; newest activity first
    assert _keys(result) == ["5533_c", "5522_b", "5511_a"]
    assert result.nps.total == 3
    assert (result.nps.promoters, result.nps.passives, result.nps.detractors) == (1, 1, 1)
    assert result.nps.nps_score == 0
    # Raw tallies still see every row, scored or not
    assert result.message_stats.total == 7
    assert result.message_stats.human == 5
    assert result.message_stats.unique_participants == 4
    assert result.conversations is None and result.groups is None


def test_company_scope_matches_spelling_variants(nps_rows):
    result = build_nps_dashboard(nps_rows, DashboardScope(company="divino fogão"))

    assert sorted(_keys(result)) == ["5511_a", "5522_b"]
    assert all(
        event.raw.get("empresa") in ("Divino Fogão", "DIVINO FOGAO ") for event in result.events
    )


def test_date_scope_is_inclusive(nps_rows):
    scope = DashboardScope(start=date(2024, 5, 2), end=date(2024, 5, 2))

    result = build_nps_dashboard(nps_rows, scope)

    assert _keys(result) == ["5522_b"]
    assert result.message_stats.total == 2


def test_date_scope_drops_untimed_rows(nps_rows):
    rows = nps_rows + [{"session_id": "5599_x", "created_at": None, "NPS": 9, "role": "human"}]

    unbounded = build_nps_dashboard(rows)
    bounded = build_nps_dashboard(rows, DashboardScope(start=date(2024, 1, 1)))

    assert "5599_x" in _keys(unbounded)
    assert "5599_x" not in _keys(bounded)


def test_conversation_dashboard_keeps_unscored_sessions(nps_rows):
    result = build_conversation_dashboard(nps_rows)

    assert len(result.sessions) == 4
    assert result.nps is None
    assert result.conversations.total_conversations == 4
    assert result.conversations.answered == 1


def test_group_dashboard():
    rows = [
        {"group_name": "G1", "created_at": "2024-05-01T10:00:00Z", "phone": "1", "message": "oi", "type": "elogio"},
        {"group_name": "G2", "created_at": "2024-05-02T10:00:00Z", "phone": "2", "message": "?", "type": "dúvida"},
    ]

    result = build_group_dashboard(rows, DashboardScope(start=date(2024, 5, 1), end=date(2024, 5, 3)))

    assert _keys(result) == ["G2", "G1"]
    assert result.groups.active_groups == 2
    assert result.groups.avg_per_day == 1
    assert result.message_stats.human == 2


def test_build_dashboard_dispatch(nps_rows):
    assert set(VIEWS) == {"nps", "conversations", "groups"}
    assert build_dashboard(nps_rows, "conversations").view == "conversations"
    assert build_dashboard(nps_rows, build_nps_dashboard).view == "nps"


def test_unknown_view(nps_rows):
    with pytest.raises(UnknownViewError) as excinfo:
        build_dashboard(nps_rows, "sales")

    assert excinfo.value.view == "sales"
    assert "sales" in str(excinfo.value)


def test_same_rows_same_result(nps_rows):
    first = build_nps_dashboard(nps_rows)
    second = build_nps_dashboard(list(nps_rows))

    assert _keys(first) == _keys(second)
    assert first.nps == second.nps
    assert first.message_stats == second.message_stats


def test_empty_input():
    result = build_nps_dashboard([])

    assert result.sessions == []
    assert result.nps.total == 0
    assert result.message_stats.total == 0


def test_date_scope_uses_display_timezone(monkeypatch):
    monkeypatch.setattr(config, "DISPLAY_TIMEZONE", "America/Sao_Paulo")
    rows = [
        # 2024-05-01 22:00 in São Paulo
        {"group_name": "G1", "created_at": "2024-05-02T01:00:00Z", "phone": "1"},
        # 2024-05-02 23:00 in São Paulo
        {"group_name": "G2", "created_at": "2024-05-03T02:00:00Z", "phone": "2"},
    ]
    scope = DashboardScope(start=date(2024, 5, 2), end=date(2024, 5, 2))

    result = build_group_dashboard(rows, scope)

    assert _keys(result) == ["G2"]
    assert [(d.day, d.count) for d in result.groups.daily_volume] == [(date(2024, 5, 2), 1)]


def _store_rows():
    def row(session_id, when, unit, user, score):
        return {"session_id": session_id, "created_at": when, "role": "human",
                "text": str(score), "NPS": score, "unidade": unit, "user": user}

    return [
        row("s1", "2024-05-01T10:00:00Z", "Norte", "Bia", 8.5),
        row("s2", "2024-05-01T11:00:00Z", "Centro", "Ana", 8),
        row("s3", "2024-05-01T12:00:00Z", "Centro", "Ana", 9),
        row("s4", "2024-05-01T13:00:00Z", "Sul", "Caio", 10),
    ]


def test_nps_dashboard_ranks_units_and_users():
    result = build_nps_dashboard(_store_rows())

    by_unit = result.rankings["unidade"]
    assert [(e.name, e.display_average, e.count) for e in by_unit] == [
        ("Sul", "10.00", 1),
        ("Centro", "8.50", 2),
        ("Norte", "8.50", 1),
    ]
    assert [e.name for e in result.rankings["participant"]] == ["Caio", "Ana", "Bia"]


def test_only_nps_dashboard_has_rankings(nps_rows):
    assert build_conversation_dashboard(nps_rows).rankings == {}
