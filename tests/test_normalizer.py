"""Unit tests for insights.normalizer."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from insights.mapping import CONVERSATIONS_MAPPING, GROUPS_MAPPING, NPS_MAPPING
from insights.models import Role
from insights.normalizer import (
    classify_role,
    normalize_rows,
    parse_score,
    parse_timestamp,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-05-01T10:00:00Z", datetime(2024, 5, 1, 10, tzinfo=timezone.utc)),
        ("2024-05-01 10:00:00", datetime(2024, 5, 1, 10, tzinfo=timezone.utc)),
        ("2024-05-01T13:00:00+03:00", datetime(2024, 5, 1, 10, tzinfo=timezone.utc)),
        (date(2024, 5, 1), datetime(2024, 5, 1, tzinfo=timezone.utc)),
    ],
)
def test_parse_timestamp_returns_aware_utc(value, expected):
    parsed = parse_timestamp(value)
    assert parsed == expected
    assert parsed.utcoffset() == timedelta(0)


@pytest.mark.parametrize("value", [None, "", "   ", "not a date", 12345, True])
def test_parse_timestamp_unparseable_is_none(value):
    assert parse_timestamp(value) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("9", 9.0),
        (7, 7.0),
        (8.5, 8.5),
        (" 10 ", 10.0),
        ("7,5", 7.5),
        (0, 0.0),
    ],
)
def test_parse_score_coerces_numbers(value, expected):
    assert parse_score(value) == expected


@pytest.mark.parametrize("value", [None, "", "  ", "abc", "nan", "inf", True, [9]])
def test_parse_score_rejects_junk(value):
    assert parse_score(value) is None


@pytest.mark.parametrize("value", ["human", "Human", " USER ", "user"])
def test_classify_role_human_markers(value):
    assert classify_role(value) is Role.HUMAN


@pytest.mark.parametrize("value", ["ai", "assistant", "", None, 3])
def test_classify_role_everything_else_is_automated(value):
    assert classify_role(value) is Role.AUTOMATED


def test_normalize_rows_trims_and_maps_fields():
    rows = [
        {
            "session_id": " S1 ",
            "created_at": "2024-05-01T10:00:00Z",
            "role": "human",
            "text": "  ótimo  ",
            "NPS": "10",
            "user": "Ana",
            "empresa": "Divino Fogão",
            "unidade": "Centro",
        }
    ]

    (event,) = normalize_rows(rows, NPS_MAPPING)

    assert event.index == 0
    assert event.session_key == "S1"
    assert event.role is Role.HUMAN
    assert event.text == "ótimo"
    assert event.score == 10.0
    assert event.participant == "Ana"
    assert event.fields["unidade"] == "Centro"
    assert event.fields["tags"] is None
    assert event.type_tag == "Mensagem Normal"


def test_rows_without_session_key_are_kept_ungrouped():
    rows = [
        {"session_id": None, "created_at": "2024-05-01T10:00:00Z", "role": "human"},
        {"session_id": "   ", "created_at": "2024-05-01T10:00:00Z", "role": "ai"},
    ]

    events = normalize_rows(rows, CONVERSATIONS_MAPPING)

    assert [event.session_key for event in events] == [None, None]


def test_missing_score_and_text_do_not_drop_rows():
    rows = [{"session_id": "S1", "created_at": "2024-05-01T10:00:00Z"}]

    (event,) = normalize_rows(rows, NPS_MAPPING)

    assert event.score is None
    assert event.text == ""
    assert event.role is Role.AUTOMATED


def test_excluded_type_is_removed_before_processing():
    rows = [
        {"session_id": "S1", "created_at": "2024-05-01T10:00:00Z", "type": "group"},
        {"session_id": "S1", "created_at": "2024-05-01T10:01:00Z", "type": "audio"},
    ]

    events = normalize_rows(rows, CONVERSATIONS_MAPPING)

    assert [event.type_tag for event in events] == ["audio"]
    assert events[0].index == 1


def test_exclusion_is_view_specific():
    rows = [{"session_id": "S1", "created_at": "2024-05-01T10:00:00Z", "type": "group"}]

    assert normalize_rows(rows, NPS_MAPPING)  # NPS view has no sentinel


@pytest.mark.parametrize("raw_type", [None, "", "  ", "text"])
def test_type_alias_and_fallback(raw_type):
    rows = [{"session_id": "S1", "created_at": "2024-05-01T10:00:00Z", "type": raw_type}]

    (event,) = normalize_rows(rows, CONVERSATIONS_MAPPING)

    assert event.type_tag == "Mensagem Normal"


@pytest.mark.parametrize(
    "raw_type, label",
    [
        ("Reclamação de atraso", "Reclamações"),
        ("complaint", "Reclamações"),
        ("Dúvida", "Perguntas"),
        ("elogio", "Elogios"),
        ("Solicitação", "Solicitações"),
        ("RISCO", "Riscos"),
        ("neutral", "Neutro"),
        ("sticker", "Outros"),
        (None, "Outros"),
    ],
)
def test_group_types_are_translated(raw_type, label):
    rows = [{"group_name": "G1", "created_at": "2024-05-01T10:00:00Z", "type": raw_type}]

    (event,) = normalize_rows(rows, GROUPS_MAPPING)

    assert event.type_tag == label


def test_group_rows_default_to_human_role():
    rows = [{"group_name": "G1", "created_at": "2024-05-01T10:00:00Z", "phone": "5511"}]

    (event,) = normalize_rows(rows, GROUPS_MAPPING)

    assert event.role is Role.HUMAN
    assert event.participant == "5511"


def test_non_mapping_rows_are_skipped_without_error():
    rows = ["junk", None, {"session_id": "S1", "created_at": "2024-05-01T10:00:00Z"}]

    events = normalize_rows(rows, NPS_MAPPING)

    assert len(events) == 1
    assert events[0].index == 2


def test_empty_input():
    assert normalize_rows([], NPS_MAPPING) == []
    assert normalize_rows(None, NPS_MAPPING) == []
