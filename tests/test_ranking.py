"""Unit tests for insights.ranking."""
from __future__ import annotations

import pytest

from insights.exceptions import InvalidQueryError
from insights.ranking import EntityScore, average_by_entity, compare_scores, rank_entities


def _rows():
    return [
        {"loja": "Loja B", "nota": 8},
        {"loja": "Loja B", "nota": "9"},
        {"loja": "Loja A", "nota": 8.5},
        {"loja": "Loja C", "nota": 10},
        {"loja": "", "nota": 1},
        {"loja": "Loja D", "nota": "abc"},
        "not a row",
    ]


def test_average_by_entity_skips_unusable_rows():
    entities = average_by_entity(_rows(), name_field="loja", score_field="nota")

    assert [(e.name, e.count, e.average) for e in entities] == [
        ("Loja B", 2, 8.5),
        ("Loja A", 1, 8.5),
        ("Loja C", 1, 10.0),
    ]


@pytest.mark.parametrize(
    "direction, expected",
    [
        ("desc", ["Loja C", "Loja A", "Loja B"]),
        ("asc", ["Loja A", "Loja B", "Loja C"]),
    ],
)
def test_equal_averages_fall_back_to_name_in_both_directions(direction, expected):
    entities = average_by_entity(_rows(), name_field="loja", score_field="nota")

    ranked = rank_entities(entities, direction=direction)

    assert [e.name for e in ranked] == expected


def test_scores_within_epsilon_are_ties():
    assert compare_scores(8.5, "Zeta", 8.5005, "Alfa") == 1
    assert compare_scores(8.5, "Zeta", 8.6, "Alfa") == 1
    assert compare_scores(8.6, "Zeta", 8.5, "Alfa") == -1
    assert compare_scores(8.5, "Zeta", 8.6, "Alfa", direction="asc") == -1


def test_custom_epsilon():
    entities = [EntityScore("B", 8.0, 1), EntityScore("A", 8.4, 1)]

    assert [e.name for e in rank_entities(entities, epsilon=0.5)] == ["A", "B"]
    assert [e.name for e in rank_entities(entities, direction="asc", epsilon=0.01)] == ["B", "A"]


def test_display_average():
    assert EntityScore("X", 25.0, 3).display_average == "8.33"
    assert EntityScore("empty").display_average == "0.00"


def test_invalid_direction():
    with pytest.raises(InvalidQueryError):
        rank_entities([], direction="sideways")
