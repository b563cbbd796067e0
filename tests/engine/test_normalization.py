from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from longshot.engine.normalization import (
    is_instruction,
    normalize,
    normalize_lower,
    normalize_person_name,
    number_words_to_digits,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("What are the odds that Josh Allen throws 30 TDs this season??", "Josh Allen throws 30 TDs this season"),
        ("Josh Allen wins MVP this season (no explanation)", "Josh Allen wins MVP this season"),
        ("Josh Allen wins MVP, explain why", "Josh Allen wins MVP"),
        ("odds on   a  team going 17-0", "a team going 17-0"),
        ("Ja’Marr Chase gets 1,500 receiving yards", "Ja'Marr Chase gets 1,500 receiving yards"),
        ("The Super Bowl goes to overtime!!!", "The Super Bowl goes to overtime!"),
    ],
)
def test_normalize_examples(raw: str, expected: str) -> None:
    assert normalize(raw) == expected


def test_normalize_handles_empty_input() -> None:
    assert normalize(None) == ""
    assert normalize("   ?? ") == ""
    assert normalize_lower("Odds that Drake Maye Wins MVP?") == "drake maye wins mvp"


def test_instruction_detection_requires_the_whole_clause() -> None:
    assert is_instruction("no explanation please")
    assert is_instruction("odds only")
    assert not is_instruction("why is Josh Allen so good")
    assert not is_instruction("")


def test_number_words_become_digits() -> None:
    assert number_words_to_digits("Two Super Bowls in the next three years") == "2 Super Bowls in the next 3 years"
    assert number_words_to_digits("someone") == "someone"


@pytest.mark.parametrize(
    "name, key",
    [
        ("Ja'Marr  Chase", "jamarr chase"),
        ("A.J. Brown", "aj brown"),
        ("Amon-Ra St. Brown", "amon ra st brown"),
        (None, ""),
    ],
)
def test_normalize_person_name(name: object, key: str) -> None:
    assert normalize_person_name(name) == key


@given(st.text(max_size=120))
def test_normalize_output_is_trimmed_and_single_spaced(text: str) -> None:
    result = normalize(text)
    assert result == result.strip(" ?")
    assert "  " not in result
