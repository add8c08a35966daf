"""Unit tests for utils.response_parsers."""

from utils.response_parsers import (
    JsonArrayStrategy,
    LineHeuristicStrategy,
    StringArrayStrategy,
    parse_with_fallbacks,
)


def test_json_array_strategy_finds_array_inside_prose():
    text = 'Sure, here you go:\n[{"url": "https://a.com", "title": "A"}]\nThanks!'

    assert JsonArrayStrategy().parse(text) == [{"url": "https://a.com", "title": "A"}]


def test_json_array_strategy_returns_none_without_array():
    assert JsonArrayStrategy().parse("no brackets here") is None
    assert JsonArrayStrategy().parse("[not json at all]") is None


def test_string_array_strategy_keeps_trimmed_non_empty_strings():
    text = '["  Fact one.  ", "", 42, null, "Fact two."]'

    assert StringArrayStrategy().parse(text) == ["Fact one.", "Fact two."]


def test_line_heuristic_strips_bullets_and_filters_length():
    text = "\n".join([
        "- Anthropic was founded in 2021 by former OpenAI staff.",
        "2. Short",
        "* " + "x" * 250,
        "3) Claude models are trained with constitutional AI.",
    ])

    assert LineHeuristicStrategy().parse(text) == [
        "Anthropic was founded in 2021 by former OpenAI staff.",
        "Claude models are trained with constitutional AI.",
    ]


def test_parse_with_fallbacks_uses_first_matching_strategy():
    strategies = [StringArrayStrategy(), LineHeuristicStrategy()]

    assert parse_with_fallbacks('["Alpha beta gamma."]', strategies) == ["Alpha beta gamma."]
    assert parse_with_fallbacks("- The first fact is here.\n- The second fact is here.", strategies) == [
        "The first fact is here.",
        "The second fact is here.",
    ]


def test_parse_with_fallbacks_malformed_json_falls_back_to_lines():
    strategies = [StringArrayStrategy(), LineHeuristicStrategy()]
    text = '["unterminated fact string here\n- A fallback line that is long enough'

    assert parse_with_fallbacks(text, strategies) == [
        '["unterminated fact string here',
        "A fallback line that is long enough",
    ]


def test_parse_with_fallbacks_empty_when_nothing_matches():
    assert parse_with_fallbacks("anything", []) == []
