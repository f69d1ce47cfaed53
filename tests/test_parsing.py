"""Tests for model output parsing."""

from canvas_search.llm.parsing import (
    extract_json,
    parse_description,
    parse_ranked_results,
    strip_code_fences,
)


class TestStripCodeFences:
    """Tests for code fence removal."""

    def test_removes_json_fence(self) -> None:
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_text_unchanged(self) -> None:
        assert strip_code_fences("  plain  ") == "plain"


class TestExtractJson:
    """Tests for lenient JSON extraction."""

    def test_parses_clean_json(self) -> None:
        assert extract_json('[{"id": "a"}]') == [{"id": "a"}]

    def test_parses_fenced_json(self) -> None:
        assert extract_json('```json\n{"id": "a"}\n```') == {"id": "a"}

    def test_finds_json_inside_prose(self) -> None:
        """Arrays surrounded by prose are still found."""
        text = 'Here are the results: [{"id": "a", "similarity": 0.9}] Hope that helps.'
        assert extract_json(text) == [{"id": "a", "similarity": 0.9}]

    def test_returns_none_for_garbage(self) -> None:
        assert extract_json("no json here") is None

    def test_returns_none_for_empty(self) -> None:
        assert extract_json("") is None
        assert extract_json("   ") is None


class TestParseDescription:
    """Tests for description extraction."""

    def test_extracts_description(self) -> None:
        text = '```json\n{"id": "p-1", "description": " red barn, sun "}\n```'
        assert parse_description(text) == "red barn, sun"

    def test_missing_field(self) -> None:
        assert parse_description('{"id": "p-1"}') == ""

    def test_non_string_field(self) -> None:
        assert parse_description('{"description": 42}') == ""

    def test_array_is_not_a_description(self) -> None:
        assert parse_description('["red barn"]') == ""

    def test_unparseable(self) -> None:
        assert parse_description("I could not see the image") == ""


class TestParseRankedResults:
    """Tests for re-rank response parsing."""

    def test_parses_array(self) -> None:
        text = '[{"id": "a", "similarity": 0.9}, {"id": "b", "similarity": 0.4}]'
        assert parse_ranked_results(text) == [("a", 0.9), ("b", 0.4)]

    def test_parses_wrapped_results(self) -> None:
        text = '{"results": [{"id": "a", "similarity": 0.9}]}'
        assert parse_ranked_results(text) == [("a", 0.9)]

    def test_missing_similarity_is_none(self) -> None:
        """Scores that are missing or not numeric come back as None."""
        text = '[{"id": "a"}, {"id": "b", "similarity": "high"}, {"id": "c", "similarity": true}]'
        assert parse_ranked_results(text) == [("a", None), ("b", None), ("c", None)]

    def test_numeric_ids_become_strings(self) -> None:
        assert parse_ranked_results('[{"id": 7, "similarity": "0.5"}]') == [("7", 0.5)]

    def test_items_without_id_are_skipped(self) -> None:
        text = '[{"similarity": 0.9}, "a", {"id": ""}, {"id": "b", "similarity": 0.1}]'
        assert parse_ranked_results(text) == [("b", 0.1)]

    def test_malformed_returns_empty(self) -> None:
        """Malformed output never raises."""
        assert parse_ranked_results("not json at all") == []
        assert parse_ranked_results('{"answer": "a"}') == []
        assert parse_ranked_results("") == []
