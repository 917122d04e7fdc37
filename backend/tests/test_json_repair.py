"""
Unit tests for utils/json_repair.py

Model output arrives fenced, wrapped in prose or cut off mid-object; these
tests pin down what is salvaged in each case.
"""
import pytest

from travel_crm.utils.json_repair import (
    JSONRepairError,
    close_truncated_json,
    extract_json_object,
    parse_model_json,
    strip_code_fences,
)


class TestStripCodeFences:
    def test_json_fence_removed(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence_removed(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_unfenced_text_untouched(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


class TestExtractJsonObject:
    def test_prose_around_object_dropped(self):
        assert extract_json_object('Here you go: {"a": 1} enjoy!') == '{"a": 1}'

    def test_missing_closing_brace_keeps_tail(self):
        assert extract_json_object('note {"title": "Tea') == '{"title": "Tea'

    def test_no_object_raises(self):
        with pytest.raises(JSONRepairError):
            extract_json_object("[1, 2, 3]")


class TestCloseTruncatedJson:
    def test_closes_nested_containers(self):
        assert close_truncated_json('{"days": [{"day": 1}') == '{"days": [{"day": 1}]}'

    def test_drops_trailing_comma(self):
        assert close_truncated_json('{"a": [1, 2,') == '{"a": [1, 2]}'

    def test_dangling_key_gets_null(self):
        assert close_truncated_json('{"a":') == '{"a": null}'

    def test_closes_open_string(self):
        assert close_truncated_json('{"title": "Tea Country') == '{"title": "Tea Country"}'

    def test_brackets_inside_strings_ignored(self):
        assert close_truncated_json('{"a": "x}]"') == '{"a": "x}]"}'


class TestParseModelJson:
    def test_plain_object(self):
        assert parse_model_json('{"title": "T"}') == {"title": "T"}

    def test_fenced_object(self):
        assert parse_model_json('```json\n{"title": "T"}\n```') == {"title": "T"}

    def test_truncated_day_list_keeps_complete_days(self):
        content = '{"title": "T", "days": [{"day": 1}, {"day": 2, "title": "Ka'
        assert parse_model_json(content) == {"title": "T", "days": [{"day": 1}]}

    def test_escaped_quote_in_cut_string(self):
        assert parse_model_json('{"a": "say \\"hi') == {"a": 'say "hi'}

    @pytest.mark.parametrize("content", ["", "   ", None])
    def test_empty_output_raises(self, content):
        with pytest.raises(JSONRepairError):
            parse_model_json(content)

    def test_unrepairable_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_model_json('{"a": 1 "b": 2}')
