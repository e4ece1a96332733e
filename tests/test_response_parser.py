"""Tests for lenient response body decoding."""

import pytest

from lens.core.exceptions import ResponseParseError
from lens.retrieval.response_parser import parse_json_lenient


class TestParseJsonLenient:
    """Decoding strategies in order."""

    @pytest.mark.parametrize("text", ["", "   ", "\n"])
    def test_blank_body(self, text):
        assert parse_json_lenient(text) == {}

    def test_plain_json(self):
        assert parse_json_lenient('[{"content": "a"}]') == [{"content": "a"}]

    def test_ndjson_takes_first_document(self):
        text = '{"output": "first"}\n{"output": "second"}\n'
        assert parse_json_lenient(text) == {"output": "first"}

    def test_braces_inside_strings(self):
        text = '{"text": "a } tricky { value \\" here"} trailing'
        assert parse_json_lenient(text) == {"text": 'a } tricky { value " here'}

    def test_concatenated_arrays(self):
        assert parse_json_lenient("[1, [2]][3]") == [1, [2]]

    def test_unrecoverable(self):
        with pytest.raises(ResponseParseError) as exc_info:
            parse_json_lenient("<html>Bad Gateway</html>")
        assert exc_info.value.context["preview"].startswith("<html>")

    def test_truncated_object(self):
        with pytest.raises(ResponseParseError):
            parse_json_lenient('{"output": "cut off')
