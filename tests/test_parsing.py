import pytest

from llm.errors import MalformedResponseError
from llm.parsing import extract_json_object


def test_extracts_object_from_markdown_fence():
    raw = 'Here you go:\n```json\n{"personalInfo": {"name": "Jane"}, "skills": []}\n```\nHope it helps!'
    assert extract_json_object(raw) == {"personalInfo": {"name": "Jane"}, "skills": []}


def test_nested_braces_span_first_to_last():
    raw = 'prefix {"a": {"b": {"c": 1}}} suffix'
    assert extract_json_object(raw) == {"a": {"b": {"c": 1}}}


@pytest.mark.parametrize("raw", ["", "no json at all", "} backwards {", "only an opening {"])
def test_missing_brace_pair_is_malformed(raw):
    with pytest.raises(MalformedResponseError):
        extract_json_object(raw)


def test_invalid_json_is_malformed_and_keeps_raw_text():
    raw = '{"name": "Jane",}'
    with pytest.raises(MalformedResponseError) as excinfo:
        extract_json_object(raw)
    assert excinfo.value.raw_text == raw
