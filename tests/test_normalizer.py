import json

import pytest

from backend.normalizer import extract_json_block, normalize, strip_code_fence

WELL_FORMED = '{"title":"T","slides":[{"title":"S1","content":["a","b"]}]}'


def test_fenced_json_is_unwrapped():
    deck = normalize("```json\n" + WELL_FORMED + "\n```")
    assert deck["title"] == "T"
    assert len(deck["slides"]) == 1
    assert deck["slides"][0]["title"] == "S1"
    assert deck["slides"][0]["content"] == ["a", "b"]


def test_untagged_fence_and_surrounding_whitespace():
    deck = normalize("\n\n```\n" + WELL_FORMED + "\n```\n  ")
    assert deck["title"] == "T"


def test_commentary_before_and_after_json():
    deck = normalize("Sure! Here is your deck:\n" + WELL_FORMED + "\nHope this helps.")
    assert deck["slides"][0]["content"] == ["a", "b"]


def test_plain_text_falls_back_with_raw_text_verbatim():
    deck = normalize("not json at all")
    assert deck["title"] == "Error"
    assert len(deck["slides"]) == 1
    assert deck["slides"][0]["title"] == "Error"
    assert deck["slides"][0]["content"] == ["not json at all"]


def test_empty_text_falls_back_to_untitled():
    deck = normalize("")
    assert deck["title"] == "Untitled"
    assert len(deck["slides"]) == 1


def test_none_is_treated_as_empty():
    assert normalize(None)["title"] == "Untitled"


def test_object_without_slides_falls_back():
    raw = '{"title": "No slides here"}'
    deck = normalize(raw)
    assert deck["title"] == "Error"
    assert deck["slides"][0]["content"] == [raw]


def test_slides_not_a_list_falls_back():
    deck = normalize('{"title": "T", "slides": "one, two"}')
    assert deck["slides"][0]["title"] == "Error"


def test_truncated_json_falls_back():
    raw = '```json\n{"title": "T", "slides": [{"title": "S1"'
    deck = normalize(raw)
    assert deck["slides"][0]["content"] == [raw]


def test_multiple_fragments_are_overcaptured_and_fall_back():
    raw = 'First {"a": 1} and then {"title": "T", "slides": []}'
    deck = normalize(raw)
    assert deck["title"] == "Error"


def test_unvalidated_output_is_passed_through():
    # Limits are the validator's job; the normalizer only shapes the text.
    deck = normalize(json.dumps({"title": "", "slides": []}))
    assert deck == {"title": "", "slides": []}


@pytest.mark.parametrize("raw", [
    "}{",
    "{{{{",
    "\x00\x01\x02\xff garbage",
    "[1, 2, 3]",
    "```json\n```",
    "{" * 5000 + "}" * 5000,
])
def test_normalize_is_total(raw):
    deck = normalize(raw)
    assert isinstance(deck["slides"], list)
    assert len(deck["slides"]) >= 1


def test_strip_code_fence_keeps_interior():
    assert strip_code_fence("```json\n{}\n```") == "{}"
    assert strip_code_fence("```JSON {}```") == "{}"
    assert strip_code_fence("{}") == "{}"


def test_extract_json_block_is_greedy():
    assert extract_json_block('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'
    assert extract_json_block("no braces") is None
    assert extract_json_block("} before {") is None
