import copy

import pytest
from pydantic import ValidationError

from backend.models import SlideDeck
from backend.validator import DeckValidationError, ensure_valid, validate, validate_slide
from conftest import pitch_deck


def deck_with(n_slides, **overrides):
    d = {"title": "Deck", "slides": [{"title": f"S{i}", "content": ["x"]} for i in range(n_slides)]}
    d.update(overrides)
    return d


@pytest.mark.parametrize("n", [1, 2, 10, 50])
def test_valid_decks_pass(n):
    report = validate(deck_with(n))
    assert report.ok
    assert report.errors == []


def test_title_at_limit_passes():
    assert validate(deck_with(1, title="t" * 200)).ok


def test_empty_slides():
    report = validate(deck_with(0))
    assert not report.ok
    assert report.errors == ["At least one slide is required"]


def test_too_many_slides():
    report = validate(deck_with(51))
    assert "Too many slides (max 50)" in report.errors


@pytest.mark.parametrize("title", [None, "", "   ", 42])
def test_title_required(title):
    assert "Title is required" in validate(deck_with(1, title=title)).errors


def test_title_too_long():
    assert validate(deck_with(1, title="t" * 201)).errors == ["Title is too long (max 200 characters)"]


@pytest.mark.parametrize("slides", [None, "slides", {"title": "x"}])
def test_slides_must_be_a_list(slides):
    assert validate({"title": "Deck", "slides": slides}).errors == ["Slides must be a list"]


def test_missing_slides_key():
    assert validate({"title": "Deck"}).errors == ["Slides must be a list"]


def test_errors_are_collected_not_short_circuited():
    candidate = {
        "title": "",
        "slides": [
            {"title": "ok", "content": ["a"]},
            {"content": "not a list"},
            {"title": "t" * 151, "content": [str(i) for i in range(11)]},
        ],
    }
    assert validate(candidate).errors == [
        "Title is required",
        "Slide 2 is missing a title",
        "Slide 2 content must be a list",
        "Slide 3 title is too long (max 150 characters)",
        "Slide 3 has too many bullet points (max 10)",
    ]


def test_slide_shape_errors():
    candidate = {"title": "Deck", "subtitle": 5, "slides": ["text", {"title": "x", "content": [1], "notes": []}]}
    assert validate(candidate).errors == [
        "Subtitle must be text",
        "Slide 1 must be an object",
        "Slide 2 content must contain only text",
        "Slide 2 notes must be text",
    ]


def test_non_dict_candidate():
    report = validate(["not", "a", "deck"])
    assert not report.ok
    assert "Slides must be a list" in report.errors


def test_validation_does_not_mutate():
    candidate = pitch_deck()
    snapshot = copy.deepcopy(candidate)
    validate(candidate)
    ensure_valid(candidate)
    assert candidate == snapshot


def test_validate_slide_uses_one_based_numbers():
    assert validate_slide(4, {"content": []}) == ["Slide 5 is missing a title"]
    assert validate_slide(0, {"title": "fine"}) == []


def test_ensure_valid_builds_frozen_deck():
    deck = ensure_valid(pitch_deck(3))
    assert isinstance(deck, SlideDeck)
    assert [s.title for s in deck.slides] == ["Section 1", "Section 2", "Section 3"]
    assert deck.slides[0].notes == "Talk about section 1"
    assert deck.slides[1].notes is None
    with pytest.raises(ValidationError):
        deck.title = "changed"


def test_ensure_valid_defaults_missing_content():
    deck = ensure_valid({"title": "Deck", "slides": [{"title": "Only title"}]})
    assert deck.slides[0].content == []


def test_ensure_valid_raises_with_all_errors():
    with pytest.raises(DeckValidationError) as exc:
        ensure_valid({"title": "", "slides": []})
    assert exc.value.errors == ["Title is required", "At least one slide is required"]


def test_with_slide_returns_new_deck():
    deck = ensure_valid(pitch_deck(2))
    replacement = ensure_valid({"title": "x", "slides": [{"title": "New", "content": ["n"]}]}).slides[0]
    edited = deck.with_slide(1, replacement)
    assert edited.slides[1].title == "New"
    assert deck.slides[1].title == "Section 2"
    assert edited.slides[0] == deck.slides[0]


def test_blank_slide_title_is_missing():
    assert validate(deck_with(1, slides=[{"title": "   "}])).errors == ["Slide 1 is missing a title"]


def test_null_content_means_no_bullets():
    deck = ensure_valid({"title": "Deck", "slides": [{"title": "S", "content": None}]})
    assert deck.slides[0].content == []


def test_limits_come_from_the_models():
    # One bad deck, one message per rule: no duplicates from overlapping checks.
    report = validate({"title": "t" * 201, "slides": [{"title": "s", "content": [1, 2]}]})
    assert report.errors == [
        "Title is too long (max 200 characters)",
        "Slide 1 content must contain only text",
    ]
