from typing import Any, List, Tuple

from pydantic import ValidationError

from .models import (
    MAX_BULLETS,
    MAX_SLIDES,
    SLIDE_TITLE_MAX_CHARS,
    TITLE_MAX_CHARS,
    Slide,
    SlideDeck,
    ValidationReport,
)


class DeckValidationError(ValueError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors) or "Invalid presentation data")
        self.errors = list(errors)


def _slide_message(n: int, rest: Tuple, kind: str, fallback: str) -> str:
    if not rest:
        return f"Slide {n} must be an object"
    field = rest[0]
    if field == "title":
        if kind == "string_too_long":
            return f"Slide {n} title is too long (max {SLIDE_TITLE_MAX_CHARS} characters)"
        return f"Slide {n} is missing a title"
    if field == "content":
        if len(rest) > 1:
            return f"Slide {n} content must contain only text"
        if kind == "too_long":
            return f"Slide {n} has too many bullet points (max {MAX_BULLETS})"
        return f"Slide {n} content must be a list"
    if field == "notes":
        return f"Slide {n} notes must be text"
    return f"Slide {n}: {fallback}"


def _message(loc: Tuple, kind: str, fallback: str) -> List[str]:
    """Map one pydantic error (location + type) to user-facing messages."""
    if not loc:
        return ["Title is required", "Slides must be a list"]
    field = loc[0]
    if field == "title":
        if kind == "string_too_long":
            return [f"Title is too long (max {TITLE_MAX_CHARS} characters)"]
        return ["Title is required"]
    if field == "subtitle":
        return ["Subtitle must be text"]
    if field == "slides":
        if len(loc) > 1:
            return [_slide_message(loc[1] + 1, loc[2:], kind, fallback)]
        if kind == "too_short":
            return ["At least one slide is required"]
        if kind == "too_long":
            return [f"Too many slides (max {MAX_SLIDES})"]
        return ["Slides must be a list"]
    return [fallback]


def _messages(exc: ValidationError, prefix: Tuple = ()) -> List[str]:
    out: List[str] = []
    for err in exc.errors():
        for msg in _message(prefix + tuple(err["loc"]), err["type"], err["msg"]):
            if msg not in out:
                out.append(msg)
    return out


def validate(candidate: Any) -> ValidationReport:
    """Check a candidate deck against the structural limits.

    Every rule is evaluated and every violation reported, so callers can show
    the whole list to the user at once. The candidate is never modified.
    """
    try:
        SlideDeck.model_validate(candidate)
    except ValidationError as ve:
        return ValidationReport(ok=False, errors=_messages(ve))
    return ValidationReport(ok=True)


def validate_slide(index: int, slide: Any) -> List[str]:
    """Errors for one slide; `index` is 0-based, messages are 1-based."""
    try:
        Slide.model_validate(slide)
    except ValidationError as ve:
        return _messages(ve, prefix=("slides", index))
    return []


def ensure_valid(candidate: Any) -> SlideDeck:
    """Validate and freeze a candidate deck, raising DeckValidationError on failure."""
    try:
        return SlideDeck.model_validate(candidate)
    except ValidationError as ve:
        raise DeckValidationError(_messages(ve))
