import json
import logging
import re
from typing import Any, Dict, Optional

from .models import DeckDraft

logger = logging.getLogger(__name__)

_LEADING_FENCE_RE = re.compile(r"^```(?:json)?[ \t]*\n?", flags=re.I)
_TRAILING_FENCE_RE = re.compile(r"\n?```\s*$")


def strip_code_fence(text: str) -> str:
    """Drop a leading ```json / ``` fence and a trailing ``` fence, keeping the body."""
    text = _LEADING_FENCE_RE.sub("", text, count=1)
    text = _TRAILING_FENCE_RE.sub("", text, count=1)
    return text.strip()


def extract_json_block(text: str) -> Optional[str]:
    """Greedy first-'{' to last-'}' slice; None when there is no such span.

    Over-captures if the model emits several JSON-like fragments. The parse
    then fails and the caller falls back.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start:end + 1]


def fallback_deck(raw_text: str) -> DeckDraft:
    return {
        "title": "Error" if raw_text.strip() else "Untitled",
        "slides": [{"title": "Error", "content": [raw_text]}],
    }


def _parse(text: str) -> Optional[Dict[str, Any]]:
    block = extract_json_block(strip_code_fence(text.strip()))
    if block is None:
        return None
    try:
        parsed = json.loads(block)
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict) or not isinstance(parsed.get("slides"), list):
        return None
    return parsed


def normalize(raw_text: Optional[str]) -> DeckDraft:
    """Turn free-form model output into a candidate deck.

    Never raises. Output that cannot be parsed into an object with a `slides`
    list becomes a single "Error" slide quoting the raw text, so the user sees
    what the model actually said.
    """
    raw_text = raw_text or ""
    parsed = _parse(raw_text)
    if parsed is not None:
        return parsed
    logger.warning("Model output is not a slide deck, using fallback: %r", raw_text[:200])
    return fallback_deck(raw_text)
