import logging
import os
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from .security import mask_api_key

logger = logging.getLogger(__name__)

# =========================
# Prompts
# =========================
SYSTEM_PROMPT = """You are a professional presentation designer. Generate a detailed presentation based on the user's request.

IMPORTANT: You must respond ONLY with valid JSON in this exact format, no markdown, no code blocks, no additional text:

{
  "title": "Presentation Title",
  "subtitle": "Optional subtitle",
  "slides": [
    {
      "title": "Slide Title",
      "content": ["Point 1", "Point 2", "Point 3"],
      "notes": "Optional speaker notes"
    }
  ]
}

Rules:
- Create 5-10 slides minimum
- Each slide should have 3-5 content points
- Content points should be concise and impactful
- Include speaker notes for complex slides
- Make it professional and engaging
- Response must be pure JSON only"""

MAX_PROMPT_CHARS = 60000

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-sonnet-latest",
    "gemini": "gemini-1.5-flash",
}


class ProviderUnavailableError(RuntimeError):
    """The text provider could not be reached or returned nothing usable."""


def build_user_prompt(prompt: str, document_text: Optional[str] = None) -> str:
    prompt = (prompt or "").strip()
    if document_text:
        prompt = f"{prompt}\n\nFile content:\n{document_text}"
    return prompt[:MAX_PROMPT_CHARS]


def _raise_for_provider_error(resp: httpx.Response, provider_label: str):
    try:
        body = resp.text[:500]
    except Exception:
        body = "<no body>"
    raise httpx.HTTPStatusError(
        f"{provider_label} HTTP {resp.status_code}: {body}",
        request=resp.request, response=resp
    )


class ProviderClient:
    """Thin async client over the supported generative-text HTTP APIs.

    One instance is shared by the app; handlers receive it through a FastAPI
    dependency so tests can swap in a fake with the same `complete` method.
    """

    def __init__(self, provider: str, model: str = "", api_key: str = "",
                 base_url: Optional[str] = None, timeout: float = 60,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.provider = (provider or "").strip().lower()
        if self.provider not in DEFAULT_MODELS:
            raise ValueError("Unsupported provider. Use openai|anthropic|gemini.")
        self.model = model or DEFAULT_MODELS[self.provider]
        self.api_key = api_key
        self.base_url = base_url or os.getenv("OPENAI_BASE", "https://api.openai.com/v1")
        self.timeout = timeout
        self.transport = transport

    def __repr__(self):
        return f"ProviderClient({self.provider!r}, model={self.model!r}, key={mask_api_key(self.api_key)!r})"

    async def complete(self, system: str, user: str) -> str:
        if not self.api_key:
            raise ProviderUnavailableError(f"No API key configured for {self.provider}")
        try:
            text = await self._complete_with_retries(system, user)
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.error("Provider %s failed: %s (key=%s)", self.provider, e, mask_api_key(self.api_key))
            raise ProviderUnavailableError(f"{self.provider} is not available right now. Please try again.") from e
        if not text or not text.strip():
            raise ProviderUnavailableError(f"{self.provider} returned no content")
        return text

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=1, max=8),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _complete_with_retries(self, system: str, user: str) -> str:
        call = {
            "openai": self._call_openai,
            "anthropic": self._call_anthropic,
            "gemini": self._call_gemini,
        }[self.provider]
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await call(client, system, user)

    # =========================
    # OpenAI-compatible
    # =========================
    async def _call_openai(self, client: httpx.AsyncClient, system: str, user: str) -> str:
        # accept either full /chat/completions or just /v1
        base = self.base_url
        url = base if base.endswith("/chat/completions") else base.rstrip("/") + "/chat/completions"
        data = {
            "model": self.model,
            "temperature": 0.3,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        }
        r = await client.post(url, headers={"Authorization": f"Bearer {self.api_key}"}, json=data)
        if r.status_code >= 400:
            _raise_for_provider_error(r, "OpenAI-compatible")
        j = r.json()
        return j["choices"][0]["message"]["content"] or ""

    # =========================
    # Anthropic
    # =========================
    async def _call_anthropic(self, client: httpx.AsyncClient, system: str, user: str) -> str:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
        }
        data = {
            "model": self.model,
            "max_tokens": 4096,
            "temperature": 0.3,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        }
        r = await client.post("https://api.anthropic.com/v1/messages", headers=headers, json=data)
        if r.status_code >= 400:
            _raise_for_provider_error(r, "Anthropic")
        j = r.json()
        return "".join([blk.get("text", "") for blk in j.get("content", [])])

    # =========================
    # Gemini (native)
    # =========================
    async def _call_gemini(self, client: httpx.AsyncClient, system: str, user: str) -> str:
        url = f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
        data: Dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": system}]},
            "contents": [{"role": "user", "parts": [{"text": user}]}],
            "generationConfig": {
                "temperature": 0.3,
                "maxOutputTokens": 8192,
            },
        }
        r = await client.post(url, headers={"x-goog-api-key": self.api_key}, json=data)
        if r.status_code >= 400:
            _raise_for_provider_error(r, "Gemini")
        j = r.json()
        candidates = j.get("candidates") or []
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(p.get("text", "") for p in parts)


async def generate_deck_text(client, prompt: str, document_text: Optional[str] = None) -> str:
    """Ask the provider for a deck; returns its raw text for the normalizer."""
    return await client.complete(SYSTEM_PROMPT, build_user_prompt(prompt, document_text))
