import os
from dataclasses import dataclass, field
from typing import List


def _split(value: str) -> List[str]:
    return [o.strip() for o in value.split(",") if o.strip()]


@dataclass
class Settings:
    llm_provider: str = os.getenv("LLM_PROVIDER", "gemini")
    llm_model: str = os.getenv("LLM_MODEL", os.getenv("GEMINI_MODEL", ""))
    llm_api_key: str = os.getenv("LLM_API_KEY", os.getenv("GEMINI_API_KEY", ""))
    openai_base: str = os.getenv("OPENAI_BASE", "https://api.openai.com/v1")
    cors_origins: List[str] = field(default_factory=lambda: _split(os.getenv("CORS_ORIGINS", "*")))
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "10"))

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


settings = Settings()
