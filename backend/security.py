from typing import Optional

from fastapi import Header, HTTPException

# Uploaded reference documents (pdf/word/text)
ALLOWED_UPLOAD_TYPES = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
    "text/plain",
)

MASK = "••••••••"


def mask_api_key(s: str) -> str:
    if not s:
        return s
    if len(s) <= 8:
        return MASK
    return s[:4] + MASK + s[-2:]


def current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity as supplied by the upstream identity provider."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(401, detail="Authentication required")
    return x_user_id.strip()
