from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TITLE_MAX_CHARS = 200
SLIDE_TITLE_MAX_CHARS = 150
MAX_SLIDES = 50
MAX_BULLETS = 10

# Whatever the normalizer hands over; only the validator turns it into a SlideDeck.
DeckDraft = Dict[str, Any]


class Slide(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1, max_length=SLIDE_TITLE_MAX_CHARS)
    content: List[str] = Field(default_factory=list, max_length=MAX_BULLETS)
    notes: Optional[str] = Field(default=None, description="Speaker notes")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Slide title is required")
        return v

    @field_validator("content", mode="before")
    @classmethod
    def content_default(cls, v):
        # An explicit null means no bullets
        return [] if v is None else v

    def bullets(self) -> List[str]:
        """Trimmed, non-empty bullet lines in their original order."""
        return [c.strip() for c in self.content if c and c.strip()]


class SlideDeck(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_CHARS)
    subtitle: Optional[str] = None
    slides: List[Slide] = Field(..., min_length=1, max_length=MAX_SLIDES)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Title is required")
        return v

    def with_slide(self, index: int, slide: Slide) -> "SlideDeck":
        """Return a new deck with the slide at `index` replaced."""
        slides = list(self.slides)
        slides[index] = slide
        return self.model_copy(update={"slides": slides})


class ValidationReport(BaseModel):
    ok: bool
    errors: List[str] = Field(default_factory=list)


class GenerateRequest(BaseModel):
    prompt: str = ""


class GenerateResponse(BaseModel):
    success: bool = True
    data: SlideDeck
    errors: List[str] = Field(default_factory=list)


class ExportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    presentation_data: Any = Field(default=None, alias="presentationData")


class EditSlideRequest(ExportRequest):
    slide: Any = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    ppt_data: Any = Field(default=None, alias="pptData")
    is_error: bool = Field(default=False, alias="isError")
    timestamp: datetime = Field(default_factory=_now)

    model_config = ConfigDict(populate_by_name=True)


class SaveChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(default="", alias="chatId")
    title: str = ""
    messages: List[ChatMessage] = Field(default_factory=list)


class Chat(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(..., alias="chatId")
    user_id: str = Field(..., alias="userId")
    title: str = "New Presentation"
    messages: List[ChatMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=_now, alias="updatedAt")
