import logging
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.requests import Request

from .config import settings
from .llm_providers import ProviderClient, ProviderUnavailableError, generate_deck_text
from .models import (
    EditSlideRequest,
    ExportRequest,
    GenerateRequest,
    GenerateResponse,
    SaveChatRequest,
    Slide,
    SlideDeck,
    ValidationReport,
)
from .normalizer import normalize
from .pptx_builder import (
    PPTX_MEDIA_TYPE,
    RenderError,
    build_presentation,
    iter_scratch_file,
    remove_scratch_file,
    suggested_filename,
    write_scratch_file,
)
from .security import ALLOWED_UPLOAD_TYPES, current_user_id, mask_api_key
from .store import ChatStore, store
from .validator import DeckValidationError, ensure_valid, validate, validate_slide

app = FastAPI(title="SlideMinds API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger("slideminds")

try:
    app.state.provider = ProviderClient(
        settings.llm_provider,
        model=settings.llm_model,
        api_key=settings.llm_api_key,
        base_url=settings.openai_base,
    )
    logger.info("Provider = %s (model=%s, key=%s)", settings.llm_provider,
                app.state.provider.model, mask_api_key(settings.llm_api_key) or "(missing)")
except ValueError as e:
    logger.error("Provider disabled: %s", e)
    app.state.provider = None


def get_provider(request: Request):
    provider = request.app.state.provider
    if provider is None:
        raise HTTPException(503, detail="Presentation service is not configured. Please try again later.")
    return provider


def get_store() -> ChatStore:
    return store


def _invalid(message: str, errors, data=None) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": message, "errors": errors, "data": data},
    )


def _require_deck(data) -> SlideDeck:
    if data is None:
        raise HTTPException(400, detail="Presentation data is required")
    return ensure_valid(data)


@app.exception_handler(DeckValidationError)
async def deck_validation_handler(request: Request, exc: DeckValidationError):
    return _invalid("Invalid presentation data", exc.errors)


@app.get("/")
def root():
    return {"message": "SlideMinds API is running"}


# ---------- Presentations ----------
async def _generate(prompt: str, document_text: Optional[str], provider):
    if not (prompt or "").strip():
        raise HTTPException(400, detail="Prompt is required")

    try:
        raw = await generate_deck_text(provider, prompt, document_text)
    except ProviderUnavailableError as e:
        raise HTTPException(503, detail=str(e))

    candidate = normalize(raw)
    report = validate(candidate)
    if not report.ok:
        logger.info("Generated deck rejected: %s", report.errors)
        return _invalid("Generated presentation failed validation", report.errors, candidate)
    return GenerateResponse(data=ensure_valid(candidate))


@app.post("/api/presentation/generate", response_model=GenerateResponse)
async def generate(payload: GenerateRequest, provider=Depends(get_provider)):
    return await _generate(payload.prompt, None, provider)


@app.post("/api/presentation/generate-file", response_model=GenerateResponse)
async def generate_file(
    prompt: str = Form("", description="Topic or instructions"),
    file: Optional[UploadFile] = File(None, description="Optional PDF, Word or text document"),
    provider=Depends(get_provider),
):
    document_text = None
    if file is not None:
        if file.content_type not in ALLOWED_UPLOAD_TYPES:
            raise HTTPException(415, detail="Invalid file type. Only PDF, Word, and Text files are allowed.")
        data = await file.read()
        if len(data) > settings.max_upload_bytes:
            raise HTTPException(413, detail=f"File too large (> {settings.max_upload_mb} MB).")
        document_text = data.decode("utf-8", errors="replace")
    return await _generate(prompt, document_text, provider)


@app.post("/api/presentation/validate", response_model=ValidationReport)
def validate_presentation(payload: ExportRequest):
    return validate(payload.presentation_data)


@app.put("/api/presentation/slides/{index}", response_model=GenerateResponse)
def edit_slide(index: int, payload: EditSlideRequest):
    deck = _require_deck(payload.presentation_data)
    if not 0 <= index < len(deck.slides):
        raise HTTPException(404, detail="Slide not found")
    errors = validate_slide(index, payload.slide)
    if errors:
        return _invalid("Invalid slide", errors)
    return GenerateResponse(data=deck.with_slide(index, Slide.model_validate(payload.slide)))


@app.post("/api/presentation/export")
def export_presentation(payload: ExportRequest):
    deck = _require_deck(payload.presentation_data)
    try:
        pptx_bytes = build_presentation(deck)
    except RenderError as e:
        logger.error("Export failed: %s", e)
        raise HTTPException(500, detail="Failed to export presentation")

    path = write_scratch_file(pptx_bytes)
    try:
        # The generator deletes the file when streaming ends or the client goes away
        return StreamingResponse(
            iter_scratch_file(path),
            media_type=PPTX_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={suggested_filename(deck.title)}"},
        )
    except Exception:
        remove_scratch_file(path)
        raise


# ---------- Conversations ----------
@app.get("/api/chat")
def chat_history(user_id: str = Depends(current_user_id), chats: ChatStore = Depends(get_store)):
    items = [c.model_dump(by_alias=True, mode="json", exclude={"user_id"}) for c in chats.list_chats(user_id)]
    return {"success": True, "chats": items}


@app.get("/api/chat/{chat_id}")
def get_chat(chat_id: str, user_id: str = Depends(current_user_id), chats: ChatStore = Depends(get_store)):
    chat = chats.get_chat(user_id, chat_id)
    if chat is None:
        raise HTTPException(404, detail="Chat not found")
    return {"success": True, "chat": chat.model_dump(by_alias=True, mode="json")}


@app.post("/api/chat/save")
def save_chat(payload: SaveChatRequest, user_id: str = Depends(current_user_id),
              chats: ChatStore = Depends(get_store)):
    if not payload.chat_id or not payload.title:
        raise HTTPException(400, detail="ChatId and title are required")
    errors = []
    messages = []
    for i, m in enumerate(payload.messages):
        if m.ppt_data is not None:
            report = validate(m.ppt_data)
            if not report.ok:
                errors.extend(f"Message {i + 1}: {e}" for e in report.errors)
                continue
            m = m.model_copy(update={"ppt_data": ensure_valid(m.ppt_data).model_dump()})
        messages.append(m)
    if errors:
        return _invalid("Chat contains an invalid presentation", errors)

    chat = chats.save_chat(user_id, payload.chat_id, payload.title, messages)
    return {"success": True, "message": "Chat saved successfully",
            "chat": chat.model_dump(by_alias=True, mode="json")}


@app.delete("/api/chat/{chat_id}")
def delete_chat(chat_id: str, user_id: str = Depends(current_user_id), chats: ChatStore = Depends(get_store)):
    if not chats.delete_chat(user_id, chat_id):
        raise HTTPException(404, detail="Chat not found")
    return {"success": True, "message": "Chat deleted successfully"}
