import io
import logging
import os
import re
import tempfile
import uuid
from datetime import date
from typing import Optional

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt

from .models import SlideDeck

logger = logging.getLogger(__name__)

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

BULLET = "•"
FONT = "Arial"

# Palette
DARK_BG = RGBColor.from_string("4B5563")
WHITE = RGBColor.from_string("FFFFFF")
SUBTITLE = RGBColor.from_string("D1D5DB")
MUTED = RGBColor.from_string("9CA3AF")
HEADING = RGBColor.from_string("1F2937")
BODY = RGBColor.from_string("374151")

# 16:9 widescreen
SLIDE_WIDTH = Inches(13.333)
SLIDE_HEIGHT = Inches(7.5)
BLANK_LAYOUT = 6
CHUNK_SIZE = 64 * 1024

_XML_ILLEGAL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


class RenderError(RuntimeError):
    pass


def suggested_filename(title: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", "_", title or "presentation") + ".pptx"


def format_render_date(d: date) -> str:
    # e.g. "October 19, 2026"
    return f"{d:%B} {d.day}, {d.year}"


def _fill_background(slide, color: RGBColor):
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = color


def _add_text(slide, name, text, left, top, width, height, size, color,
              bold=False, align=PP_ALIGN.LEFT, anchor=MSO_ANCHOR.TOP):
    box = slide.shapes.add_textbox(left, top, width, height)
    box.name = name
    tf = box.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = anchor
    for i, line in enumerate(text.split("\n")):
        p = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
        p.alignment = align
        run = p.add_run()
        run.text = line
        run.font.name = FONT
        run.font.size = Pt(size)
        run.font.bold = bold
        run.font.color.rgb = color
    return box


def _add_title_slide(prs, deck: SlideDeck, today: date):
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    _fill_background(slide, DARK_BG)

    _add_text(slide, "Title", deck.title, Inches(0.5), Inches(2.4), Inches(12.333), Inches(1.4),
              48, WHITE, bold=True, align=PP_ALIGN.CENTER, anchor=MSO_ANCHOR.MIDDLE)
    if deck.subtitle:
        _add_text(slide, "Subtitle", deck.subtitle, Inches(0.5), Inches(3.9), Inches(12.333), Inches(0.8),
                  24, SUBTITLE, align=PP_ALIGN.CENTER)
    _add_text(slide, "Footer", format_render_date(today), Inches(0.5), Inches(6.8), Inches(12.333), Inches(0.4),
              14, MUTED, align=PP_ALIGN.CENTER)
    return slide


def _add_content_slide(prs, s, number: int):
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    _fill_background(slide, WHITE)

    accent = slide.shapes.add_shape(MSO_SHAPE.RECTANGLE, Inches(0.5), Inches(0.5), Inches(0.1), Inches(0.9))
    accent.name = "Accent"
    accent.fill.solid()
    accent.fill.fore_color.rgb = DARK_BG
    accent.line.fill.background()

    _add_text(slide, "Title", s.title, Inches(0.8), Inches(0.5), Inches(11.9), Inches(0.9),
              32, HEADING, bold=True, anchor=MSO_ANCHOR.MIDDLE)

    bullets = s.bullets()
    if bullets:
        body = "\n\n".join(f"{BULLET} {b}" for b in bullets)
        _add_text(slide, "Body", body, Inches(0.8), Inches(1.8), Inches(11.7), Inches(4.8), 18, BODY)

    _add_text(slide, "Slide Number", str(number), Inches(12.2), Inches(6.9), Inches(0.7), Inches(0.4),
              12, MUTED, align=PP_ALIGN.RIGHT)

    # Presenter-only; never part of the visible body
    if s.notes:
        slide.notes_slide.notes_text_frame.text = s.notes
    return slide


def _check_renderable(deck) -> None:
    if not isinstance(deck, SlideDeck):
        raise RenderError(f"Expected a validated SlideDeck, got {type(deck).__name__}")
    if not deck.title or not deck.title.strip():
        raise RenderError("Presentation title is required")
    if not isinstance(deck.slides, list) or not deck.slides:
        raise RenderError("At least one slide is required")


def build_presentation(deck: SlideDeck, today: Optional[date] = None) -> bytes:
    """Render a validated deck to .pptx bytes.

    Slide 1 is a generated title slide, followed by one slide per deck entry
    in order. Content slides are numbered from 2.
    """
    _check_renderable(deck)
    today = today or date.today()

    prs = Presentation()
    prs.slide_width = SLIDE_WIDTH
    prs.slide_height = SLIDE_HEIGHT

    # Core properties reject XML-illegal control characters; text runs escape them.
    props = prs.core_properties
    props.title = _XML_ILLEGAL_RE.sub("", deck.title)
    props.subject = props.title
    props.author = "SlideMinds AI"

    bio = io.BytesIO()
    try:
        _add_title_slide(prs, deck, today)
        for i, s in enumerate(deck.slides):
            _add_content_slide(prs, s, i + 2)
        prs.save(bio)
    except ValueError as e:
        raise RenderError(f"Could not render presentation: {e}") from e
    logger.info("Rendered %r: %d slides", deck.title, len(deck.slides) + 1)
    return bio.getvalue()


def write_scratch_file(data: bytes) -> str:
    """Write bytes to a uniquely named temp file and return its path."""
    path = os.path.join(tempfile.gettempdir(), f"slideminds-{uuid.uuid4().hex}.pptx")
    try:
        with open(path, "wb") as f:
            f.write(data)
    except Exception:
        remove_scratch_file(path)
        raise
    return path


def remove_scratch_file(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def iter_scratch_file(path: str, chunk_size: int = CHUNK_SIZE):
    """Yield the file in chunks and delete it once the generator finishes or is closed."""
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                yield chunk
    finally:
        remove_scratch_file(path)
