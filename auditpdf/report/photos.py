from __future__ import annotations

import io
import logging
from typing import Sequence

from reportlab.lib.utils import ImageReader

from auditpdf.report.annotations import attach_link
from auditpdf.report.layout import LayoutCursor
from auditpdf.report.sanitize import sanitize
from auditpdf.report.status import GREY, LINK_BLUE, PLACEHOLDER_FILL
from auditpdf.report.text_flow import text_width
from auditpdf.types import ImageEntry, PhotoSlot


logger = logging.getLogger(__name__)

MIN_IMAGE_BUDGET = 220.0
CAPTION_SIZE = 9.0
CAPTION_OFFSET = 14.0
CAPTION_TRAILING_GAP = 10.0
CAPTION_MAX_CHARS = 100
PLACEHOLDER_WIDTH = 300.0
PLACEHOLDER_HEIGHT = 160.0
PLACEHOLDER_TEXT = 'Image unavailable'
APPENDIX_HEADING = 'Photos'

_CAPTION_BLOCK = CAPTION_OFFSET + CAPTION_TRAILING_GAP


def caption_text(url: str) -> str:
    if len(url) > CAPTION_MAX_CHARS:
        return f'{url[:CAPTION_MAX_CHARS]}...'
    return url


def fit_image_size(image: ImageEntry, *, max_width: float, max_height: float) -> tuple[float, float]:
    """Width-capped, aspect-locked draw size, also capped to ``max_height``."""
    width = min(float(max_width), float(image.width))
    height = float(image.height) * width / float(image.width)
    if max_height > 0 and height > max_height:
        width = width * max_height / height
        height = max_height
    return width, height


def _draw_caption(layout: LayoutCursor, *, block_bottom: float, url: str) -> None:
    canvas = layout.canvas
    text = sanitize(caption_text(url))
    caption_y = block_bottom - CAPTION_OFFSET
    canvas.setFont(layout.fonts.regular, CAPTION_SIZE)
    canvas.setFillColor(LINK_BLUE)
    canvas.drawString(layout.margin, caption_y, text)
    attach_link(
        canvas,
        x=layout.margin,
        y=caption_y,
        width=text_width(text, layout.fonts.regular, CAPTION_SIZE),
        height=CAPTION_SIZE + 4,
        url=url,
    )
    layout.y = caption_y - CAPTION_TRAILING_GAP


def _draw_placeholder(layout: LayoutCursor, url: str) -> None:
    canvas = layout.canvas
    width = min(PLACEHOLDER_WIDTH, layout.content_width)
    bottom = layout.y - PLACEHOLDER_HEIGHT
    canvas.setFillColor(PLACEHOLDER_FILL)
    canvas.rect(layout.margin, bottom, width, PLACEHOLDER_HEIGHT, stroke=0, fill=1)
    canvas.setFont(layout.fonts.regular, 12)
    canvas.setFillColor(GREY)
    canvas.drawString(layout.margin + 12, bottom + PLACEHOLDER_HEIGHT / 2 - 6, PLACEHOLDER_TEXT)
    _draw_caption(layout, block_bottom=bottom, url=url)


def _draw_one(layout: LayoutCursor, slot: PhotoSlot) -> None:
    image = slot.image
    if image is None:
        layout.ensure_space(max(MIN_IMAGE_BUDGET, PLACEHOLDER_HEIGHT + _CAPTION_BLOCK))
        _draw_placeholder(layout, slot.source_url)
        return

    width, height = fit_image_size(
        image,
        max_width=layout.content_width,
        max_height=layout.usable_height - _CAPTION_BLOCK,
    )
    layout.ensure_space(max(MIN_IMAGE_BUDGET, height + _CAPTION_BLOCK))
    bottom = layout.y - height
    try:
        reader = ImageReader(io.BytesIO(image.data))
        reader.getSize()
        layout.canvas.drawImage(
            reader,
            layout.margin,
            bottom,
            width=width,
            height=height,
        )
    except Exception as exc:
        logger.warning('Embedding image %s failed, drawing placeholder: %s', slot.source_url, exc)
        _draw_placeholder(layout, slot.source_url)
        return
    _draw_caption(layout, block_bottom=bottom, url=slot.source_url)


def draw_images(layout: LayoutCursor, slots: Sequence[PhotoSlot]) -> None:
    """Draw each photo (or its placeholder) with a clickable source caption.

    Slots are drawn in order; a failure on one never stops the rest.
    """
    for slot in slots:
        _draw_one(layout, slot)


def draw_photos_appendix(layout: LayoutCursor, slots: Sequence[PhotoSlot]) -> bool:
    if not slots:
        return False
    layout.new_page()
    layout.heading(APPENDIX_HEADING, centered=True)
    draw_images(layout, slots)
    return True
