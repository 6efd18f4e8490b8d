from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Any, Mapping

from reportlab.pdfgen.canvas import Canvas

from auditpdf.adapters.image_source import ImageNormalizer
from auditpdf.config import Settings, get_settings
from auditpdf.errors import DocumentBuildError
from auditpdf.report.cover import draw_cover_page
from auditpdf.report.formatters import build_cover_data, build_file_base_name
from auditpdf.report.layout import PAGE_SIZE, LayoutCursor, resolve_fonts
from auditpdf.report.photos import draw_photos_appendix
from auditpdf.report.questions import (
    collect_appendix_urls,
    collect_payload_urls,
    draw_questions,
    photo_slots,
)
from auditpdf.report.sanitize import sanitize
from auditpdf.types import AuditPayload, GeneratedDocument, ImageEntry


logger = logging.getLogger(__name__)


def _coerce_payload(payload: AuditPayload | Mapping[str, Any]) -> AuditPayload:
    if isinstance(payload, AuditPayload):
        # Re-validate so strings set after construction are sanitized too.
        return AuditPayload.from_raw(payload.model_dump())
    return AuditPayload.from_raw(payload)


def _file_base(payload: AuditPayload, base_file_name: str | None, now: datetime | None) -> str:
    base = sanitize(base_file_name).strip()
    if base.lower().endswith('.pdf'):
        base = base[:-4].strip()
    return base or build_file_base_name(payload, now=now)


def image_urls_for(payload: AuditPayload, settings: Settings) -> list[str]:
    urls = collect_payload_urls(payload)
    if settings.include_photos_appendix:
        urls.extend(collect_appendix_urls(payload, urls))
    return urls


def render_audit_pdf(
    payload: AuditPayload,
    *,
    file_base: str,
    images_by_url: Mapping[str, ImageEntry | None],
    settings: Settings,
) -> bytes:
    """Draw the whole document from already-normalized images.

    Runs on a single thread: every drawing call goes through one canvas and
    one ``LayoutCursor``.
    """
    fonts = resolve_fonts(settings)
    buffer = io.BytesIO()
    canvas = Canvas(buffer, pagesize=PAGE_SIZE)
    canvas.setTitle(f'{file_base}.pdf')
    canvas.setAuthor(settings.app_name)
    canvas.setProducer(settings.app_name)
    canvas.setCreator(settings.app_name)

    cover = build_cover_data(payload, file_base, title=settings.report_title)
    draw_cover_page(canvas, fonts, cover, page_size=PAGE_SIZE)

    layout = LayoutCursor.from_settings(canvas, fonts=fonts, settings=settings)
    layout.new_page()
    draw_questions(layout, payload, images_by_url, cover=cover)

    if settings.include_photos_appendix:
        rendered = collect_payload_urls(payload)
        draw_photos_appendix(layout, photo_slots(collect_appendix_urls(payload, rendered), images_by_url))

    try:
        canvas.save()
    except Exception as exc:
        raise DocumentBuildError(f'Failed to serialize audit PDF {file_base}: {exc}') from exc
    return buffer.getvalue()


async def build_audit_pdf(
    payload: AuditPayload | Mapping[str, Any],
    base_file_name: str | None = None,
    *,
    normalizer: ImageNormalizer | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> GeneratedDocument:
    """Build the audit report for ``payload``.

    Photos are fetched and normalized concurrently first; failed photos are
    drawn as placeholders. Only font and serialization failures raise
    ``DocumentBuildError``.
    """
    settings = settings or get_settings()
    model = _coerce_payload(payload)
    file_base = _file_base(model, base_file_name, now)

    urls = image_urls_for(model, settings)
    normalizer = normalizer or ImageNormalizer.from_settings(settings)
    entries = await normalizer.normalize_many(urls)
    images_by_url = dict(zip(urls, entries))
    missing = sum(1 for entry in entries if entry is None)
    if missing:
        logger.warning('%s of %s photos for %s could not be embedded', missing, len(urls), file_base)

    content = render_audit_pdf(model, file_base=file_base, images_by_url=images_by_url, settings=settings)
    logger.info('Built %s.pdf (%s bytes, %s photos)', file_base, len(content), len(urls))
    return GeneratedDocument(content=content, file_name=f'{file_base}.pdf')
