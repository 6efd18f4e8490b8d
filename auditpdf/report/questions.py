from __future__ import annotations

import re
from typing import Iterable, Mapping

from auditpdf.adapters.image_source import looks_like_http_url
from auditpdf.report.formatters import EM_DASH, CoverData
from auditpdf.report.layout import LayoutCursor
from auditpdf.report.photos import draw_images
from auditpdf.report.status import GREY, rating_color, yes_no
from auditpdf.types import (
    AnswerFields,
    AuditPayload,
    BinaryAnswer,
    ImageEntry,
    PhotoSlot,
    Question,
    ScoreAnswer,
    TextAnswer,
    UnsupportedAnswer,
    decode_answer,
)


IMAGE_GAP = 4.0
QUESTION_GAP = 6.0

_IMAGE_TEXT_URL_RE = re.compile(
    r'^https?://\S+\.(?:jpe?g|png|webp|heic|heif)(?:[?#]\S*)?$',
    re.IGNORECASE,
)


def _unique_http_urls(candidates: Iterable[str | None]) -> list[str]:
    seen: set[str] = set()
    urls: list[str] = []
    for candidate in candidates:
        url = str(candidate or '').strip()
        if not url or url in seen or not looks_like_http_url(url):
            continue
        seen.add(url)
        urls.append(url)
    return urls


def collect_question_image_urls(question: Question) -> list[str]:
    """Union of every image field on a question, in fixed priority order."""
    answer = question.answer or AnswerFields()
    candidates: list[str | None] = [
        question.image_url,
        question.photo_url,
        answer.image_url,
        answer.photo_url,
        *answer.image_urls,
        *answer.photo_urls,
        *question.photos,
        *question.images,
    ]
    text = str(answer.value_text or '').strip()
    if _IMAGE_TEXT_URL_RE.match(text):
        candidates.append(text)
    return _unique_http_urls(candidates)


def collect_appendix_urls(payload: AuditPayload, already: Iterable[str] = ()) -> list[str]:
    """Payload-level photos not already drawn under a question."""
    rendered = set(already)
    urls = _unique_http_urls([*payload.photos, *payload.images, *payload.photo_urls, *payload.image_urls])
    return [url for url in urls if url not in rendered]


def collect_payload_urls(payload: AuditPayload) -> list[str]:
    return _unique_http_urls(
        url
        for section in payload.sections
        for question in section.questions
        for url in collect_question_image_urls(question)
    )


def format_score(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def photo_slots(urls: Iterable[str], images_by_url: Mapping[str, ImageEntry | None]) -> list[PhotoSlot]:
    return [PhotoSlot(source_url=url, image=images_by_url.get(url)) for url in urls]


def _draw_answer(layout: LayoutCursor, question: Question) -> None:
    answer = decode_answer(question)
    if isinstance(answer, BinaryAnswer):
        text, color = yes_no(answer.value)
        layout.label_value('Answer', text, color)
    elif isinstance(answer, ScoreAnswer):
        text, color = yes_no(answer.passed)
        layout.label_value('Pass', text, color)
        if answer.score is None:
            layout.label_value('Score', EM_DASH, GREY)
        else:
            layout.label_value('Score', format_score(answer.score), rating_color(answer.score))
    elif isinstance(answer, TextAnswer):
        layout.label_value('Answer', answer.text or EM_DASH)
    elif isinstance(answer, UnsupportedAnswer):
        layout.label_value('Answer', f'Unsupported answer type "{answer.answer_type}"', GREY)


def draw_question(
    layout: LayoutCursor,
    question: Question,
    images_by_url: Mapping[str, ImageEntry | None],
) -> None:
    layout.label_value('Question', f'{question.code} - {question.prompt}')
    _draw_answer(layout, question)

    notes = str((question.answer.notes if question.answer else None) or '').strip()
    if notes:
        layout.label_value('Notes', notes)

    slots = photo_slots(collect_question_image_urls(question), images_by_url)
    if slots:
        layout.gap(IMAGE_GAP)
        draw_images(layout, slots)

    layout.gap(QUESTION_GAP)
    layout.ensure_space(layout.line_height)


def draw_questions(
    layout: LayoutCursor,
    payload: AuditPayload,
    images_by_url: Mapping[str, ImageEntry | None],
    *,
    cover: CoverData,
) -> None:
    """Draw the header block and every section's questions from the cursor onward."""
    layout.heading(cover.title)
    layout.label_value('File', cover.file)
    layout.label_value('Store', cover.store)
    layout.label_value('Template', cover.template)
    layout.label_value('Started', cover.started)
    layout.label_value('Submitted', cover.submitted)

    for section in payload.sections:
        layout.heading(section.title)
        for question in section.questions:
            draw_question(layout, question, images_by_url)
