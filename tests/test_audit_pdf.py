from __future__ import annotations

import httpx
import pymupdf as fitz
import pytest

from auditpdf.config import Settings
from auditpdf.errors import DocumentBuildError
from auditpdf.report.audit_pdf import build_audit_pdf, image_urls_for
from auditpdf.types import AuditPayload


def _span_rgb(content: bytes, needle: str) -> tuple[int, int, int]:
    with fitz.open(stream=content, filetype='pdf') as doc:
        for page in doc:
            for block in page.get_text('dict')['blocks']:
                for line in block.get('lines', []):
                    for span in line['spans']:
                        if needle in span['text']:
                            color = span['color']
                            return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF
    raise AssertionError(f'{needle!r} not found')


@pytest.mark.asyncio
async def test_end_to_end_document(sample_payload, settings, offline_normalizer, pdf_pages) -> None:
    doc = await build_audit_pdf(sample_payload, settings=settings, normalizer=offline_normalizer)

    assert doc.file_name == 'Audit_Cheetham_Hill_050824.pdf'
    assert doc.content.startswith(b'%PDF')

    pages = pdf_pages(doc.content)
    assert len(pages) == 2
    cover, questions = pages
    assert 'Store Audit' in cover
    assert 'Cheetham Hill' in cover
    assert 'Daily Opening' in cover
    assert "Monday 5th Aug '24" in cover
    assert sample_payload['id'] not in cover
    assert 'S1 - Extinguisher present?' in questions
    assert 'Answer: Yes' in questions

    red, green, blue = _span_rgb(doc.content, 'Answer: Yes')
    assert green > red and green > blue


@pytest.mark.asyncio
async def test_document_metadata(sample_payload, settings, offline_normalizer) -> None:
    doc = await build_audit_pdf(sample_payload, settings=settings, normalizer=offline_normalizer)

    with fitz.open(stream=doc.content, filetype='pdf') as pdf:
        assert pdf.metadata['title'] == 'Audit_Cheetham_Hill_050824.pdf'
        assert pdf.metadata['author'] == settings.app_name


@pytest.mark.asyncio
async def test_explicit_base_file_name(sample_payload, settings, offline_normalizer) -> None:
    doc = await build_audit_pdf(sample_payload, 'Custom_Report.pdf', settings=settings, normalizer=offline_normalizer)

    assert doc.file_name == 'Custom_Report.pdf'


@pytest.mark.asyncio
async def test_unreachable_photo_yields_placeholder_not_error(sample_payload, settings, offline_normalizer, pdf_pages) -> None:
    sample_payload['sections'][0]['questions'][0]['answer']['image_url'] = 'https://unreachable.example.com/p.jpg'

    doc = await build_audit_pdf(sample_payload, settings=settings, normalizer=offline_normalizer)

    text = '\n'.join(pdf_pages(doc.content))
    assert 'S1 - Extinguisher present?' in text
    assert 'Image unavailable' in text


@pytest.mark.asyncio
async def test_photos_are_embedded_and_appendix_lists_leftovers(
    sample_payload, settings, normalizer_factory, jpeg_bytes, pdf_pages, pdf_links
) -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, headers={'content-type': 'image/jpeg'}, content=jpeg_bytes)

    sample_payload['sections'][0]['questions'][0]['photos'] = ['https://cdn.example.com/q1.jpg']
    sample_payload['photos'] = ['https://cdn.example.com/q1.jpg', 'https://cdn.example.com/extra.jpg']

    doc = await build_audit_pdf(sample_payload, settings=settings, normalizer=normalizer_factory(handler))

    assert sorted(requested) == ['https://cdn.example.com/extra.jpg', 'https://cdn.example.com/q1.jpg']
    pages = pdf_pages(doc.content)
    assert len(pages) == 3
    assert 'Photos' in pages[2]
    assert 'https://cdn.example.com/extra.jpg' in pages[2]
    assert 'Image unavailable' not in '\n'.join(pages)
    with fitz.open(stream=doc.content, filetype='pdf') as pdf:
        assert len(pdf[1].get_images()) == 1
    assert [link['uri'] for link in pdf_links(doc.content)] == [
        'https://cdn.example.com/q1.jpg',
        'https://cdn.example.com/extra.jpg',
    ]


@pytest.mark.asyncio
async def test_appendix_can_be_disabled(sample_payload, tmp_path, offline_normalizer, pdf_pages) -> None:
    settings = Settings(_env_file=None, data_dir=tmp_path, include_photos_appendix=False)
    sample_payload['photos'] = ['https://cdn.example.com/extra.jpg']

    doc = await build_audit_pdf(sample_payload, settings=settings, normalizer=offline_normalizer)

    assert image_urls_for(AuditPayload.from_raw(sample_payload), settings) == []
    assert len(pdf_pages(doc.content)) == 2


@pytest.mark.asyncio
async def test_risky_characters_do_not_break_the_build(settings, offline_normalizer, pdf_pages) -> None:
    payload = {
        'store_name': 'Café – Piccadilly',
        'submitted_at': '2024-08-05',
        'sections': [
            {
                'title': 'Prices ≥ £3',
                'questions': [{'code': 'P1', 'prompt': '“Deal” board → updated…', 'answerType': 'text', 'answer': {'value_text': '🍵 ok'}}],
            }
        ],
    }

    doc = await build_audit_pdf(payload, settings=settings, normalizer=offline_normalizer)

    assert doc.file_name == 'Audit_Caf_Piccadilly_050824.pdf'
    text = '\n'.join(pdf_pages(doc.content))
    assert 'Prices >= GBP 3' in text
    assert '"Deal" board -> updated...' in text
    assert 'Answer: ? ok' in text


@pytest.mark.asyncio
async def test_font_failure_is_a_build_error(sample_payload, tmp_path, offline_normalizer) -> None:
    settings = Settings(_env_file=None, data_dir=tmp_path, pdf_font_bold='Missing-Bold')

    with pytest.raises(DocumentBuildError):
        await build_audit_pdf(sample_payload, settings=settings, normalizer=offline_normalizer)
