"""Shared pytest fixtures for the audit PDF compositor."""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any

import httpx
import pymupdf as fitz
import pytest
from PIL import Image

from auditpdf.adapters.image_source import ImageNormalizer, ImageSourceConfig
from auditpdf.config import Settings


def _image_bytes(fmt: str = 'JPEG', size: tuple[int, int] = (64, 48), color: str = 'red') -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    return _image_bytes


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes('JPEG')


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes('PNG')


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, data_dir=tmp_path)


@pytest.fixture
def normalizer_factory() -> Callable[[Callable[[httpx.Request], Any]], ImageNormalizer]:
    def build(handler: Callable[[httpx.Request], Any], *, concurrency: int = 4, timeout: float = 5.0) -> ImageNormalizer:
        return ImageNormalizer(
            ImageSourceConfig(timeout_seconds=timeout, concurrency=concurrency, render_width=1600),
            transport=httpx.MockTransport(handler),
        )

    return build


@pytest.fixture
def offline_normalizer(normalizer_factory) -> ImageNormalizer:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    return normalizer_factory(handler)


@pytest.fixture
def pdf_pages() -> Callable[[bytes], list[str]]:
    def extract(content: bytes) -> list[str]:
        with fitz.open(stream=content, filetype='pdf') as doc:
            return [page.get_text() for page in doc]

    return extract


@pytest.fixture
def pdf_links() -> Callable[[bytes], list[dict]]:
    def extract(content: bytes) -> list[dict]:
        with fitz.open(stream=content, filetype='pdf') as doc:
            return [link for page in doc for link in page.get_links()]

    return extract


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    return {
        'id': 'c56a4180-65aa-42ec-a945-5fd21dec0538',
        'store': 'Cheetham Hill',
        'template': 'Daily Opening',
        'submitted_at': '2024-08-05T10:00:00Z',
        'sections': [
            {
                'title': 'Safety',
                'questions': [
                    {
                        'code': 'S1',
                        'prompt': 'Extinguisher present?',
                        'answerType': 'binary',
                        'answer': {'value_bool': True},
                    }
                ],
            }
        ],
    }
