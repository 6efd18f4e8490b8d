from __future__ import annotations

import asyncio
import io
import logging
import re
from dataclasses import dataclass
from typing import Sequence

import httpx
from PIL import Image

from auditpdf.config import Settings
from auditpdf.types import ImageEntry


logger = logging.getLogger(__name__)

_JPEG_CONTENT_TYPES = ('image/jpeg', 'image/jpg', 'image/pjpeg')
_PNG_CONTENT_TYPES = ('image/png',)
# Pillow reports multi-picture JPEGs from phone cameras as MPO.
_EMBEDDABLE_FORMATS = {'jpeg': 'jpeg', 'mpo': 'jpeg', 'png': 'png'}

_STORAGE_OBJECT_RE = re.compile(
    r'^(?P<base>https?://[^?#]+?/storage/v1)/object/'
    r'(?P<scope>public|sign|authenticated)/(?P<rest>[^?#]+)'
    r'(?:\?(?P<query>[^#]*))?$',
    re.IGNORECASE,
)


@dataclass
class ImageSourceConfig:
    timeout_seconds: float
    concurrency: int
    render_width: int


@dataclass
class _Fetched:
    url: str
    content_type: str
    data: bytes


def build_render_url(url: str, *, format: str = 'jpeg', width: int = 1600) -> str | None:
    """Derive the transform-service rendition URL for a storage object URL.

    Returns ``None`` for URLs that are not storage-object URLs.
    """
    match = _STORAGE_OBJECT_RE.match(str(url or '').strip())
    if match is None:
        return None
    render = f"{match['base']}/render/image/{match['scope']}/{match['rest']}"
    if match['query']:
        render = f"{render}?{match['query']}"
    try:
        rendered = httpx.URL(render).copy_set_param('format', format).copy_set_param('width', str(int(width)))
    except (httpx.InvalidURL, ValueError):
        return None
    return str(rendered)


def with_format_hint(url: str, *, format: str = 'jpeg') -> str | None:
    try:
        return str(httpx.URL(str(url or '').strip()).copy_set_param('format', format))
    except (httpx.InvalidURL, ValueError):
        return None


def content_type_format(content_type: str) -> str | None:
    token = str(content_type or '').split(';', 1)[0].strip().lower()
    if token in _JPEG_CONTENT_TYPES:
        return 'jpeg'
    if token in _PNG_CONTENT_TYPES:
        return 'png'
    return None


def looks_like_http_url(value: object) -> bool:
    return bool(re.match(r'^https?://', str(value or '').strip(), re.IGNORECASE))


def decode_image(data: bytes, *, source_url: str) -> ImageEntry | None:
    """Parse the bytes with Pillow; only JPEG and PNG payloads are accepted."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            detected = str(img.format or '').lower()
            img.verify()
    except Exception as exc:
        logger.info('Unreadable image bytes from %s: %s', source_url, exc)
        return None
    embeddable = _EMBEDDABLE_FORMATS.get(detected)
    if embeddable is None or width <= 0 or height <= 0:
        logger.info('Image from %s decoded as %r, which is not embeddable', source_url, detected)
        return None
    return ImageEntry(
        format=embeddable,
        data=data,
        source_url=source_url,
        width=int(width),
        height=int(height),
    )


class ImageNormalizer:
    """Fetch photo sources and return embeddable JPEG/PNG renditions.

    Each URL walks a fallback chain: direct fetch, transform-service
    rendition, then the original URL with a ``format=jpeg`` hint. Every
    failure is local to its step; exhausting the chain yields ``None``.
    """

    def __init__(
        self,
        cfg: ImageSourceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cfg = cfg
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ImageNormalizer:
        return cls(
            ImageSourceConfig(
                timeout_seconds=settings.image_fetch_timeout_seconds,
                concurrency=settings.image_fetch_concurrency,
                render_width=settings.image_render_width,
            ),
            transport=transport,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=max(1.0, float(self.cfg.timeout_seconds)),
            follow_redirects=True,
            transport=self._transport,
            headers={'Accept': 'image/jpeg,image/png,image/*;q=0.8'},
        )

    async def normalize(self, url: str, *, client: httpx.AsyncClient | None = None) -> ImageEntry | None:
        if client is not None:
            return await self._normalize(url, client)
        async with self._client() as own_client:
            return await self._normalize(url, own_client)

    async def normalize_many(self, urls: Sequence[str]) -> list[ImageEntry | None]:
        """Normalize ``urls`` concurrently; results keep the input order."""
        if not urls:
            return []
        semaphore = asyncio.Semaphore(max(1, int(self.cfg.concurrency)))

        async with self._client() as client:

            async def run(url: str) -> ImageEntry | None:
                async with semaphore:
                    try:
                        return await self._normalize(url, client)
                    except Exception as exc:
                        logger.warning('Image normalization crashed for %s: %s', url, exc)
                        return None

            results = await asyncio.gather(*(run(url) for url in urls))
        return list(results)

    async def _normalize(self, url: str, client: httpx.AsyncClient) -> ImageEntry | None:
        source = str(url or '').strip()
        if not looks_like_http_url(source):
            logger.info('Skipping non-http image source %r', source)
            return None

        direct = await self._fetch(client, source)
        if direct is not None and content_type_format(direct.content_type) is not None:
            entry = decode_image(direct.data, source_url=source)
            if entry is not None:
                return entry

        render_url = build_render_url(source, format='jpeg', width=self.cfg.render_width)
        if render_url is not None:
            converted = await self._fetch(client, render_url)
            if converted is not None and content_type_format(converted.content_type) == 'jpeg':
                entry = decode_image(converted.data, source_url=source)
                if entry is not None:
                    return entry

        hinted_url = with_format_hint(source, format='jpeg')
        if hinted_url is not None:
            hinted = await self._fetch(client, hinted_url)
            if hinted is not None and content_type_format(hinted.content_type) == 'jpeg':
                entry = decode_image(hinted.data, source_url=source)
                if entry is not None:
                    return entry

        logger.warning('No embeddable rendition for image %s', source)
        return None

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> _Fetched | None:
        try:
            response = await asyncio.wait_for(
                client.get(url),
                timeout=max(1.0, float(self.cfg.timeout_seconds)),
            )
        except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError) as exc:
            logger.info('Image fetch failed for %s: %s', url, exc)
            return None
        if not response.is_success:
            logger.info('Image fetch for %s returned HTTP %s', url, response.status_code)
            return None
        return _Fetched(
            url=url,
            content_type=str(response.headers.get('content-type') or '').lower(),
            data=response.content,
        )
