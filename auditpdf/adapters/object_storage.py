from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from auditpdf.config import Settings
from auditpdf.errors import StorageError


logger = logging.getLogger(__name__)


@dataclass
class ObjectStorageConfig:
    base_url: str | None
    service_key: str | None
    bucket: str
    public_bucket: bool
    signed_url_ttl_seconds: int
    cache_control: str
    timeout_seconds: int


class SupabaseStorageAdapter:
    """Upload finished documents through the Supabase Storage REST API."""

    def __init__(
        self,
        cfg: ObjectStorageConfig,
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
    ) -> SupabaseStorageAdapter:
        return cls(
            ObjectStorageConfig(
                base_url=settings.supabase_url,
                service_key=settings.supabase_service_role,
                bucket=settings.supabase_audit_bucket,
                public_bucket=settings.storage_public_bucket,
                signed_url_ttl_seconds=settings.storage_signed_url_ttl_seconds,
                cache_control=settings.storage_cache_control,
                timeout_seconds=settings.storage_timeout_seconds,
            ),
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.cfg.base_url and self.cfg.service_key)

    @property
    def bucket(self) -> str:
        return self.cfg.bucket

    def _api_url(self, endpoint: str) -> str:
        if not self.cfg.base_url:
            raise StorageError('Object storage is not configured (SUPABASE_URL missing).')
        return f"{self.cfg.base_url.rstrip('/')}/storage/v1/{endpoint.lstrip('/')}"

    def _object_ref(self, path: str) -> str:
        return f'{quote(self.cfg.bucket, safe="")}/{quote(path.lstrip("/"), safe="/")}'

    def _headers(self) -> dict[str, str]:
        key = str(self.cfg.service_key or '').strip()
        return {
            'Authorization': f'Bearer {key}',
            'apikey': key,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=max(10, int(self.cfg.timeout_seconds)),
            transport=self._transport,
        )

    async def upload(self, path: str, content: bytes, *, content_type: str) -> None:
        if not self.configured:
            raise StorageError('Object storage is not configured (SUPABASE_URL / SUPABASE_SERVICE_ROLE missing).')

        headers = {
            **self._headers(),
            'Content-Type': content_type,
            'Cache-Control': f'max-age={self.cfg.cache_control}',
            'x-upsert': 'true',
        }
        url = self._api_url(f'object/{self._object_ref(path)}')
        try:
            async with self._client() as client:
                response = await client.post(url, headers=headers, content=content)
        except httpx.HTTPError as exc:
            raise StorageError(f'Upload to {self.cfg.bucket}/{path} failed: {exc}') from exc
        if not response.is_success:
            raise StorageError(
                f'Upload to {self.cfg.bucket}/{path} failed with HTTP {response.status_code}: {response.text[:300]}'
            )
        logger.info('Uploaded %s bytes to %s/%s', len(content), self.cfg.bucket, path)

    def public_url(self, path: str) -> str | None:
        if not self.cfg.base_url or not self.cfg.public_bucket:
            return None
        return self._api_url(f'object/public/{self._object_ref(path)}')

    async def create_signed_url(self, path: str, *, expires_in: int | None = None) -> str:
        if not self.configured:
            raise StorageError('Object storage is not configured (SUPABASE_URL / SUPABASE_SERVICE_ROLE missing).')

        ttl = int(expires_in if expires_in is not None else self.cfg.signed_url_ttl_seconds)
        url = self._api_url(f'object/sign/{self._object_ref(path)}')
        try:
            async with self._client() as client:
                response = await client.post(url, headers=self._headers(), json={'expiresIn': ttl})
        except httpx.HTTPError as exc:
            raise StorageError(f'Signing {self.cfg.bucket}/{path} failed: {exc}') from exc
        if not response.is_success:
            raise StorageError(f'Signing {self.cfg.bucket}/{path} failed with HTTP {response.status_code}')

        try:
            data = response.json()
        except ValueError as exc:
            raise StorageError(f'Signing {self.cfg.bucket}/{path} returned invalid JSON') from exc
        signed = str((data or {}).get('signedURL') or (data or {}).get('signedUrl') or '').strip()
        if not signed:
            raise StorageError(f'Signing {self.cfg.bucket}/{path} returned no URL: {data}')
        if signed.startswith('http'):
            return signed
        return self._api_url(signed)
