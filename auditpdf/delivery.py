from __future__ import annotations

import logging
import re

from auditpdf.adapters.object_storage import SupabaseStorageAdapter
from auditpdf.errors import StorageError
from auditpdf.types import GeneratedDocument, PersistedDocument


logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = 'application/pdf'


def pdf_response_headers(doc: GeneratedDocument) -> dict[str, str]:
    """Headers for binary mode: inline disposition and no caching."""
    name = doc.file_name.replace('"', '')
    return {
        'Content-Type': PDF_CONTENT_TYPE,
        'Content-Disposition': f'inline; filename="{name}"',
        'Content-Length': str(len(doc.content)),
        'Cache-Control': 'no-store',
    }


def clean_storage_id(value: object) -> str:
    cleaned = re.sub(r'[^A-Za-z0-9_-]+', '_', str(value or '').strip())
    return cleaned or 'unknown'


def storage_path_for(payload_id: object, file_name: str) -> str:
    return f'{clean_storage_id(payload_id)}/{file_name}'


async def persist_document(
    doc: GeneratedDocument,
    *,
    payload_id: object,
    storage: SupabaseStorageAdapter,
) -> PersistedDocument:
    """Upload ``doc`` and resolve a shareable URL.

    A public URL is preferred; otherwise a long-lived signed URL is issued.
    """
    path = storage_path_for(payload_id, doc.file_name)
    await storage.upload(path, doc.content, content_type=PDF_CONTENT_TYPE)

    url = storage.public_url(path)
    if url is None:
        try:
            url = await storage.create_signed_url(path)
        except StorageError:
            logger.exception('Uploaded %s but could not sign a URL for it', path)
            raise
    logger.info('Persisted %s to %s/%s', doc.file_name, storage.bucket, path)
    return PersistedDocument(file_name=doc.file_name, url=url, bucket=storage.bucket, path=path)
