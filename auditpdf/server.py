from __future__ import annotations

import asyncio
import logging

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from auditpdf.adapters.image_source import ImageNormalizer
from auditpdf.adapters.object_storage import SupabaseStorageAdapter
from auditpdf.config import Settings, get_settings
from auditpdf.delivery import pdf_response_headers, persist_document
from auditpdf.errors import DocumentBuildError, StorageError
from auditpdf.report.audit_pdf import build_audit_pdf
from auditpdf.types import AuditPayload


logger = logging.getLogger(__name__)


def wants_binary(format_param: str | None, accept: str | None) -> bool:
    return str(format_param or '').strip().lower() == 'pdf' or 'application/pdf' in str(accept or '').lower()


def create_app(
    settings: Settings | None = None,
    *,
    normalizer: ImageNormalizer | None = None,
    storage: SupabaseStorageAdapter | None = None,
) -> Flask:
    settings = settings or get_settings()
    normalizer = normalizer or ImageNormalizer.from_settings(settings)
    storage = storage or SupabaseStorageAdapter.from_settings(settings)

    app = Flask(__name__)
    CORS(app)

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok', 'service': settings.app_name}), 200

    @app.route('/audit-pdf', methods=['POST'])
    def audit_pdf_endpoint():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON request'}), 400

        try:
            payload = AuditPayload.from_raw(data)
        except ValidationError as e:
            return jsonify({'error': 'Invalid audit payload', 'message': str(e)}), 400

        try:
            doc = asyncio.run(build_audit_pdf(payload, normalizer=normalizer, settings=settings))
        except DocumentBuildError as e:
            logger.error('Audit PDF build failed for %s: %s', payload.id, e)
            return jsonify({'error': 'PDF generation failed', 'message': str(e)}), 500

        if wants_binary(request.args.get('format'), request.headers.get('Accept')):
            return Response(doc.content, status=200, headers=pdf_response_headers(doc))

        try:
            persisted = asyncio.run(persist_document(doc, payload_id=payload.id, storage=storage))
        except StorageError as e:
            logger.error('Persisting %s failed: %s', doc.file_name, e)
            return jsonify({'error': str(e)}), 500

        return (
            jsonify(
                {
                    'success': True,
                    'fileName': persisted.file_name,
                    'url': persisted.url,
                    'bucket': persisted.bucket,
                    'path': persisted.path,
                }
            ),
            200,
        )

    return app


def serve(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    app = create_app(settings)
    logger.info('Starting %s on http://%s:%s', settings.app_name, settings.server_host, settings.server_port)
    app.run(host=settings.server_host, port=settings.server_port, debug=False, threaded=True)
