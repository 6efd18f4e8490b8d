from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from auditpdf.adapters.object_storage import SupabaseStorageAdapter
from auditpdf.config import get_settings
from auditpdf.delivery import persist_document
from auditpdf.errors import DocumentBuildError, StorageError
from auditpdf.report.audit_pdf import build_audit_pdf
from auditpdf.server import serve
from auditpdf.types import AuditPayload


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def _load_payload(path: Path) -> AuditPayload:
    raw = json.loads(path.read_text(encoding='utf-8'))
    if not isinstance(raw, dict):
        raise ValueError('audit payload must be a JSON object')
    return AuditPayload.from_raw(raw)


def cmd_render(args: argparse.Namespace) -> int:
    settings = get_settings()
    _configure_logging(settings.log_level)

    payload_path = Path(args.payload).expanduser().resolve()
    if not payload_path.exists() or not payload_path.is_file():
        _print_json({'status': 'error', 'message': f'Payload not found: {payload_path}'})
        return 2
    try:
        payload = _load_payload(payload_path)
    except (ValueError, ValidationError) as exc:
        _print_json({'status': 'error', 'message': f'Invalid audit payload: {exc}'})
        return 2

    try:
        doc = asyncio.run(build_audit_pdf(payload, args.file_name, settings=settings))
    except DocumentBuildError as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 1

    if args.persist:
        storage = SupabaseStorageAdapter.from_settings(settings)
        try:
            persisted = asyncio.run(persist_document(doc, payload_id=payload.id, storage=storage))
        except StorageError as exc:
            _print_json({'status': 'error', 'message': str(exc)})
            return 1
        _print_json(
            {
                'status': 'ok',
                'file_name': persisted.file_name,
                'url': persisted.url,
                'bucket': persisted.bucket,
                'path': persisted.path,
            }
        )
        return 0

    out_dir = Path(args.out).expanduser().resolve() if args.out else settings.data_dir.resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / doc.file_name
    out_path.write_bytes(doc.content)
    _print_json(
        {
            'status': 'ok',
            'file_name': doc.file_name,
            'path': str(out_path),
            'bytes': len(doc.content),
        }
    )
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.host:
        settings = settings.model_copy(update={'server_host': args.host})
    if args.port:
        settings = settings.model_copy(update={'server_port': args.port})
    serve(settings)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Audit report PDF compositor CLI')
    sub = parser.add_subparsers(dest='command', required=True)

    render = sub.add_parser('render', help='Render an audit payload JSON file to PDF')
    render.add_argument('--payload', required=True, help='Path to audit payload JSON')
    render.add_argument('--out', required=False, help='Output directory (defaults to DATA_DIR)')
    render.add_argument('--file-name', required=False, help='Base file name override')
    render.add_argument('--persist', action='store_true', help='Upload to object storage instead of writing a file')
    render.set_defaults(func=cmd_render)

    serve_cmd = sub.add_parser('serve', help='Run the HTTP endpoint')
    serve_cmd.add_argument('--host', required=False)
    serve_cmd.add_argument('--port', type=int, required=False)
    serve_cmd.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
