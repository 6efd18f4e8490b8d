from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
        populate_by_name=True,
    )

    app_name: str = 'Audit Report Compositor'
    report_title: str = 'Store Audit'

    data_dir: Path = Field(default=Path('./data'))
    log_level: str = 'INFO'

    # PDF layout
    pdf_font_regular: str = 'Helvetica'
    pdf_font_bold: str = 'Helvetica-Bold'
    pdf_font_regular_path: Path | None = None
    pdf_font_bold_path: Path | None = None
    pdf_page_margin: float = 50.0
    pdf_line_height: float = 20.0
    pdf_body_font_size: float = 12.0
    pdf_heading_font_size: float = 16.0
    include_photos_appendix: bool = True

    # Photo sources
    image_fetch_timeout_seconds: float = 15.0
    image_fetch_concurrency: int = 4
    image_render_width: int = 1600

    # Object storage (persisted mode)
    supabase_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices('SUPABASE_URL', 'STORAGE_URL'),
    )
    supabase_service_role: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            'SUPABASE_SERVICE_ROLE',
            'SUPABASE_SERVICE_ROLE_KEY',
            'STORAGE_SERVICE_KEY',
        ),
    )
    supabase_audit_bucket: str = Field(
        default='audit-files',
        validation_alias=AliasChoices('SUPABASE_AUDIT_BUCKET', 'STORAGE_BUCKET'),
    )
    storage_public_bucket: bool = True
    storage_signed_url_ttl_seconds: int = 60 * 60 * 24 * 365
    storage_cache_control: str = '3600'
    storage_timeout_seconds: int = 60

    # HTTP boundary
    server_host: str = '0.0.0.0'
    server_port: int = 8080


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
