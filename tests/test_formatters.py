from __future__ import annotations

import locale
from datetime import datetime, timezone

import pytest

from auditpdf.report.formatters import (
    EM_DASH,
    build_cover_data,
    build_file_base_name,
    derive_store_name,
    format_date_verbose,
    ordinal_suffix,
    resolve_reporter_name,
    resolve_template_name,
    store_token,
)
from auditpdf.types import AuditPayload


@pytest.mark.parametrize(
    ('day', 'suffix'),
    [(1, 'st'), (2, 'nd'), (3, 'rd'), (4, 'th'), (11, 'th'), (12, 'th'), (13, 'th'), (21, 'st'), (22, 'nd'), (23, 'rd'), (31, 'st')],
)
def test_ordinal_suffix(day: int, suffix: str) -> None:
    assert ordinal_suffix(day) == suffix


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        ('2024-08-05T10:00:00Z', "Monday 5th Aug '24"),
        ('2024-08-11', "Sunday 11th Aug '24"),
        ('2024-08-22T08:15:00+01:00', "Thursday 22nd Aug '24"),
        ('2025-09-28', "Sunday 28th Sep '25"),
        ('2024-08-05T10:00:00.12345+00:00', "Monday 5th Aug '24"),
        ('2024-08-05T10:00:00.1+00:00', "Monday 5th Aug '24"),
        ('2024-08-05T10:00:00.1234567Z', "Monday 5th Aug '24"),
        ('2024-08-05 10:00:00+00', "Monday 5th Aug '24"),
        ('2024-08-05 10:00:00.42+0530', "Monday 5th Aug '24"),
        ('2024-08-05T10:00+01', "Monday 5th Aug '24"),
    ],
)
def test_format_date_verbose(value: str, expected: str) -> None:
    assert format_date_verbose(value) == expected


def test_format_date_verbose_ignores_process_locale() -> None:
    previous = locale.setlocale(locale.LC_TIME)
    try:
        locale.setlocale(locale.LC_TIME, 'de_DE.UTF-8')
    except locale.Error:
        pytest.skip('de_DE.UTF-8 locale is not installed')
    try:
        assert format_date_verbose('2024-12-02T10:00:00Z') == "Monday 2nd Dec '24"
    finally:
        locale.setlocale(locale.LC_TIME, previous)


def test_format_date_verbose_keeps_the_timestamp_timezone() -> None:
    assert format_date_verbose('2024-08-05T23:30:00-05:00') == "Monday 5th Aug '24"


@pytest.mark.parametrize('value', [None, '', 'yesterday', '2024-13-40'])
def test_format_date_verbose_invalid_is_em_dash(value) -> None:
    assert format_date_verbose(value) == EM_DASH


def test_store_name_skips_uuid_in_favour_of_real_name() -> None:
    payload = AuditPayload.from_raw(
        {'store_name': 'c56a4180-65aa-42ec-a945-5fd21dec0538', 'store': 'Cheetham Hill'}
    )

    assert derive_store_name(payload) == 'Cheetham Hill'


def test_store_name_skips_numeric_id_and_reads_store_object() -> None:
    payload = AuditPayload.from_raw({'store_name': '1042', 'store': {'id': 7, 'name': 'Rusholme'}})

    assert derive_store_name(payload) == 'Rusholme'


def test_store_name_falls_back_to_identifier_then_empty() -> None:
    assert derive_store_name(AuditPayload.from_raw({'store': '1042'})) == '1042'
    assert derive_store_name(AuditPayload.from_raw({})) == ''


def test_template_and_reporter_resolution() -> None:
    payload = AuditPayload.from_raw(
        {
            'template': {'name': 'Daily Opening'},
            'user': {'full_name': 'Asha Patel', 'name': 'asha'},
        }
    )

    assert resolve_template_name(payload) == 'Daily Opening'
    assert resolve_reporter_name(payload) == 'Asha Patel'


def test_reporter_prefers_explicit_fields_and_defaults_to_em_dash() -> None:
    explicit = AuditPayload.from_raw({'reporterName': 'Sam', 'user': {'full_name': 'Other'}})

    assert resolve_reporter_name(explicit) == 'Sam'
    assert resolve_reporter_name(AuditPayload.from_raw({})) == EM_DASH
    assert resolve_template_name(AuditPayload.from_raw({})) == EM_DASH


@pytest.mark.parametrize(
    ('name', 'token'),
    [
        ('Cheetham Hill', 'Cheetham_Hill'),
        ("  St. Mary's -- Court ", 'St_Mary_s_Court'),
        ('Café Nord', 'Caf_Nord'),
        ('', 'Unknown'),
        ('***', 'Unknown'),
    ],
)
def test_store_token(name: str, token: str) -> None:
    assert store_token(name) == token


@pytest.mark.parametrize(
    'submitted_at',
    [
        '2024-08-05T10:00:00Z',
        '2024-08-05T10:00:00.12345+00:00',
        '2024-08-05T10:00:00.1+00:00',
        '2024-08-05 10:00:00+00',
    ],
)
def test_file_base_name_uses_submitted_date(submitted_at: str) -> None:
    payload = AuditPayload.from_raw({'store': 'Cheetham Hill', 'submitted_at': submitted_at})
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)

    assert build_file_base_name(payload, now=now) == 'Audit_Cheetham_Hill_050824'


def test_file_base_name_falls_back_to_now() -> None:
    payload = AuditPayload.from_raw({'store': 'Levenshulme', 'submitted_at': 'garbage'})
    now = datetime(2025, 1, 2, 9, 0, tzinfo=timezone.utc)

    assert build_file_base_name(payload, now=now) == 'Audit_Levenshulme_020125'


def test_cover_data_never_exposes_the_audit_id() -> None:
    payload = AuditPayload.from_raw(
        {
            'id': 'c56a4180-65aa-42ec-a945-5fd21dec0538',
            'store': 'Cheetham Hill',
            'template': 'Daily Opening',
            'started_at': '2024-08-05T09:00:00Z',
            'submitted_at': '2024-08-05T10:00:00Z',
        }
    )

    cover = build_cover_data(payload, 'Audit_Cheetham_Hill_050824', title='Store Audit')

    assert cover.file == 'Audit_Cheetham_Hill_050824.pdf'
    assert cover.store == 'Cheetham Hill'
    assert cover.template == 'Daily Opening'
    assert cover.started == "Monday 5th Aug '24"
    assert cover.reported_by == '-'
    assert payload.id not in vars(cover).values()
