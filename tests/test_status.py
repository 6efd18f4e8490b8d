from __future__ import annotations

import pytest

from auditpdf.report.status import GREEN, GREY, NOT_APPLICABLE, ORANGE, RED, rating_color, yes_no


@pytest.mark.parametrize(
    ('value', 'color'),
    [
        (0, GREY),
        (-1, GREY),
        (None, GREY),
        (1, RED),
        (2, RED),
        (3, ORANGE),
        (4, ORANGE),
        (5, GREEN),
        (7.5, GREEN),
    ],
)
def test_rating_color_thresholds(value, color) -> None:
    assert rating_color(value) == color


def test_rating_color_unparseable_value_is_grey() -> None:
    assert rating_color('not a number') == GREY


def test_yes_no() -> None:
    assert yes_no(True) == ('Yes', GREEN)
    assert yes_no(False) == ('No', RED)
    assert yes_no(None) == (NOT_APPLICABLE, GREY)
    assert yes_no('yes') == (NOT_APPLICABLE, GREY)
