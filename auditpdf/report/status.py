from __future__ import annotations

from typing import Any

from reportlab.lib import colors


BLACK = colors.Color(0, 0, 0)
GREEN = colors.Color(0.05, 0.55, 0.1)
RED = colors.Color(0.75, 0.1, 0.1)
ORANGE = colors.Color(0.9, 0.55, 0.1)
GREY = colors.Color(0.45, 0.45, 0.45)
LINK_BLUE = colors.Color(0.1, 0.35, 0.9)
PLACEHOLDER_FILL = colors.Color(0.95, 0.95, 0.95)

NOT_APPLICABLE = 'N/A'


def yes_no(value: Any) -> tuple[str, colors.Color]:
    if value is True:
        return 'Yes', GREEN
    if value is False:
        return 'No', RED
    return NOT_APPLICABLE, GREY


def rating_color(value: Any) -> colors.Color:
    """Threshold ladder: <=0 grey, <=2 red, <=4 orange, otherwise green."""
    try:
        n = float(value or 0)
    except (TypeError, ValueError):
        return GREY
    if n <= 0:
        return GREY
    if n <= 2:
        return RED
    if n <= 4:
        return ORANGE
    return GREEN
