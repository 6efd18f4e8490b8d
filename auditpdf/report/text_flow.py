from __future__ import annotations

from reportlab.lib import colors
from reportlab.pdfbase import pdfmetrics

from auditpdf.report.sanitize import sanitize


def text_width(text: str, font_name: str, size: float) -> float:
    return float(pdfmetrics.stringWidth(text, font_name, size))


def wrap_text(text: str, *, font_name: str, size: float, max_width: float) -> list[str]:
    """Greedy word wrap measured with the font metrics.

    A single word wider than ``max_width`` is kept whole on its own line.
    """
    words = sanitize(text).split()
    lines: list[str] = []
    line = ''
    for word in words:
        candidate = f'{line} {word}' if line else word
        if line and text_width(candidate, font_name, size) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


def wrap_and_draw(
    canvas,
    text: str,
    *,
    y: float,
    font_name: str,
    size: float,
    color: colors.Color,
    max_width: float,
    margin: float,
    line_height: float,
) -> float:
    """Draw wrapped lines starting at baseline ``y``.

    Returns the cursor after the last line, already decremented by
    ``line_height``. Pagination is the caller's job.
    """
    lines = wrap_text(text, font_name=font_name, size=size, max_width=max_width)
    return draw_lines(
        canvas,
        lines,
        y=y,
        font_name=font_name,
        size=size,
        color=color,
        x=margin,
        line_height=line_height,
    )


def draw_lines(
    canvas,
    lines: list[str],
    *,
    y: float,
    font_name: str,
    size: float,
    color: colors.Color,
    x: float,
    line_height: float,
) -> float:
    cursor_y = y
    canvas.setFont(font_name, size)
    canvas.setFillColor(color)
    for line in lines:
        canvas.drawString(x, cursor_y, line)
        cursor_y -= line_height
    return cursor_y
