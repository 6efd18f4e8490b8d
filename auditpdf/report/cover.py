from __future__ import annotations

from auditpdf.report.formatters import CoverData
from auditpdf.report.layout import PAGE_SIZE, ReportFonts
from auditpdf.report.sanitize import sanitize
from auditpdf.report.status import BLACK
from auditpdf.report.text_flow import text_width


TITLE_SIZE = 28.0
ROW_SIZE = 12.0
ROW_LEFT = 60.0
ROW_VALUE_OFFSET = 170.0
ROW_GAP = 22.0


def cover_rows(cover: CoverData) -> list[tuple[str, str]]:
    return [
        ('File', cover.file),
        ('Store', cover.store),
        ('Template', cover.template),
        ('Reported by', cover.reported_by),
        ('Started', cover.started),
        ('Submitted', cover.submitted),
    ]


def draw_cover_page(
    canvas,
    fonts: ReportFonts,
    cover: CoverData,
    *,
    page_size: tuple[float, float] = PAGE_SIZE,
) -> None:
    """Draw the metadata-only cover on the canvas' current page.

    The caller starts the next page; nothing here paginates.
    """
    width, height = float(page_size[0]), float(page_size[1])

    title = sanitize(cover.title)
    canvas.setFillColor(BLACK)
    canvas.setFont(fonts.bold, TITLE_SIZE)
    canvas.drawString((width - text_width(title, fonts.bold, TITLE_SIZE)) / 2, height - 90, title)

    y = height - 140
    for label, value in cover_rows(cover):
        canvas.setFont(fonts.bold, ROW_SIZE)
        canvas.drawString(ROW_LEFT, y, f'{label}:')
        canvas.setFont(fonts.regular, ROW_SIZE)
        canvas.drawString(ROW_LEFT + ROW_VALUE_OFFSET, y, sanitize(value))
        y -= ROW_GAP
