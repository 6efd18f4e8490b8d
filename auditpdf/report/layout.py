from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from auditpdf.config import Settings
from auditpdf.errors import DocumentBuildError
from auditpdf.report.sanitize import sanitize
from auditpdf.report.status import BLACK
from auditpdf.report.text_flow import draw_lines, text_width, wrap_and_draw, wrap_text


logger = logging.getLogger(__name__)

PAGE_SIZE = A4
HEADING_GAP = 10.0


@dataclass(frozen=True)
class ReportFonts:
    regular: str
    bold: str


def _register_font(font_name: str, font_path: Path | None) -> str:
    if font_path is not None:
        try:
            pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
        except Exception as exc:
            raise DocumentBuildError(f'Failed to embed PDF font {font_name} from {font_path}: {exc}') from exc
        return font_name
    try:
        pdfmetrics.getFont(font_name)
    except Exception as exc:
        raise DocumentBuildError(f'Unknown PDF font {font_name!r}: {exc}') from exc
    return font_name


def resolve_fonts(settings: Settings) -> ReportFonts:
    return ReportFonts(
        regular=_register_font(settings.pdf_font_regular, settings.pdf_font_regular_path),
        bold=_register_font(settings.pdf_font_bold, settings.pdf_font_bold_path),
    )


class LayoutCursor:
    """Page, margin and vertical cursor state for one document build.

    ``y`` is the baseline of the next line to draw. Every primitive keeps it
    within ``[margin, page_height - margin]``; when a primitive would cross the
    bottom margin a new page is started first and ``y`` resets to the top.
    """

    def __init__(
        self,
        canvas,
        *,
        fonts: ReportFonts,
        page_size: tuple[float, float] = PAGE_SIZE,
        margin: float = 50.0,
        line_height: float = 20.0,
        body_size: float = 12.0,
        heading_size: float = 16.0,
    ) -> None:
        self.canvas = canvas
        self.fonts = fonts
        self.page_width, self.page_height = float(page_size[0]), float(page_size[1])
        self.margin = float(margin)
        self.line_height = float(line_height)
        self.body_size = float(body_size)
        self.heading_size = float(heading_size)
        self.y = self.top

    @classmethod
    def from_settings(cls, canvas, *, fonts: ReportFonts, settings: Settings) -> LayoutCursor:
        return cls(
            canvas,
            fonts=fonts,
            margin=settings.pdf_page_margin,
            line_height=settings.pdf_line_height,
            body_size=settings.pdf_body_font_size,
            heading_size=settings.pdf_heading_font_size,
        )

    @property
    def top(self) -> float:
        return self.page_height - self.margin

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def usable_height(self) -> float:
        return self.top - self.margin

    @property
    def page_number(self) -> int:
        return int(self.canvas.getPageNumber())

    def new_page(self) -> None:
        self.canvas.showPage()
        self.y = self.top
        logger.debug('Started PDF page %s', self.page_number)

    def ensure_space(self, needed: float) -> bool:
        """Break the page when ``needed`` units do not fit above the bottom margin.

        A fresh page is never broken again, so oversize requests cannot emit
        blank pages.
        """
        if self.y - needed < self.margin and self.y < self.top:
            self.new_page()
            return True
        return False

    def gap(self, amount: float) -> None:
        if self.y - amount < self.margin:
            self.new_page()
            return
        self.y -= amount

    def heading(self, text: str, *, centered: bool = False) -> None:
        needed = self.line_height + HEADING_GAP
        self.ensure_space(needed)
        clean = sanitize(text)
        x = self.margin
        if centered:
            x = (self.page_width - text_width(clean, self.fonts.bold, self.heading_size)) / 2
        self.canvas.setFont(self.fonts.bold, self.heading_size)
        self.canvas.setFillColor(BLACK)
        self.canvas.drawString(x, self.y, clean)
        self.y -= needed

    def label_value(self, label: str, value: object, color: colors.Color = BLACK) -> None:
        shown = '' if value is None else value
        text = f'{label}: {shown}'
        lines = wrap_text(
            text,
            font_name=self.fonts.regular,
            size=self.body_size,
            max_width=self.content_width,
        )
        per_page = max(1, int(self.usable_height // self.line_height))
        if len(lines) <= per_page:
            self.ensure_space(len(lines) * self.line_height)
            self.y = wrap_and_draw(
                self.canvas,
                text,
                y=self.y,
                font_name=self.fonts.regular,
                size=self.body_size,
                color=color,
                max_width=self.content_width,
                margin=self.margin,
                line_height=self.line_height,
            )
            return
        # A block taller than one page is split on line boundaries.
        for start in range(0, len(lines), per_page):
            chunk = lines[start:start + per_page]
            self.ensure_space(len(chunk) * self.line_height)
            self.y = draw_lines(
                self.canvas,
                chunk,
                y=self.y,
                font_name=self.fonts.regular,
                size=self.body_size,
                color=color,
                x=self.margin,
                line_height=self.line_height,
            )
