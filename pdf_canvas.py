# pdf_canvas.py
from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Callable, Optional

from reportlab.pdfgen import canvas
from reportlab.lib.units import mm
from reportlab.lib import colors
from reportlab.pdfbase.pdfmetrics import stringWidth


class RenderError(Exception):
    """Raised when an invoice document cannot be produced."""


class ConfigurationError(RenderError, ValueError):
    """Invalid page geometry or layout settings. Raised before anything is drawn."""


# -----------------------------
# Read-only configuration
# -----------------------------
@dataclass(frozen=True)
class PageLayout:
    # All values in millimetres. Defaults are A4.
    page_width: float = 210
    page_height: float = 297
    left_margin: float = 20
    right_margin: float = 20
    top_margin: float = 20
    bottom_margin: float = 30
    footer_offset: float = 20
    banner_height: float = 40

    @property
    def printable_width(self) -> float:
        return self.page_width - self.left_margin - self.right_margin

    @property
    def content_bottom(self) -> float:
        return self.page_height - self.bottom_margin

    def validate(self) -> None:
        if self.page_width <= 0 or self.page_height <= 0:
            raise ConfigurationError(
                f"Page dimensions must be positive, got {self.page_width}x{self.page_height}"
            )
        margins = (self.left_margin, self.right_margin, self.top_margin, self.bottom_margin, self.footer_offset)
        if any(m < 0 for m in margins):
            raise ConfigurationError("Page margins must not be negative")
        if self.left_margin + self.right_margin >= self.page_width:
            raise ConfigurationError("Left/right margins exceed the page width")
        if self.top_margin + self.bottom_margin >= self.page_height:
            raise ConfigurationError("Top/bottom margins exceed the page height")
        if self.footer_offset >= self.page_height:
            raise ConfigurationError("Footer offset exceeds the page height")


@dataclass(frozen=True)
class Palette:
    primary: colors.Color = field(default_factory=lambda: colors.HexColor("#3B82F6"))
    dark: colors.Color = field(default_factory=lambda: colors.HexColor("#1F2937"))
    muted: colors.Color = field(default_factory=lambda: colors.HexColor("#6B7280"))
    on_primary: colors.Color = field(default_factory=lambda: colors.white)
    header_fill: colors.Color = field(default_factory=lambda: colors.HexColor("#F9FAFB"))
    row_stripe: colors.Color = field(default_factory=lambda: colors.HexColor("#F8FAFC"))


DEFAULT_LAYOUT = PageLayout()
DEFAULT_PALETTE = Palette()


@dataclass(frozen=True)
class DrawOp:
    """One entry of the canvas draw log."""
    kind: str  # "rect" | "text" | "page"
    page: int
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    text: str = ""
    font: str = ""
    size: float = 0.0
    color: Optional[colors.Color] = None
    align: str = "left"


# -----------------------------
# Canvas
# -----------------------------
class DocumentCanvas:
    """
    Per-render drawing context on top of a ReportLab canvas.

    Coordinates are millimetres measured from the top-left corner, so the
    cursor `y` grows towards the bottom of the page. ReportLab's bottom-up
    point space is only used inside the primitives.

    The footer callback (if any) runs once for every finished page, right
    before the page is emitted.
    """

    def __init__(
        self,
        layout: PageLayout = DEFAULT_LAYOUT,
        palette: Palette = DEFAULT_PALETTE,
        *,
        title: str = "",
        footer: Callable[["DocumentCanvas"], None] | None = None,
    ):
        layout.validate()
        self.layout = layout
        self.palette = palette
        self.page_width = layout.page_width
        self.page_height = layout.page_height
        self.page_index = 0
        self.ops: list[DrawOp] = []

        self._y = layout.top_margin
        self._footer = footer
        self._finished = False
        self._buf = io.BytesIO()
        # Uncompressed page streams keep the text layer greppable.
        self._pdf = canvas.Canvas(
            self._buf,
            pagesize=(layout.page_width * mm, layout.page_height * mm),
            pageCompression=0,
        )
        if title:
            self._pdf.setTitle(title)

    # -----------------------------
    # Cursor
    # -----------------------------
    @property
    def y(self) -> float:
        return self._y

    @property
    def page_count(self) -> int:
        return self.page_index + 1

    def advance_y(self, dy: float) -> float:
        if dy < 0:
            raise RenderError(f"Cursor can only move down the page (dy={dy})")
        self._y += dy
        return self._y

    def advance_to(self, y: float) -> float:
        return self.advance_y(y - self._y)

    def remaining_height(self) -> float:
        return self.layout.content_bottom - self._y

    def overflows(self) -> bool:
        return self._y > self.layout.content_bottom

    def ensure_room(self, height: float) -> bool:
        """Start a new page unless `height` more units fit above the bottom margin."""
        if self._y + height > self.layout.content_bottom:
            self.new_page()
            return True
        return False

    # -----------------------------
    # Primitives
    # -----------------------------
    def _check_open(self):
        if self._finished:
            raise RenderError("Document already finished")

    def _py(self, y: float) -> float:
        return (self.page_height - y) * mm

    def fill_rect(self, x: float, y: float, w: float, h: float, color) -> None:
        self._check_open()
        self._pdf.setFillColor(color)
        self._pdf.rect(x * mm, self._py(y + h), w * mm, h * mm, stroke=0, fill=1)
        self.ops.append(DrawOp("rect", self.page_index, x, y, w, h, color=color))

    def text_width(self, text: str, font: str = "Helvetica", size: float = 10) -> float:
        return stringWidth(str(text), font, size) / mm

    def draw_text(
        self,
        text,
        x: float,
        y: float,
        *,
        align: str = "left",
        font: str = "Helvetica",
        size: float = 10,
        color=None,
    ) -> None:
        self._check_open()
        text = str(text)
        color = color if color is not None else self.palette.dark
        self._pdf.setFont(font, size)
        self._pdf.setFillColor(color)
        if align == "right":
            self._pdf.drawRightString(x * mm, self._py(y), text)
        elif align == "center":
            self._pdf.drawCentredString(x * mm, self._py(y), text)
        else:
            self._pdf.drawString(x * mm, self._py(y), text)
        self.ops.append(DrawOp("text", self.page_index, x, y, text=text, font=font, size=size, color=color, align=align))

    def new_page(self) -> None:
        self._check_open()
        if self._footer:
            self._footer(self)
        self._pdf.showPage()
        self.page_index += 1
        self._y = self.layout.top_margin
        self.ops.append(DrawOp("page", self.page_index, y=self._y))

    def finish(self) -> bytes:
        self._check_open()
        if self._footer:
            self._footer(self)
        self._pdf.showPage()
        self._pdf.save()
        self._finished = True
        return self._buf.getvalue()

    @property
    def pdf_bytes(self) -> bytes:
        if not self._finished:
            raise RenderError("Document not finished yet")
        return self._buf.getvalue()

    # -----------------------------
    # Draw-log helpers
    # -----------------------------
    def texts(self, page: int | None = None) -> list[DrawOp]:
        return [op for op in self.ops if op.kind == "text" and (page is None or op.page == page)]

    def rects(self, page: int | None = None) -> list[DrawOp]:
        return [op for op in self.ops if op.kind == "rect" and (page is None or op.page == page)]
