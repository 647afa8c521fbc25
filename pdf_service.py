# pdf_service.py
from __future__ import annotations

import base64
import logging
import os
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Iterable, Protocol

from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth

from config import Config
from models import InvoiceData, LineItem
from pdf_canvas import (
    DEFAULT_LAYOUT,
    DEFAULT_PALETTE,
    ConfigurationError,
    DocumentCanvas,
    PageLayout,
    Palette,
    RenderError,
)

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {"usd": "$", "eur": "€", "gbp": "£", "cad": "CA$", "aud": "A$"}
DESCRIPTION_STRATEGIES = ("truncate", "wrap")

PREVIEW_PREFIX = "data:application/pdf;filename=generated.pdf;base64,"

# Offsets from the right page edge
BILL_TO_INSET = 80
TOTALS_INSET = 80

TOTALS_LINE_H = 10
NOTES_GAP = 30
NOTES_LABEL_GAP = 10
NOTES_LINE_H = 6
NOTES_FONT = ("Helvetica", 10)


# -----------------------------
# Formatting
# -----------------------------
def format_currency(amount_minor, currency: str = "usd") -> str:
    """
    Minor units (cents) -> en-US currency string.
    format_currency(205) == "$2.05", format_currency(123456) == "$1,234.56"
    """
    value = (Decimal(str(amount_minor)) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    code = (currency or "usd").strip().lower()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code.upper()} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def _money(x) -> str:
    try:
        return format_currency(Decimal(str(x)) * 100)
    except (InvalidOperation, ValueError):
        return f"${x}"


def _format_date(d: date) -> str:
    return f"{d.month}/{d.day}/{d.year}"


def _safe_filename(name: str) -> str:
    # strip characters not allowed on Windows/mac paths
    return re.sub(r'[\\/*?:"<>|]', "", (name or "")).strip() or "Invoice"


def invoice_filename(inv: InvoiceData) -> str:
    return f"Invoice-{_safe_filename(inv.invoice_number)}.pdf"


def _wrap_text(text, font, size, max_width):
    """Greedy word wrap to `max_width` millimetres."""
    def width(s: str) -> float:
        return stringWidth(s, font, size) / mm

    def split_long_token(token: str):
        """Break a single long token (like an email) into width-safe chunks."""
        if width(token) <= max_width:
            return [token]
        chunks = []
        remaining = token
        while remaining:
            lo, hi = 1, len(remaining)
            fit = 1
            while lo <= hi:
                mid = (lo + hi) // 2
                if width(remaining[:mid]) <= max_width:
                    fit = mid
                    lo = mid + 1
                else:
                    hi = mid - 1
            chunks.append(remaining[:fit])
            remaining = remaining[fit:]
        return chunks

    lines = []
    current = ""
    for word in str(text).split():
        for piece in split_long_token(word):
            test = current + (" " if current else "") + piece
            if width(test) <= max_width:
                current = test
            else:
                if current:
                    lines.append(current)
                current = piece
    if current:
        lines.append(current)
    return lines or [""]


def _split_notes_into_lines(notes_text: str, max_width, font="Helvetica", size=10) -> list[str]:
    """
    Wrap every line of the note to the box width.
    Blank source lines come through as "" so paragraphs stay separated.
    """
    raw = (notes_text or "").strip()
    if not raw:
        return []
    out: list[str] = []
    for ln in raw.splitlines():
        out.extend(_wrap_text(ln.strip(), font, size, max_width))
    return out


# -----------------------------
# Table geometry
# -----------------------------
@dataclass(frozen=True)
class Column:
    title: str
    x: float
    width: float
    align: str = "right"

    @property
    def anchor(self) -> float:
        # Left-aligned text starts at x; right-aligned text ends at the column's right edge.
        return self.x if self.align == "left" else self.x + self.width


@dataclass(frozen=True)
class TableLayout:
    top: float = 130
    header_height: float = 12
    header_baseline: float = 8
    first_row_offset: float = 20
    row_height: float = 15
    row_half_height: float = 6
    stripe_height: float = 12
    wrap_line_height: float = 5
    description_chars: int = 50
    columns: tuple[Column, ...] = (
        Column("Description", 20, 90, align="left"),
        Column("Qty", 110, 25),
        Column("Rate", 135, 30),
        Column("Amount", 165, 35),
    )


DEFAULT_TABLE = TableLayout()


# -----------------------------
# Blocks
# -----------------------------
def draw_header(pdf: DocumentCanvas, inv: InvoiceData, brand: str | None = None) -> None:
    """Banner with the wordmark on the left and the issuer stacked on the right."""
    L, P = pdf.layout, pdf.palette
    pdf.fill_rect(0, 0, pdf.page_width, L.banner_height, P.primary)
    pdf.draw_text(brand or Config.BRAND_NAME, L.left_margin, 25, font="Helvetica-Bold", size=24, color=P.on_primary)

    right_x = pdf.page_width - L.right_margin
    user = inv.user_info
    pdf.draw_text(user.name, right_x, 15, align="right", color=P.on_primary)
    if user.company:
        pdf.draw_text(user.company, right_x, 22, align="right", color=P.on_primary)
    pdf.draw_text(user.email, right_x, 29, align="right", color=P.on_primary)

    pdf.advance_to(max(pdf.y, L.banner_height))


def draw_parties(pdf: DocumentCanvas, inv: InvoiceData, table: TableLayout = DEFAULT_TABLE) -> None:
    """Invoice number/dates on the left, Bill To block on the right."""
    x = pdf.layout.left_margin
    pdf.draw_text("INVOICE", x, 65, font="Helvetica-Bold", size=28)
    pdf.draw_text(f"Invoice #: {inv.invoice_number}", x, 80, size=14)
    pdf.draw_text(f"Date: {_format_date(inv.date)}", x, 90, size=14)
    pdf.draw_text(f"Due Date: {_format_date(inv.due_date)}", x, 100, size=14)

    bill_x = pdf.page_width - BILL_TO_INSET
    pdf.draw_text("Bill To:", bill_x, 65, font="Helvetica-Bold", size=12)
    y = 75
    pdf.draw_text(inv.client_name, bill_x, y)
    pdf.draw_text(inv.client_email, bill_x, y + 8)
    last_y = y + 8
    for i, line in enumerate(inv.address_lines):
        last_y = y + 16 + i * 8
        pdf.draw_text(line, bill_x, last_y)

    # A long address pushes the table down instead of running into it.
    pdf.advance_to(max(pdf.y, table.top, last_y + 12))


def _description_lines(item: LineItem, table: TableLayout, strategy: str) -> list[str]:
    desc = item.description or ""
    if strategy == "wrap":
        col = table.columns[0]
        return _wrap_text(desc, "Helvetica", 10, col.width - 2)
    return [desc[: table.description_chars]]


def _page_chunks(lines: list[str], first_y: float, table: TableLayout, layout: PageLayout) -> list[list[str]]:
    """Split wrapped description lines so no line starts below the bottom margin."""
    step = table.wrap_line_height
    first_fit = int((layout.content_bottom - first_y) // step) + 1
    page_fit = int((layout.content_bottom - layout.top_margin) // step) + 1
    chunks = [lines[:first_fit]]
    rest = lines[first_fit:]
    while rest:
        chunks.append(rest[:page_fit])
        rest = rest[page_fit:]
    return chunks


def draw_items_table(
    pdf: DocumentCanvas,
    items: Iterable[LineItem],
    table: TableLayout = DEFAULT_TABLE,
    strategy: str = "truncate",
) -> int:
    """
    Header row once, then one row per item starting a new page whenever the
    cursor has passed the bottom margin. Stripes follow the item index across
    pages. Returns the number of rows drawn.
    """
    L, P = pdf.layout, pdf.palette
    left, width = L.left_margin, L.printable_width
    desc_col, qty_col, rate_col, amount_col = table.columns

    # keep the header row on the same page as the first data row
    pdf.ensure_room(table.first_row_offset)
    top = pdf.y
    pdf.fill_rect(left, top, width, table.header_height, P.header_fill)
    for col in table.columns:
        pdf.draw_text(col.title, col.anchor, top + table.header_baseline, align=col.align, font="Helvetica-Bold", size=10)
    pdf.advance_y(table.first_row_offset)

    rows = 0
    for index, item in enumerate(items):
        desc_lines = _description_lines(item, table, strategy)
        extra_h = (len(desc_lines) - 1) * table.wrap_line_height
        if pdf.overflows() or pdf.y + extra_h > L.content_bottom:
            pdf.new_page()

        chunks = _page_chunks(desc_lines, pdf.y, table, L)
        for n, chunk in enumerate(chunks):
            if n:
                pdf.new_page()
            y = pdf.y
            chunk_h = (len(chunk) - 1) * table.wrap_line_height
            if index % 2 == 1:
                pdf.fill_rect(left, y - table.row_half_height, width, table.stripe_height + chunk_h, P.row_stripe)

            for i, line in enumerate(chunk):
                pdf.draw_text(line, desc_col.anchor, y + i * table.wrap_line_height)
            if n == 0:
                pdf.draw_text(str(int(item.quantity)), qty_col.anchor, y, align="right")
                pdf.draw_text(_money(item.rate), rate_col.anchor, y, align="right")
                pdf.draw_text(_money(item.amount), amount_col.anchor, y, align="right")

        pdf.advance_y(table.row_height + chunk_h)
        rows += 1
    return rows


def draw_totals(pdf: DocumentCanvas, inv: InvoiceData) -> None:
    """Subtotal, optional tax and total, kept together on one page."""
    label_x = pdf.page_width - TOTALS_INSET
    value_x = pdf.page_width - pdf.layout.right_margin

    lines = [("Subtotal:", inv.subtotal)]
    if inv.tax is not None and inv.tax > 0:
        lines.append(("Tax:", inv.tax))
    lines.append(("Total:", inv.total))

    pdf.advance_y(TOTALS_LINE_H)
    pdf.ensure_room(TOTALS_LINE_H * (len(lines) - 1))

    for i, (label, value) in enumerate(lines):
        is_total = i == len(lines) - 1
        font, size = ("Helvetica-Bold", 12) if is_total else ("Helvetica", 10)
        pdf.draw_text(label, label_x, pdf.y, font=font, size=size)
        pdf.draw_text(_money(value), value_x, pdf.y, align="right", font=font, size=size)
        if not is_total:
            pdf.advance_y(TOTALS_LINE_H)


def draw_notes(pdf: DocumentCanvas, notes: str | None) -> int:
    lines = _split_notes_into_lines(notes or "", pdf.layout.printable_width, *NOTES_FONT)
    if not lines:
        return 0

    x = pdf.layout.left_margin
    pdf.advance_y(NOTES_GAP)
    # keep the label on the same page as the first line
    pdf.ensure_room(NOTES_LABEL_GAP)
    pdf.draw_text("Notes:", x, pdf.y, font="Helvetica-Bold", size=10)
    pdf.advance_y(NOTES_LABEL_GAP)

    for line in lines:
        if pdf.overflows():
            pdf.new_page()
        if line:
            pdf.draw_text(line, x, pdf.y, font=NOTES_FONT[0], size=NOTES_FONT[1])
        pdf.advance_y(NOTES_LINE_H)
    return len(lines)


def draw_footer(pdf: DocumentCanvas, caption: str | None = None) -> None:
    pdf.draw_text(
        caption or Config.FOOTER_TEXT,
        pdf.page_width / 2,
        pdf.page_height - pdf.layout.footer_offset,
        align="center",
        size=8,
        color=pdf.palette.muted,
    )


# -----------------------------
# Projections
# -----------------------------
class Projection(Protocol):
    footer: Callable[[DocumentCanvas], None] | None

    def render(self, pdf: DocumentCanvas, inv: InvoiceData) -> None: ...


class FullLayout:
    """The complete invoice, as downloaded."""

    def __init__(
        self,
        table: TableLayout = DEFAULT_TABLE,
        description_strategy: str | None = None,
        brand: str | None = None,
        footer_text: str | None = None,
    ):
        strategy = (description_strategy or Config.DESCRIPTION_STRATEGY or "truncate").strip().lower()
        if strategy not in DESCRIPTION_STRATEGIES:
            raise ConfigurationError(
                f"Unknown description strategy {strategy!r}; expected one of {', '.join(DESCRIPTION_STRATEGIES)}"
            )
        self.table = table
        self.description_strategy = strategy
        self.brand = brand
        self.footer_text = footer_text

    def footer(self, pdf: DocumentCanvas) -> None:
        draw_footer(pdf, self.footer_text)

    def render(self, pdf: DocumentCanvas, inv: InvoiceData) -> None:
        draw_header(pdf, inv, self.brand)
        draw_parties(pdf, inv, self.table)
        draw_items_table(pdf, inv.items, self.table, self.description_strategy)
        draw_totals(pdf, inv)
        draw_notes(pdf, inv.notes)


class SummaryLayout:
    """
    Preview projection: title, number, client and total only.
    Deliberately not the full layout.
    """
    footer = None

    def render(self, pdf: DocumentCanvas, inv: InvoiceData) -> None:
        x = pdf.layout.left_margin
        pdf.draw_text("INVOICE", x, 30, size=20)
        pdf.draw_text(f"Invoice #: {inv.invoice_number}", x, 50, size=12)
        pdf.draw_text(f"Client: {inv.client_name}", x, 65, size=12)
        pdf.draw_text(f"Total: {_money(inv.total)}", x, 80, size=12)


def render_document(
    inv: InvoiceData,
    projection: Projection | None = None,
    *,
    layout: PageLayout = DEFAULT_LAYOUT,
    palette: Palette = DEFAULT_PALETTE,
) -> DocumentCanvas:
    """Run one projection against a fresh canvas and return it finished."""
    projection = projection if projection is not None else FullLayout()
    pdf = DocumentCanvas(
        layout,
        palette,
        title=f"Invoice - {inv.invoice_number}",
        footer=projection.footer,
    )
    projection.render(pdf, inv)
    pdf.finish()
    logger.debug("Rendered invoice %s (%s): %d page(s)", inv.invoice_number, type(projection).__name__, pdf.page_count)
    return pdf


# -----------------------------
# Output sinks
# -----------------------------
class PersistSink:
    """Hands the finished PDF to a save callback as Invoice-{number}.pdf."""

    def __init__(self, save: Callable[[str, bytes], None]):
        self.save = save

    def finalize(self, pdf: DocumentCanvas, inv: InvoiceData) -> None:
        self.save(invoice_filename(inv), pdf.pdf_bytes)


class PreviewSink:
    def finalize(self, pdf: DocumentCanvas, inv: InvoiceData) -> str:
        return PREVIEW_PREFIX + base64.b64encode(pdf.pdf_bytes).decode("ascii")


def _produce(inv: InvoiceData, projection: Projection, sink, *, layout: PageLayout, palette: Palette):
    try:
        pdf = render_document(inv, projection, layout=layout, palette=palette)
    except RenderError:
        raise
    except Exception as e:
        raise RenderError(f"Could not render invoice {inv.invoice_number}: {e}") from e
    # Only a fully rendered document reaches the sink.
    return sink.finalize(pdf, inv)


def generate_invoice_pdf(
    inv: InvoiceData,
    save: Callable[[str, bytes], None],
    *,
    description_strategy: str | None = None,
    table: TableLayout = DEFAULT_TABLE,
    layout: PageLayout = DEFAULT_LAYOUT,
    palette: Palette = DEFAULT_PALETTE,
) -> None:
    """
    Render the full invoice and call `save(filename, pdf_bytes)` once.

    Raises RenderError (or its ConfigurationError subclass); nothing is saved then.
    """
    projection = FullLayout(table=table, description_strategy=description_strategy)
    _produce(inv, projection, PersistSink(save), layout=layout, palette=palette)
    logger.info("Generated %s", invoice_filename(inv))


def preview_invoice_pdf(
    inv: InvoiceData,
    *,
    layout: PageLayout = DEFAULT_LAYOUT,
    palette: Palette = DEFAULT_PALETTE,
) -> str:
    """Summary rendering as a data URI suitable for an <iframe> or <embed>."""
    return _produce(inv, SummaryLayout(), PreviewSink(), layout=layout, palette=palette)


def save_to_directory(directory: str | None = None) -> Callable[[str, bytes], None]:
    """Save callback that writes PDFs into `directory` (default Config.EXPORTS_DIR)."""
    out_dir = directory or Config.EXPORTS_DIR

    def save(filename: str, data: bytes) -> None:
        os.makedirs(out_dir, exist_ok=True)
        pdf_path = os.path.abspath(os.path.join(out_dir, filename))
        with open(pdf_path, "wb") as fh:
            fh.write(data)
        logger.info("Saved %s (%d bytes)", pdf_path, len(data))

    return save
