# models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional


# -----------------------------
# Invoice values
# -----------------------------
@dataclass(frozen=True)
class UserInfo:
    """Issuer identity shown in the invoice banner."""
    name: str
    email: str
    company: Optional[str] = None


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: int
    rate: float
    amount: float


@dataclass(frozen=True)
class InvoiceData:
    """
    One invoice as handed to the PDF engine.
    Arithmetic (amount = quantity * rate, total = subtotal + tax) is the caller's job.
    """
    invoice_number: str
    date: date
    due_date: date
    client_name: str
    client_email: str
    client_address: str
    items: tuple[LineItem, ...]
    subtotal: float
    total: float
    user_info: UserInfo
    tax: Optional[float] = None
    notes: Optional[str] = None

    @property
    def address_lines(self) -> list[str]:
        # Address is entered as separate lines; never reflow it.
        return (self.client_address or "").splitlines()


# -----------------------------
# Payload parsing
# -----------------------------
def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    raw = str(value or "").strip()
    # "2024-01-15" or "2024-01-15T00:00:00Z": only the calendar date matters
    return date.fromisoformat(raw[:10])


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _optional_text(value: Any) -> str | None:
    val = (str(value) if value is not None else "").strip()
    return val or None


def _quantity(value: Any) -> int:
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"Quantity must be a whole number, got {value!r}")
    return int(number)


def _require_dict(value: Any, name: str) -> dict:
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be an object, got {type(value).__name__}")
    return value


def line_item_from_dict(raw: dict) -> LineItem:
    raw = _require_dict(raw, "Line item")
    return LineItem(
        description=str(raw.get("description") or ""),
        quantity=_quantity(raw["quantity"]),
        rate=float(raw["rate"]),
        amount=float(raw["amount"]),
    )


def invoice_from_dict(payload: dict) -> InvoiceData:
    """
    Build InvoiceData from the camelCase JSON the web client sends.

    Raises KeyError for a missing required field and ValueError/TypeError
    for values that cannot be converted.
    """
    user = _require_dict(payload["userInfo"], "userInfo")
    items = payload.get("items") or []
    if not isinstance(items, list):
        raise TypeError(f"items must be a list, got {type(items).__name__}")
    return InvoiceData(
        invoice_number=str(payload["invoiceNumber"]),
        date=_parse_date(payload["date"]),
        due_date=_parse_date(payload["dueDate"]),
        client_name=str(payload["clientName"]),
        client_email=str(payload.get("clientEmail") or ""),
        client_address=str(payload.get("clientAddress") or ""),
        items=tuple(line_item_from_dict(i) for i in items),
        subtotal=float(payload["subtotal"]),
        total=float(payload["total"]),
        user_info=UserInfo(
            name=str(user["name"]),
            email=str(user.get("email") or ""),
            company=_optional_text(user.get("company")),
        ),
        tax=_optional_float(payload.get("tax")),
        notes=payload.get("notes") or None,
    )
