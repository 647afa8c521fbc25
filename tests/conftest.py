"""Pytest configuration and fixtures for the invoice PDF tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from models import InvoiceData, LineItem, UserInfo


@pytest.fixture
def sample_payload() -> dict:
    """Invoice JSON as the web client posts it."""
    return {
        "invoiceNumber": "INV-1001",
        "date": "2024-01-15",
        "dueDate": "2024-02-14T00:00:00Z",
        "clientName": "Acme",
        "clientEmail": "billing@acme.test",
        "clientAddress": "123 Main St\nSpringfield, IL 62701",
        "items": [
            {"description": "Website redesign", "quantity": 1, "rate": 400.0, "amount": 400.0},
            {"description": "Hosting (monthly)", "quantity": 2, "rate": 50.0, "amount": 100.0},
        ],
        "subtotal": 500.0,
        "total": 500.0,
        "userInfo": {"name": "Jane Doe", "company": "Doe Studio", "email": "jane@doe.test"},
    }


@pytest.fixture
def sample_invoice() -> InvoiceData:
    return InvoiceData(
        invoice_number="INV-1001",
        date=date(2024, 1, 15),
        due_date=date(2024, 2, 14),
        client_name="Acme",
        client_email="billing@acme.test",
        client_address="123 Main St\nSpringfield, IL 62701",
        items=(LineItem("Website redesign", 1, 400.0, 400.0), LineItem("Hosting (monthly)", 2, 50.0, 100.0)),
        subtotal=500.0,
        total=500.0,
        user_info=UserInfo(name="Jane Doe", email="jane@doe.test", company="Doe Studio"),
    )


@pytest.fixture
def make_invoice(sample_invoice):
    """Factory: sample invoice with `n_items` numbered line items and field overrides."""

    def _make(n_items: int | None = None, **overrides) -> InvoiceData:
        inv = sample_invoice
        if n_items is not None:
            items = tuple(LineItem(f"Service item {i}", 1, 10.0, 10.0) for i in range(n_items))
            inv = replace(inv, items=items, subtotal=10.0 * n_items, total=10.0 * n_items)
        return replace(inv, **overrides)

    return _make
