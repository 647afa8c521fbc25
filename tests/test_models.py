"""Unit tests for invoice payload parsing."""

from __future__ import annotations

from datetime import date

import pytest

from models import LineItem, invoice_from_dict


class TestInvoiceFromDict:
    def test_parses_camel_case_payload(self, sample_payload):
        inv = invoice_from_dict(sample_payload)

        assert inv.invoice_number == "INV-1001"
        assert inv.client_name == "Acme"
        assert inv.subtotal == 500.0
        assert inv.user_info.company == "Doe Studio"
        assert inv.items[0] == LineItem("Website redesign", 1, 400.0, 400.0)

    def test_dates_ignore_time_part(self, sample_payload):
        inv = invoice_from_dict(sample_payload)

        assert inv.date == date(2024, 1, 15)
        assert inv.due_date == date(2024, 2, 14)

    def test_item_order_is_kept(self, sample_payload):
        inv = invoice_from_dict(sample_payload)

        assert [i.description for i in inv.items] == ["Website redesign", "Hosting (monthly)"]

    def test_optional_fields_absent(self, sample_payload):
        sample_payload["userInfo"].pop("company")
        sample_payload["tax"] = None
        sample_payload["notes"] = ""

        inv = invoice_from_dict(sample_payload)

        assert inv.user_info.company is None
        assert inv.tax is None
        assert inv.notes is None

    def test_blank_company_is_absent(self, sample_payload):
        sample_payload["userInfo"]["company"] = "   "

        assert invoice_from_dict(sample_payload).user_info.company is None

    def test_missing_required_field(self, sample_payload):
        del sample_payload["invoiceNumber"]

        with pytest.raises(KeyError) as exc_info:
            invoice_from_dict(sample_payload)

        assert "invoiceNumber" in str(exc_info.value)

    def test_whole_number_quantity(self, sample_payload):
        sample_payload["items"][0]["quantity"] = 2.0

        assert invoice_from_dict(sample_payload).items[0].quantity == 2

    def test_fractional_quantity_rejected(self, sample_payload):
        sample_payload["items"][0]["quantity"] = 1.5

        with pytest.raises(ValueError):
            invoice_from_dict(sample_payload)

    @pytest.mark.parametrize(
        "field, value",
        [("items", "ab"), ("items", [1]), ("items", {"quantity": 1}), ("userInfo", "Jane")],
    )
    def test_wrong_shapes_are_type_errors(self, sample_payload, field, value):
        sample_payload[field] = value

        with pytest.raises(TypeError):
            invoice_from_dict(sample_payload)

    def test_bad_date(self, sample_payload):
        sample_payload["date"] = "not-a-date"

        with pytest.raises(ValueError):
            invoice_from_dict(sample_payload)

    def test_inconsistent_totals_are_not_checked(self, sample_payload):
        sample_payload["total"] = 1.0

        assert invoice_from_dict(sample_payload).total == 1.0


def test_address_lines_split_on_line_breaks(sample_invoice):
    assert sample_invoice.address_lines == ["123 Main St", "Springfield, IL 62701"]
