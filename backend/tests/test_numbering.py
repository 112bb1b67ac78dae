"""Tests for document number generation."""

import re
from datetime import date

from app.models.order import PurchaseOrder
from app.models.receiving import StockReceipt
from app.services.numbering_service import NumberingService, fallback_number


def fixed_day():
    return date(2025, 7, 1)


class TestSequentialNumbers:

    def test_first_number_of_year(self, db_session):
        service = NumberingService(db_session, today=fixed_day)
        assert service.generate_po_number() == "PO-2025-0001"
        assert service.generate_receipt_number() == "REC-2025-0001"
        assert service.generate_asset_number() == "AST-2025-0001"

    def test_continues_from_highest(self, db_session, test_supplier):
        for number in ("PO-2025-0002", "PO-2025-0011", "PO-2024-0099", "PO123456"):
            db_session.add(PurchaseOrder(po_number=number, supplier_id=test_supplier.id))
        db_session.commit()

        assert NumberingService(db_session, today=fixed_day).generate_po_number() == "PO-2025-0012"

    def test_new_year_restarts(self, db_session, test_supplier):
        db_session.add(StockReceipt(receipt_number="REC-2024-0040", supplier_id=test_supplier.id, receipt_date=date(2024, 12, 31)))
        db_session.commit()

        assert NumberingService(db_session, today=fixed_day).generate_receipt_number() == "REC-2025-0001"


class TestFallback:

    def test_fallback_format(self):
        assert re.fullmatch(r"PO\d{6}", fallback_number("PO"))
        assert re.fullmatch(r"REC\d{6}", fallback_number("REC"))

    def test_generation_failure_uses_fallback(self, db_session, monkeypatch, caplog):
        def broken(self, prefix, column):
            raise RuntimeError("query failed")

        monkeypatch.setattr(NumberingService, "next_number", broken)
        number = NumberingService(db_session).generate_po_number()

        assert re.fullmatch(r"PO\d{6}", number)
        assert "using fallback" in caplog.text
