"""Tests for discrepancy detection."""

from types import SimpleNamespace

import pytest

from app.models.receiving import StockReceipt, StockReceiptItem
from app.services.discrepancy_service import discrepancy_count, discrepancy_message, has_discrepancy


class TestHasDiscrepancy:

    @pytest.mark.parametrize("received,ordered,expected", [
        (10, 10, False),
        (9, 10, True),
        (11, 10, True),
        (0, 0, False),
        (0, 5, True),
    ])
    def test_flag(self, received, ordered, expected):
        assert has_discrepancy(received, ordered) is expected


class TestDiscrepancyCount:

    def test_counts_dicts_and_objects(self):
        lines = [
            {"has_discrepancy": True},
            {"has_discrepancy": False},
            SimpleNamespace(has_discrepancy=True),
        ]
        assert discrepancy_count(lines) == 2

    def test_empty(self):
        assert discrepancy_count([]) == 0

    def test_messages(self):
        assert discrepancy_message(0) == "All received quantities match the ordered quantities"
        assert discrepancy_message(1) == "1 item with quantity discrepancies"
        assert discrepancy_message(3) == "3 items with quantity discrepancies"


class TestReceiptDiscrepancyCount:

    def test_receipt_counts_flagged_lines(self):
        receipt = StockReceipt(items=[
            StockReceiptItem(quantity_ordered=10, quantity_received=8, has_discrepancy=True),
            StockReceiptItem(quantity_ordered=5, quantity_received=5, has_discrepancy=False),
        ])
        assert receipt.discrepancy_count == 1
        assert receipt.discrepancy_count == discrepancy_count(receipt.items)
