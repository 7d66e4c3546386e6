# ==============================================================================
# INVENTORY REPORT TESTS
# ==============================================================================

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from catalog.services.report_service import ReportService
from catalog.utils.formatters import format_datetime, format_inventory_report, format_price


class TestInventoryReport:

    @pytest.mark.asyncio
    async def test_counts(self, db, product_service, make_product):
        low = await make_product(name="Low GPU", stock=3)
        await make_product(name="Empty GPU", stock=0)
        await make_product(name="Big CPU", category="CPU", stock=50)
        await make_product(name="Hidden", stock=1, is_active=False)
        await product_service.increment_sales(low.product_id, 7)

        report = await ReportService(db).get_inventory_report(low_stock_threshold=10)

        assert report["total_products"] == 3
        assert report["total_stock"] == 53
        assert report["out_of_stock"] == 1
        assert report["low_stock"] == 1
        assert report["low_stock_products"][0]["name"] == "Low GPU"
        assert report["top_selling"][0]["sales_count"] == 7
        assert report["categories"]["GPU"] == {"products": 2, "total_stock": 3, "low_stock": 1}
        assert report["inventory_value"] == Decimal("75.00") * 53

    @pytest.mark.asyncio
    async def test_category_low_stock_matches_low_stock_list(self, db, make_product):
        await make_product(name="Empty CPU", category="CPU", stock=0)
        await make_product(name="Last CPU", category="CPU", stock=1)
        await make_product(name="Full CPU", category="CPU", stock=40)

        report = await ReportService(db).get_inventory_report(low_stock_threshold=5)

        assert report["categories"]["CPU"]["low_stock"] == report["low_stock"] == 1
        assert report["out_of_stock"] == 1

    @pytest.mark.asyncio
    async def test_formatted(self, db, make_product):
        await make_product(name="Low GPU", stock=2)
        text = format_inventory_report(await ReportService(db).get_inventory_report())
        assert "Inventory value: 150.00" in text
        assert "Low GPU" in text


class TestFormatters:

    def test_price(self):
        assert format_price(Decimal("1234567.5")) == "1,234,567.50"

    def test_naive_datetime_treated_as_utc(self, monkeypatch):
        from catalog.config import Config
        monkeypatch.setattr(Config, "TIMEZONE", "UTC")
        assert format_datetime(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02 03:04:05"
        aware = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert format_datetime(aware) == "2024-01-02 03:04:05"
