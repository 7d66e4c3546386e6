from datetime import datetime
import pytz
from decimal import Decimal
from typing import Any, Dict
from ..config import Config

def format_price(amount: Decimal) -> str:
    """Price with thousands separators and cents"""
    return f"{amount:,.2f}"

def format_datetime(dt: datetime) -> str:
    """Timestamp in the configured timezone"""
    tz = pytz.timezone(Config.TIMEZONE)
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")

def format_inventory_report(report: Dict[str, Any]) -> str:
    """Plain text rendering of ReportService.get_inventory_report()"""
    lines = [
        f"Inventory report ({format_datetime(report['generated_at'])})",
        f"Products: {report['total_products']}  Units in stock: {report['total_stock']}",
        f"Inventory value: {format_price(report['inventory_value'])}",
        f"Out of stock: {report['out_of_stock']}  "
        f"Low stock (<= {report['low_stock_threshold']}): {report['low_stock']}",
        "",
        "By category:",
    ]
    for category, entry in report["categories"].items():
        lines.append(
            f"  {category}: {entry['products']} products, {entry['total_stock']} units, "
            f"{entry['low_stock']} low"
        )

    if report["low_stock_products"]:
        lines += ["", "Low stock:"]
        for item in report["low_stock_products"]:
            lines.append(f"  #{item['product_id']} {item['name']} ({item['sku']}): {item['stock']}")

    if report["top_selling"]:
        lines += ["", "Top sellers:"]
        for item in report["top_selling"]:
            lines.append(f"  #{item['product_id']} {item['name']}: {item['sales_count']} sold")

    return "\n".join(lines)
