# catalog/services/report_service.py
from typing import Dict, Any, Optional
from datetime import datetime
from decimal import Decimal
import pytz
from ..config import Config
from .product_service import row_to_product

class ReportService:
    """Inventory reports for the admin dashboard"""
    
    def __init__(self, db):
        self.db = db
        self.tz = pytz.timezone(Config.TIMEZONE)

    async def get_inventory_report(self, low_stock_threshold: Optional[int] = None) -> Dict[str, Any]:
        """Stock levels, low stock list and best sellers of active products"""
        if low_stock_threshold is None:
            low_stock_threshold = Config.LOW_STOCK_THRESHOLD

        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT *
                FROM products
                WHERE is_active = true
                ORDER BY stock
            """)
        products = [row_to_product(r) for r in rows]

        by_category: Dict[str, Dict[str, int]] = {}
        for product in products:
            entry = by_category.setdefault(
                product.category.value,
                {"products": 0, "total_stock": 0, "low_stock": 0}
            )
            entry["products"] += 1
            entry["total_stock"] += product.stock
            if 0 < product.stock <= low_stock_threshold:
                entry["low_stock"] += 1

        low_stock = [
            {"product_id": p.product_id, "name": p.name, "sku": p.sku, "stock": p.stock}
            for p in products
            if 0 < p.stock <= low_stock_threshold
        ]
        top_selling = [
            {"product_id": p.product_id, "name": p.name, "sales_count": p.sales_count, "stock": p.stock}
            for p in sorted(products, key=lambda p: p.sales_count, reverse=True)[:5]
        ]

        return {
            "generated_at": datetime.now(self.tz),
            "total_products": len(products),
            "total_stock": sum(p.stock for p in products),
            "inventory_value": sum((p.final_price * p.stock for p in products), Decimal(0)),
            "out_of_stock": sum(1 for p in products if p.stock == 0),
            "low_stock": len(low_stock),
            "low_stock_threshold": low_stock_threshold,
            "categories": dict(sorted(by_category.items())),
            "low_stock_products": low_stock,
            "top_selling": top_selling
        }
