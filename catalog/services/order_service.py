# catalog/services/order_service.py
import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Any, Iterable, Union
from ..config import Config
from ..database.queries import lock_row, update_row
from ..models.enums import Availability
from ..models.order import OrderItem
from ..models.product import Product
from ..utils.exceptions import InsufficientStockError, ProductNotFoundError, ValidationError
from ..utils.pricing import derive_availability
from .product_service import row_to_product, validate_model

ItemLike = Union[OrderItem, Dict[str, Any]]


class OrderService:
    """Stock side of order placement and cancellation"""

    def __init__(self, db):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def reserve_items(self, items: Iterable[ItemLike]) -> List[OrderItem]:
        """Take stock for every line of an order.

        All lines are checked and written in a single transaction: either
        every product loses the ordered quantity and gains it in sales_count,
        or nothing changes. Rows are locked in product_id order so two
        overlapping orders cannot deadlock.
        """
        lines = self._merge_lines(items)

        async with self.db.transaction() as conn:
            products = await self._lock_products(conn, lines)

            out_of_stock = []
            for product_id, quantity in lines.items():
                product = products[product_id]
                if not product.is_active or product.availability == Availability.DISCONTINUED:
                    raise ValidationError(
                        f"Product {product_id} is not available for sale",
                        {"product_id": product_id}
                    )
                if product.stock < quantity:
                    out_of_stock.append({
                        "product_id": product_id,
                        "name": product.name,
                        "requested": quantity,
                        "available": product.stock
                    })

            if out_of_stock:
                self.logger.warning(f"Order refused, items out of stock: {out_of_stock}")
                raise InsufficientStockError("Some items are out of stock", {"items": out_of_stock})

            reserved = []
            for product_id, quantity in lines.items():
                product = products[product_id]
                new_stock = product.stock - quantity
                await update_row(conn, "products", "product_id", product_id, {
                    "stock": new_stock,
                    "availability": self._availability_for(new_stock, product.availability).value,
                    "sales_count": product.sales_count + quantity
                })
                reserved.append(OrderItem(
                    product_id=product_id,
                    quantity=quantity,
                    price_per_unit=product.final_price
                ))

        self.logger.info(
            f"Reserved {len(reserved)} order lines, total {self.order_total(reserved)}"
        )
        return reserved

    async def release_items(self, items: Iterable[ItemLike]) -> List[Product]:
        """Put back the stock of a cancelled order and undo its sales"""
        lines = self._merge_lines(items)

        async with self.db.transaction() as conn:
            products = await self._lock_products(conn, lines)

            released = []
            for product_id, quantity in lines.items():
                product = products[product_id]
                new_stock = product.stock + quantity
                if new_stock > Config.MAX_STOCK:
                    raise ValidationError(
                        f"Stock cannot exceed {Config.MAX_STOCK}",
                        {"product_id": product_id, "stock": new_stock}
                    )
                row = await update_row(conn, "products", "product_id", product_id, {
                    "stock": new_stock,
                    "availability": self._availability_for(new_stock, product.availability).value,
                    "sales_count": max(product.sales_count - quantity, 0)
                })
                released.append(row_to_product(row))

        self.logger.info(f"Released stock for {len(released)} products")
        return released

    @staticmethod
    def order_total(items: Iterable[OrderItem]) -> Decimal:
        """Sum of line totals"""
        return sum((item.total_price for item in items), Decimal(0))

    @staticmethod
    def _merge_lines(items: Iterable[ItemLike]) -> "OrderedDict[int, int]":
        """Validate lines and add up repeated products, sorted by product_id"""
        merged: Dict[int, int] = {}
        for item in items:
            if not isinstance(item, OrderItem):
                item = validate_model(OrderItem, item)
            merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity

        if not merged:
            raise ValidationError("Order has no items")
        return OrderedDict(sorted(merged.items()))

    @staticmethod
    async def _lock_products(conn, lines: Dict[int, int]) -> Dict[int, Product]:
        products = {}
        for product_id in lines:
            row = await lock_row(conn, "products", "product_id", product_id)
            if row is None:
                raise ProductNotFoundError(product_id)
            products[product_id] = row_to_product(row)
        return products

    @staticmethod
    def _availability_for(stock: int, current: Availability) -> Availability:
        return derive_availability(stock, current, Config.RESURRECT_DISCONTINUED)
