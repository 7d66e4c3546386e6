# catalog/services/product_service.py
import logging
from decimal import Decimal
from typing import List, Dict, Optional, Any
from pydantic import ValidationError as PydanticValidationError
import asyncpg
from ..config import Config
from ..database.queries import insert_row, update_row, lock_row
from ..models.enums import Availability, ProductCategory
from ..models.product import Product, ProductCreate, ProductUpdate, Ratings
from ..utils.exceptions import ValidationError, ProductNotFoundError, InsufficientStockError
from ..utils.pricing import derive_final_price, derive_availability, to_decimal

PRICE_FIELDS = ("original_price", "discount_percentage")
IMMUTABLE_FIELDS = ("product_id", "category")
DERIVED_FIELDS = ("final_price", "discount_amount")
# Fields that only change through their own operation
MUTATOR_FIELDS = {
    "stock": "apply_stock_delta/set_stock",
    "availability": "set_availability",
    "sales_count": "increment_sales",
    "ratings": "update_ratings",
}
# Columns list_products filters on, with the type their values are coerced to
FILTER_COLUMNS = {
    "category": ProductCategory,
    "brand": str,
    "availability": Availability,
    "is_featured": bool,
    "original_price": Decimal,
    "discount_percentage": Decimal,
    "final_price": Decimal,
    "stock": int,
    "sales_count": int,
    "rating_average": Decimal,
}
FILTER_OPERATORS = {"gte": ">=", "gt": ">", "lte": "<=", "lt": "<", "ne": "<>"}
SORT_COLUMNS = (
    "name", "brand", "final_price", "original_price", "discount_percentage",
    "stock", "sales_count", "rating_average", "created_at",
)
DEFAULT_SORT = "-created_at"
MAX_PAGE_SIZE = 100


def row_to_product(row) -> Product:
    """Build a Product from a products row"""
    data = dict(row)
    average = data.pop("rating_average", 0)
    data["ratings"] = {
        "average": float(average or 0),
        "total_reviews": data.pop("total_reviews", 0) or 0
    }
    return Product.model_validate(data)


def product_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten model values into column values"""
    columns = {}
    for key, value in fields.items():
        if isinstance(value, (Availability, ProductCategory)):
            columns[key] = value.value
        else:
            columns[key] = value
    return columns


def validate_model(model, data: Dict[str, Any]):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


def _check_quantity(value: Any, field: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", {field: value})
    if value < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", {field: value})
    return value


def like_pattern(term: str) -> str:
    """Substring ILIKE pattern; % and _ in the term match literally"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _filter_value(column: str, value: Any) -> Any:
    kind = FILTER_COLUMNS[column]
    if kind is Decimal:
        return to_decimal(value, column)
    if kind is int:
        if isinstance(value, bool):
            raise ValidationError(f"{column} must be an integer", {column: value})
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{column} must be an integer", {column: value}) from e
    if kind is bool:
        if isinstance(value, bool):
            return value
        if str(value).lower() in ("true", "false"):
            return str(value).lower() == "true"
        raise ValidationError(f"{column} must be true or false", {column: value})
    if kind is str:
        return str(value)
    try:
        return kind(value).value
    except ValueError as e:
        raise ValidationError(f"Unknown {column} {value}", {column: value}) from e


def build_product_filters(filters: Optional[Dict[str, Any]], search: Optional[str],
                          params: List[Any]) -> List[str]:
    """WHERE conditions for the active catalog; values are appended to params.

    A filter value is either compared for equality or is a dict of
    operators: gte, gt, lte, lt, ne, in.
    """
    conditions = ["is_active = true"]

    for column, value in (filters or {}).items():
        if column not in FILTER_COLUMNS:
            raise ValidationError(f"Cannot filter on {column}", {"field": column})
        if not isinstance(value, dict):
            value = {"eq": value}

        for operator, operand in value.items():
            if operator == "in":
                if isinstance(operand, str):
                    operand = operand.split(",")
                params.append([_filter_value(column, v) for v in operand])
                conditions.append(f"{column} = ANY(${len(params)})")
            elif operator == "eq":
                params.append(_filter_value(column, operand))
                conditions.append(f"{column} = ${len(params)}")
            elif operator in FILTER_OPERATORS:
                params.append(_filter_value(column, operand))
                conditions.append(f"{column} {FILTER_OPERATORS[operator]} ${len(params)}")
            else:
                raise ValidationError(
                    f"Unknown filter operator {operator}",
                    {"field": column, "operator": operator}
                )

    if search and search.strip():
        params.append(like_pattern(search.strip()))
        conditions.append(f"(name ILIKE ${len(params)} OR description ILIKE ${len(params)})")
    return conditions


def build_order_clause(sort: Any) -> str:
    """ORDER BY from "col,-col" or a list of the same; "-" sorts descending"""
    if not sort:
        sort = DEFAULT_SORT
    parts = sort.split(",") if isinstance(sort, str) else list(sort)

    clauses = []
    for part in parts:
        part = part.strip()
        column = part.lstrip("-")
        if column not in SORT_COLUMNS:
            raise ValidationError(f"Cannot sort on {column}", {"field": column})
        clauses.append(f"{column} DESC" if part.startswith("-") else column)

    # Stable pages: ties broken by id in the direction of the first key
    clauses.append("product_id DESC" if clauses[0].endswith(" DESC") else "product_id")
    return ", ".join(clauses)


class ProductService:
    """Product records, stock mutator and sales counter"""

    def __init__(self, db):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def create_product(self, product_data: Dict[str, Any]) -> Product:
        """Validate and store a new product with derived price and availability"""
        payload = validate_model(ProductCreate, product_data)

        fields = payload.model_dump(exclude={"availability"})
        fields["final_price"] = derive_final_price(payload.original_price, payload.discount_percentage)
        if payload.availability is not None:
            fields["availability"] = payload.availability
        else:
            fields["availability"] = derive_availability(payload.stock)

        async with self.db.transaction() as conn:
            try:
                row = await insert_row(conn, "products", product_columns(fields))
            except asyncpg.UniqueViolationError as e:
                raise ValidationError(f"SKU {payload.sku} already exists", {"sku": payload.sku}) from e

        product = row_to_product(row)
        self.logger.info(
            f"Product {product.product_id} created: {product.name} "
            f"(final price {product.final_price}, stock {product.stock})"
        )
        return product

    async def get_product(self, product_id: int) -> Optional[Product]:
        """Fetch one product"""
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT *
                FROM products
                WHERE product_id = $1
            """, product_id)
            return row_to_product(row) if row else None

    async def get_category_products(self, category: Any, only_active: bool = True) -> List[Product]:
        """Products of one category ordered by name"""
        try:
            category = ProductCategory(category)
        except ValueError as e:
            raise ValidationError(f"Unknown category {category}") from e

        query = """
            SELECT *
            FROM products
            WHERE category = $1
        """
        if only_active:
            query += " AND is_active = true"
        query += " ORDER BY name"

        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch(query, category.value)
            return [row_to_product(r) for r in rows]

    async def get_featured_products(self, limit: int = 8) -> List[Product]:
        """Active featured products that can be bought right now"""
        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT *
                FROM products
                WHERE is_active = true AND is_featured = true AND stock > 0
                ORDER BY sales_count DESC
                LIMIT $1
            """, limit)
            return [row_to_product(r) for r in rows]

    async def get_top_products(self, limit: int = 5) -> List[Product]:
        """Best sellers"""
        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT *
                FROM products
                WHERE is_active = true
                ORDER BY sales_count DESC
                LIMIT $1
            """, limit)
            return [row_to_product(r) for r in rows]

    async def list_products(self, filters: Optional[Dict[str, Any]] = None, search: Optional[str] = None,
                            sort: Any = None, page: int = 1, limit: int = MAX_PAGE_SIZE) -> Dict[str, Any]:
        """One page of the active catalog with filtered and total counts"""
        _check_quantity(page, "page", 1)
        _check_quantity(limit, "limit", 1)
        if limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit cannot exceed {MAX_PAGE_SIZE}", {"limit": limit})

        params: List[Any] = []
        where = " AND ".join(build_product_filters(filters, search, params))
        order = build_order_clause(sort)

        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch(f"""
                SELECT *
                FROM products
                WHERE {where}
                ORDER BY {order}
                LIMIT ${len(params) + 1}
                OFFSET ${len(params) + 2}
            """, *params, limit, (page - 1) * limit)
            filtered = await conn.fetchval(f"""
                SELECT COUNT(*)
                FROM products
                WHERE {where}
            """, *params)
            total = await conn.fetchval("""
                SELECT COUNT(*)
                FROM products
                WHERE is_active = true
            """)

        return {
            "products": [row_to_product(r) for r in rows],
            "page": page,
            "limit": limit,
            "pages": -(-filtered // limit),
            "filtered_count": filtered,
            "total_count": total
        }

    async def search_products(self, query: str, limit: int = 50) -> List[Product]:
        """Case-insensitive name/description search over active products"""
        term = (query or "").strip()
        if len(term) < 2:
            raise ValidationError("Search query must be at least 2 characters long", {"query": query})
        _check_quantity(limit, "limit", 1)

        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT *
                FROM products
                WHERE is_active = true AND (name ILIKE $1 OR description ILIKE $1)
                ORDER BY sales_count DESC, name
                LIMIT $2
            """, like_pattern(term), limit)
            return [row_to_product(r) for r in rows]

    async def get_related_products(self, product_id: int, limit: int = 8) -> List[Product]:
        """Other active products from the same category"""
        _check_quantity(limit, "limit", 1)

        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT *
                FROM products
                WHERE product_id = $1
            """, product_id)
            if row is None:
                raise ProductNotFoundError(product_id)

            rows = await conn.fetch("""
                SELECT *
                FROM products
                WHERE category = $1 AND product_id <> $2 AND is_active = true
                ORDER BY sales_count DESC, name
                LIMIT $3
            """, row["category"], product_id, limit)
            return [row_to_product(r) for r in rows]

    async def get_categories(self) -> List[ProductCategory]:
        """Categories that have at least one active product"""
        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT DISTINCT category
                FROM products
                WHERE is_active = true
                ORDER BY category
            """)
            return [ProductCategory(r["category"]) for r in rows]

    async def update_product(self, product_id: int, changes: Dict[str, Any]) -> Product:
        """Direct field edits and price edits.

        final_price is always re-derived from the stored/edited price fields;
        a submitted final_price is ignored. Stock, availability, sales and
        ratings are refused here because they have their own mutators.
        """
        changes = dict(changes)
        for field in DERIVED_FIELDS:
            changes.pop(field, None)

        for field, operation in MUTATOR_FIELDS.items():
            if field in changes:
                raise ValidationError(
                    f"{field} cannot be edited directly, use {operation}",
                    {"field": field}
                )

        immutable = {field: changes.pop(field) for field in IMMUTABLE_FIELDS if field in changes}
        update = validate_model(ProductUpdate, changes)
        fields = update.model_dump(exclude_unset=True)

        async with self.db.transaction() as conn:
            current = await self.lock_product(conn, product_id)

            for field, value in immutable.items():
                if getattr(current, field) != value:
                    raise ValidationError(f"{field} cannot be changed after creation", {"field": field})

            merged = current.model_dump()
            merged.update(fields)
            merged["final_price"] = derive_final_price(
                merged["original_price"], merged["discount_percentage"]
            )
            validate_model(Product, merged)

            if any(field in fields for field in PRICE_FIELDS) or merged["final_price"] != current.final_price:
                fields["final_price"] = merged["final_price"]

            if not fields:
                return current

            try:
                row = await update_row(conn, "products", "product_id", product_id, product_columns(fields))
            except asyncpg.UniqueViolationError as e:
                raise ValidationError(f"SKU {fields.get('sku')} already exists", {"sku": fields.get("sku")}) from e

        product = row_to_product(row)
        self.logger.info(f"Product {product_id} updated: {', '.join(sorted(fields))}")
        return product

    async def delete_product(self, product_id: int) -> None:
        """Remove a product; game and PC extensions go with it"""
        async with self.db.transaction() as conn:
            result = await conn.execute("""
                DELETE FROM products
                WHERE product_id = $1
            """, product_id)

        if result != "DELETE 1":
            raise ProductNotFoundError(product_id)
        self.logger.info(f"Product {product_id} deleted")

    async def apply_stock_delta(self, product_id: int, delta: int) -> Product:
        """Add a signed delta to stock and re-derive availability in the same write"""
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationError("delta must be an integer", {"delta": delta})

        async with self.db.transaction() as conn:
            current = await self.lock_product(conn, product_id)
            new_stock = current.stock + delta
            if new_stock < 0:
                self.logger.warning(
                    f"Stock change refused for product {product_id}: "
                    f"stock {current.stock}, delta {delta}"
                )
                raise InsufficientStockError.for_product(product_id, -delta, current.stock)
            updated = await self._write_stock(conn, current, new_stock)

        self.logger.info(f"Product {product_id} stock {current.stock} -> {updated.stock} ({updated.availability.value})")
        return updated

    async def set_stock(self, product_id: int, new_stock: int) -> Product:
        """Set stock to an absolute value"""
        _check_quantity(new_stock, "stock", 0)

        async with self.db.transaction() as conn:
            current = await self.lock_product(conn, product_id)
            updated = await self._write_stock(conn, current, new_stock)

        self.logger.info(f"Product {product_id} stock set {current.stock} -> {updated.stock} ({updated.availability.value})")
        return updated

    async def increment_sales(self, product_id: int, quantity: int = 1) -> Product:
        """Add sold units to the running sales total"""
        _check_quantity(quantity, "quantity", 1)

        async with self.db.transaction() as conn:
            current = await self.lock_product(conn, product_id)
            row = await update_row(conn, "products", "product_id", product_id, {
                "sales_count": current.sales_count + quantity
            })

        product = row_to_product(row)
        self.logger.info(f"Product {product_id} sales {current.sales_count} -> {product.sales_count}")
        return product

    async def correct_sales_count(self, product_id: int, sales_count: int) -> Product:
        """Administrative correction of the sales total"""
        _check_quantity(sales_count, "sales_count", 0)

        async with self.db.transaction() as conn:
            current = await self.lock_product(conn, product_id)
            row = await update_row(conn, "products", "product_id", product_id, {
                "sales_count": sales_count
            })

        self.logger.warning(f"Product {product_id} sales count corrected {current.sales_count} -> {sales_count}")
        return row_to_product(row)

    async def record_sale(self, product_id: int, quantity: int) -> Product:
        """Decrement stock and count the sale in one transaction"""
        _check_quantity(quantity, "quantity", 1)

        async with self.db.transaction() as conn:
            current = await self.lock_product(conn, product_id)
            if current.stock < quantity:
                self.logger.warning(
                    f"Sale refused for product {product_id}: stock {current.stock}, quantity {quantity}"
                )
                raise InsufficientStockError.for_product(product_id, quantity, current.stock)

            new_stock = current.stock - quantity
            row = await update_row(conn, "products", "product_id", product_id, {
                "stock": new_stock,
                "availability": self._availability_for(new_stock, current.availability).value,
                "sales_count": current.sales_count + quantity
            })

        product = row_to_product(row)
        self.logger.info(f"Product {product_id} sold {quantity}, stock now {product.stock}")
        return product

    async def set_availability(self, product_id: int, availability: Any) -> Product:
        """Set or clear an explicit availability marker.

        Preorder and Discontinued are stored as given. In Stock and Out of
        Stock clear any marker and availability follows stock again.
        """
        try:
            availability = Availability(availability)
        except ValueError as e:
            raise ValidationError(f"Unknown availability {availability}") from e

        async with self.db.transaction() as conn:
            current = await self.lock_product(conn, product_id)
            if availability.is_marker:
                new_availability = availability
            else:
                new_availability = derive_availability(current.stock)
            row = await update_row(conn, "products", "product_id", product_id, {
                "availability": new_availability.value
            })

        self.logger.info(
            f"Product {product_id} availability {current.availability.value} -> {new_availability.value}"
        )
        return row_to_product(row)

    async def update_ratings(self, product_id: int, average: Any, total_reviews: int) -> Product:
        """Store the review aggregate; average is rounded to one decimal"""
        ratings = validate_model(Ratings, {"average": average, "total_reviews": total_reviews})

        async with self.db.transaction() as conn:
            await self.lock_product(conn, product_id)
            row = await update_row(conn, "products", "product_id", product_id, {
                "rating_average": Decimal(str(ratings.average)),
                "total_reviews": ratings.total_reviews
            })

        return row_to_product(row)

    async def toggle_featured(self, product_id: int) -> Product:
        async with self.db.transaction() as conn:
            current = await self.lock_product(conn, product_id)
            row = await update_row(conn, "products", "product_id", product_id, {
                "is_featured": not current.is_featured
            })

        product = row_to_product(row)
        self.logger.info(f"Product {product_id} featured={product.is_featured}")
        return product

    async def ensure_category(self, product_id: int, expected_category: Any) -> Product:
        """One-time category correction used when an extension record is created"""
        try:
            expected_category = ProductCategory(expected_category)
        except ValueError as e:
            raise ValidationError(f"Unknown category {expected_category}") from e

        async with self.db.transaction() as conn:
            current = await self.lock_product(conn, product_id)
            product = await self.correct_category(conn, current, expected_category)

        if product is not current:
            self.logger.info(
                f"Product {product_id} category corrected {current.category.value} -> {expected_category.value}"
            )
        return product

    async def correct_category(self, conn, current: Product, category: ProductCategory) -> Product:
        """Rewrite the category of a locked product on the caller's connection"""
        if current.category == category:
            return current
        row = await update_row(conn, "products", "product_id", current.product_id, {
            "category": category.value
        })
        return row_to_product(row)

    async def lock_product(self, conn, product_id: int) -> Product:
        """SELECT ... FOR UPDATE one product; raises ProductNotFoundError"""
        row = await lock_row(conn, "products", "product_id", product_id)
        if row is None:
            raise ProductNotFoundError(product_id)
        return row_to_product(row)

    def _availability_for(self, stock: int, current: Availability) -> Availability:
        return derive_availability(stock, current, Config.RESURRECT_DISCONTINUED)

    async def _write_stock(self, conn, current: Product, new_stock: int) -> Product:
        if new_stock > Config.MAX_STOCK:
            raise ValidationError(
                f"Stock cannot exceed {Config.MAX_STOCK}",
                {"product_id": current.product_id, "stock": new_stock}
            )
        row = await update_row(conn, "products", "product_id", current.product_id, {
            "stock": new_stock,
            "availability": self._availability_for(new_stock, current.availability).value
        })
        return row_to_product(row)
