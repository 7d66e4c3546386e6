# catalog/services/extension_service.py
import logging
from enum import Enum
from typing import Any, Dict, Optional
import asyncpg
from ..database.queries import insert_row
from ..models.enums import ProductCategory
from ..models.game import Game, GameCreate
from ..models.prebuilt_pc import PrebuiltPc, PrebuiltPcCreate
from ..utils.exceptions import ValidationError
from .product_service import ProductService, validate_model

# A product carries at most one extension record
EXTENSION_TABLES = ("games", "prebuilt_pcs")


def _column_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_column_value(v) for v in value]
    return value


class ExtensionService:
    """Game and prebuilt PC records layered on top of a product"""

    def __init__(self, db):
        self.db = db
        self.product_service = ProductService(db)
        self.logger = logging.getLogger(__name__)

    async def create_game(self, product_id: int, game_data: Dict[str, Any]) -> Game:
        """Attach game details to a product and file it under Games"""
        payload = validate_model(GameCreate, game_data)
        row = await self._create("games", product_id, ProductCategory.GAMES, payload)
        return Game.model_validate(dict(row))

    async def create_prebuilt_pc(self, product_id: int, pc_data: Dict[str, Any]) -> PrebuiltPc:
        """Attach a hardware configuration to a product and file it under Prebuilt PCs"""
        payload = validate_model(PrebuiltPcCreate, pc_data)
        row = await self._create("prebuilt_pcs", product_id, ProductCategory.PREBUILT_PCS, payload)
        return PrebuiltPc.model_validate(dict(row))

    async def get_game(self, product_id: int) -> Optional[Game]:
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT *
                FROM games
                WHERE product_id = $1
            """, product_id)
            return Game.model_validate(dict(row)) if row else None

    async def get_prebuilt_pc(self, product_id: int) -> Optional[PrebuiltPc]:
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT *
                FROM prebuilt_pcs
                WHERE product_id = $1
            """, product_id)
            return PrebuiltPc.model_validate(dict(row)) if row else None

    async def _create(self, table: str, product_id: int, category: ProductCategory, payload):
        values = {"product_id": product_id}
        values.update({key: _column_value(value) for key, value in payload.model_dump().items()})

        # Lock, category correction and insert commit or roll back together
        async with self.db.transaction() as conn:
            current = await self.product_service.lock_product(conn, product_id)

            for other in EXTENSION_TABLES:
                if other == table:
                    continue
                attached = await conn.fetchval(f"""
                    SELECT COUNT(*)
                    FROM {other}
                    WHERE product_id = $1
                """, product_id)
                if attached:
                    self.logger.warning(f"Refused {table} record for product {product_id}: has {other} record")
                    raise ValidationError(
                        f"Product {product_id} already has a {other} record",
                        {"product_id": product_id, "extension": other}
                    )

            await self.product_service.correct_category(conn, current, category)
            try:
                row = await insert_row(conn, table, values)
            except asyncpg.UniqueViolationError as e:
                raise ValidationError(
                    f"Product {product_id} already has a {table} record",
                    {"product_id": product_id, "extension": table}
                ) from e

        if current.category != category:
            self.logger.info(
                f"Product {product_id} category corrected {current.category.value} -> {category.value}"
            )
        self.logger.info(f"Created {table} record for product {product_id}")
        return row
