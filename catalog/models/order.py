from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional

class OrderItem(BaseModel):
    """Individual item in an order"""
    product_id: int
    quantity: int = Field(..., ge=1)
    price_per_unit: Optional[Decimal] = None
    
    @property
    def total_price(self) -> Decimal:
        return (self.price_per_unit or Decimal(0)) * self.quantity
