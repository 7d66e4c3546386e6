# catalog/utils/pricing.py
"""Derived-field rules for product records.

Every write path calls these explicitly before persisting, so a stored
product always satisfies::

    final_price == round2(original_price * (1 - discount_percentage / 100))

and its availability agrees with its stock.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Union

from ..models.enums import Availability
from .exceptions import ValidationError

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
TENTH = Decimal("0.1")
HUNDRED = Decimal("100")


def to_decimal(value: Number, field: str = "value") -> Decimal:
    """Convert to Decimal going through str so floats keep their printed value"""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def derive_final_price(original_price: Number, discount_percentage: Number = 0) -> Decimal:
    """Price after discount, rounded half-up to cents"""
    price = to_decimal(original_price, "original_price")
    discount = to_decimal(discount_percentage, "discount_percentage")

    if price < 0:
        raise ValidationError("Price cannot be negative", {"original_price": str(price)})
    if discount < 0 or discount > HUNDRED:
        raise ValidationError(
            "Discount must be between 0 and 100",
            {"discount_percentage": str(discount)}
        )

    return (price * (HUNDRED - discount) / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


def derive_availability(stock: int,
                        current: Optional[Any] = None,
                        resurrect_discontinued: bool = False) -> Availability:
    """Availability implied by a stock level.

    Positive stock always means In Stock, clearing a stale Out of Stock or
    Preorder. At zero stock a Preorder marker is kept. Discontinued is never
    produced here and is left alone unless ``resurrect_discontinued`` is set
    and stock is positive.
    """
    current = Availability(current) if current is not None else None

    if current == Availability.DISCONTINUED:
        if resurrect_discontinued and stock > 0:
            return Availability.IN_STOCK
        return Availability.DISCONTINUED

    if stock > 0:
        return Availability.IN_STOCK
    if current == Availability.PREORDER:
        return Availability.PREORDER
    return Availability.OUT_OF_STOCK


def round_rating(value: Number) -> float:
    """Clamp to [0, 5] and round to one decimal"""
    rating = to_decimal(value, "rating")
    rating = min(max(rating, Decimal(0)), Decimal(5))
    return float(rating.quantize(TENTH, rounding=ROUND_HALF_UP))
