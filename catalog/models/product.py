from decimal import Decimal
from typing import Optional, List
from urllib.parse import urlparse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from .base import TimeStampedModel
from .enums import ProductCategory, Availability
from ..config import Config
from ..utils.pricing import round_rating

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")


def validate_image_url(url: str) -> str:
    """Accept only absolute http(s) URLs pointing at an image file"""
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{url} is not a valid image URL")
    if not parsed.path.lower().endswith(IMAGE_EXTENSIONS):
        raise ValueError(f"{url} is not a valid image URL")
    return url.strip()


class Specification(BaseModel):
    """Single product attribute, e.g. Memory -> 16GB"""
    key: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)

    model_config = ConfigDict(str_strip_whitespace=True)


class Dimensions(BaseModel):
    length: Optional[float] = Field(None, ge=0)
    width: Optional[float] = Field(None, ge=0)
    height: Optional[float] = Field(None, ge=0)


class Ratings(BaseModel):
    average: float = Field(0.0, ge=0, le=5)
    total_reviews: int = Field(0, ge=0)

    @field_validator("average")
    @classmethod
    def _round_average(cls, value: float) -> float:
        return round_rating(value)


class ProductFields(BaseModel):
    """Fields shared by the create payload and the stored record"""
    name: str = Field(..., min_length=1, max_length=100)
    brand: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1, max_length=2000)
    sku: str = Field(..., min_length=1)
    original_price: Decimal = Field(..., ge=0, le=Config.MAX_PRICE, decimal_places=2)
    discount_percentage: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=2)
    images: List[str] = Field(..., min_length=1)
    specifications: List[Specification] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    warranty: Optional[str] = "1 year limited warranty"
    weight: Optional[float] = Field(None, ge=0)
    dimensions: Optional[Dimensions] = None
    is_active: bool = True
    is_featured: bool = False

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("images")
    @classmethod
    def _check_images(cls, images: List[str]) -> List[str]:
        return [validate_image_url(url) for url in images]


class ProductCreate(ProductFields):
    """Client payload for a new product.

    Derived fields (final_price, sales_count, ratings) are not accepted here;
    unknown keys are dropped so a client-sent final_price never reaches storage.
    """
    category: ProductCategory
    stock: int = Field(..., ge=0, le=Config.MAX_STOCK)
    availability: Optional[Availability] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("availability")
    @classmethod
    def _only_markers(cls, value: Optional[Availability]) -> Optional[Availability]:
        if value is not None and not value.is_marker:
            raise ValueError("Only Preorder or Discontinued can be set explicitly")
        return value


class ProductUpdate(BaseModel):
    """Direct field edits and price edits"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    brand: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    sku: Optional[str] = Field(None, min_length=1)
    original_price: Optional[Decimal] = Field(None, ge=0, le=Config.MAX_PRICE, decimal_places=2)
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    images: Optional[List[str]] = Field(None, min_length=1)
    specifications: Optional[List[Specification]] = None
    features: Optional[List[str]] = None
    warranty: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0)
    dimensions: Optional[Dimensions] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("images")
    @classmethod
    def _check_images(cls, images: Optional[List[str]]) -> Optional[List[str]]:
        if images is None:
            return images
        return [validate_image_url(url) for url in images]


class Product(ProductFields, TimeStampedModel):
    """Stored product record"""
    product_id: int
    category: ProductCategory
    stock: int = Field(..., ge=0)
    final_price: Decimal = Field(..., ge=0)
    availability: Availability = Availability.IN_STOCK
    sales_count: int = Field(0, ge=0)
    ratings: Ratings = Field(default_factory=Ratings)

    model_config = ConfigDict(from_attributes=True)

    @property
    def discount_amount(self) -> Decimal:
        return self.original_price - self.final_price

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
