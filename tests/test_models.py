# ==============================================================================
# MODEL VALIDATION TESTS
# ==============================================================================

from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from catalog.models.enums import Availability, ProductCategory
from catalog.models.game import GameCreate
from catalog.models.order import OrderItem
from catalog.models.prebuilt_pc import PrebuiltPcCreate
from catalog.models.product import ProductCreate, ProductUpdate, Ratings, validate_image_url
from catalog.utils.exceptions import (
    InsufficientStockError,
    ProductNotFoundError,
    StorageTimeoutError,
    StorageTransactionError,
    ValidationError,
)


class TestProductCreate:

    def test_valid_payload(self, product_data):
        payload = ProductCreate.model_validate(product_data)
        assert payload.category == ProductCategory.GPU
        assert payload.original_price == Decimal("100.00")
        assert payload.discount_percentage == Decimal("25")
        assert payload.specifications[0].key == "Memory"
        assert payload.warranty == "1 year limited warranty"

    def test_names_are_trimmed(self, product_data):
        payload = ProductCreate.model_validate({**product_data, "name": "  RTX 4070  "})
        assert payload.name == "RTX 4070"

    def test_client_final_price_dropped(self, product_data):
        payload = ProductCreate.model_validate({**product_data, "final_price": "1.00"})
        assert "final_price" not in payload.model_dump()

    @pytest.mark.parametrize("field, value", [
        ("name", "x" * 101),
        ("category", "Toaster"),
        ("original_price", "-1"),
        ("original_price", "10.999"),
        ("discount_percentage", "101"),
        ("stock", -1),
        ("images", []),
        ("description", "d" * 2001),
    ])
    def test_constraint_violations(self, product_data, field, value):
        with pytest.raises(PydanticValidationError):
            ProductCreate.model_validate({**product_data, field: value})

    @pytest.mark.parametrize("field", ["name", "category", "brand", "sku", "description", "images"])
    def test_required_fields(self, product_data, field):
        data = dict(product_data)
        data.pop(field)
        with pytest.raises(PydanticValidationError):
            ProductCreate.model_validate(data)

    def test_only_markers_accepted_as_availability(self, product_data):
        payload = ProductCreate.model_validate({**product_data, "availability": "Preorder"})
        assert payload.availability == Availability.PREORDER
        with pytest.raises(PydanticValidationError):
            ProductCreate.model_validate({**product_data, "availability": "In Stock"})


class TestImageUrls:

    @pytest.mark.parametrize("url", [
        "https://cdn.example.com/a.jpg",
        "http://cdn.example.com/path/b.JPEG",
        "https://cdn.example.com/c.webp?size=large",
    ])
    def test_accepted(self, url):
        assert validate_image_url(url) == url

    @pytest.mark.parametrize("url", [
        "cdn.example.com/a.jpg",
        "ftp://cdn.example.com/a.jpg",
        "https://cdn.example.com/a.pdf",
        "https:///a.png",
    ])
    def test_rejected(self, url):
        with pytest.raises(ValueError):
            validate_image_url(url)


class TestProductUpdate:

    def test_unknown_fields_rejected(self):
        with pytest.raises(PydanticValidationError):
            ProductUpdate.model_validate({"colour": "red"})

    def test_partial_dump(self):
        update = ProductUpdate.model_validate({"discount_percentage": "10"})
        assert update.model_dump(exclude_unset=True) == {"discount_percentage": Decimal("10")}


class TestRatings:

    def test_average_rounded(self):
        assert Ratings(average=4.46, total_reviews=3).average == 4.5

    def test_average_range(self):
        with pytest.raises(PydanticValidationError):
            Ratings(average=5.1, total_reviews=1)


class TestExtensionModels:

    def test_game_requires_genre(self):
        with pytest.raises(PydanticValidationError):
            GameCreate.model_validate({
                "genres": [],
                "platforms": ["PC"],
                "developer": "Studio",
                "publisher": "Publisher",
                "release_date": "2024-01-01",
                "age_rating": "Teen",
            })

    def test_prebuilt_pc_storage_total(self):
        pc = PrebuiltPcCreate.model_validate({
            "cpu": {"model": "i7-14700K", "manufacturer": "Intel", "cores": 20, "speed_ghz": 3.4},
            "gpu": {"model": "RX 7800 XT", "manufacturer": "AMD", "vram_gb": 16},
            "ram": {"capacity_gb": 32},
            "storage": [{"type": "NVMe", "capacity_gb": 1000}, {"type": "HDD", "capacity_gb": 2000}],
            "power_supply": {"wattage": 750, "rating": "80+ Gold"},
        })
        assert sum(d.capacity_gb for d in pc.storage) == 3000

    def test_prebuilt_pc_rejects_unknown_cpu_vendor(self):
        with pytest.raises(PydanticValidationError):
            PrebuiltPcCreate.model_validate({
                "cpu": {"model": "M3", "manufacturer": "Apple", "cores": 8, "speed_ghz": 4},
                "gpu": {"model": "RTX 4060", "manufacturer": "NVIDIA", "vram_gb": 8},
                "ram": {"capacity_gb": 16},
                "storage": [{"type": "SSD", "capacity_gb": 512}],
                "power_supply": {"wattage": 550},
            })


class TestOrderItem:

    def test_total_price(self):
        item = OrderItem(product_id=1, quantity=3, price_per_unit=Decimal("19.99"))
        assert item.total_price == Decimal("59.97")

    def test_quantity_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            OrderItem(product_id=1, quantity=0)


class TestErrors:

    def test_from_pydantic(self, product_data):
        with pytest.raises(PydanticValidationError) as exc_info:
            ProductCreate.model_validate({**product_data, "stock": -1})
        error = ValidationError.from_pydantic(exc_info.value)
        assert error.status_code == 400
        assert error.message.startswith("stock")
        assert error.details["errors"][0]["field"] == "stock"

    def test_to_dict(self):
        body = ProductNotFoundError(42).to_dict()
        assert body == {
            "success": False,
            "error": {
                "code": "PRODUCT_NOT_FOUND",
                "message": "No product found with id 42",
                "details": {"product_id": 42},
            },
        }

    def test_insufficient_stock_details(self):
        error = InsufficientStockError.for_product(7, requested=10, available=5)
        assert error.status_code == 409
        assert error.details["items"] == [{"product_id": 7, "requested": 10, "available": 5}]

    def test_timeout_is_storage_error(self):
        assert issubclass(StorageTimeoutError, StorageTransactionError)
        assert StorageTimeoutError("slow").status_code == 504
