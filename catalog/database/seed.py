import logging
from typing import Any, Dict, List

from ..services.extension_service import ExtensionService
from ..services.product_service import ProductService

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {
        "name": "GeForce RTX 4070 Super",
        "category": "GPU",
        "brand": "NVIDIA",
        "description": "12GB GDDR6X graphics card for 1440p gaming.",
        "sku": "GPU-RTX4070S-12G",
        "original_price": "599.99",
        "discount_percentage": "10",
        "stock": 25,
        "images": ["https://cdn.example.com/products/rtx-4070-super.png"],
        "specifications": [
            {"key": "Memory", "value": "12GB GDDR6X"},
            {"key": "Boost Clock", "value": "2475 MHz"},
        ],
        "features": ["DLSS 3", "Ray Tracing"],
        "is_featured": True,
    },
    {
        "name": "Ryzen 7 7800X3D",
        "category": "CPU",
        "brand": "AMD",
        "description": "8-core desktop processor with 3D V-Cache.",
        "sku": "CPU-R7-7800X3D",
        "original_price": "449.00",
        "stock": 8,
        "images": ["https://cdn.example.com/products/ryzen-7800x3d.jpg"],
        "specifications": [
            {"key": "Cores", "value": "8"},
            {"key": "Socket", "value": "AM5"},
        ],
    },
    {
        "name": "The Witcher 3: Wild Hunt",
        "category": "PCGames",
        "brand": "CD PROJEKT RED",
        "description": "Open world role-playing game.",
        "sku": "GAME-WITCHER3-GOTY",
        "original_price": "39.99",
        "discount_percentage": "70",
        "stock": 500,
        "images": ["https://cdn.example.com/products/witcher3.webp"],
    },
    {
        "name": "Forge Apex Gaming PC",
        "category": "GamingLaptop",
        "brand": "CustomForge",
        "description": "Prebuilt tower tuned for high refresh rate gaming.",
        "sku": "PC-FORGE-APEX",
        "original_price": "1899.00",
        "discount_percentage": "5",
        "stock": 0,
        "availability": "Preorder",
        "images": ["https://cdn.example.com/products/forge-apex.jpg"],
    },
]

SAMPLE_GAME: Dict[str, Any] = {
    "genres": ["RPG", "Adventure"],
    "platforms": ["PC"],
    "developer": "CD PROJEKT RED",
    "publisher": "CD PROJEKT",
    "release_date": "2015-05-19",
    "age_rating": "Mature",
    "edition": "Gold",
    "dlc_available": True,
    "achievements": True,
    "cloud_saves": True,
    "metacritic_score": 93,
    "languages": [
        {"name": "English", "interface": True, "audio": True, "subtitles": True},
        {"name": "Polish", "interface": True, "audio": True, "subtitles": True},
    ],
}

SAMPLE_PC: Dict[str, Any] = {
    "tier": "gaming",
    "cpu": {"model": "Ryzen 7 7800X3D", "manufacturer": "AMD", "cores": 8, "speed_ghz": 4.2},
    "gpu": {"model": "RTX 4070 Super", "manufacturer": "NVIDIA", "vram_gb": 12},
    "ram": {"capacity_gb": 32, "speed_mhz": 6000, "type": "DDR5"},
    "storage": [{"type": "NVMe", "capacity_gb": 2000}],
    "power_supply": {"wattage": 850, "rating": "80+ Gold"},
    "cooling": {"type": "liquid"},
}


async def seed_catalog(db) -> int:
    """Insert the sample catalog into an empty products table"""
    async with db.pool.acquire() as conn:
        existing = await conn.fetchval("SELECT COUNT(*) FROM products")
    if existing:
        logger.info(f"Catalog already has {existing} products, skipping seed")
        return 0

    products = ProductService(db)
    extensions = ExtensionService(db)

    created = [await products.create_product(data) for data in SAMPLE_PRODUCTS]
    await extensions.create_game(created[2].product_id, SAMPLE_GAME)
    await extensions.create_prebuilt_pc(created[3].product_id, SAMPLE_PC)

    logger.info(f"Seeded {len(created)} products")
    return len(created)
