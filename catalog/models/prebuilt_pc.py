from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from .base import TimeStampedModel

class PcTier(str, Enum):
    GAMING = "gaming"
    WORKSTATION = "workstation"
    OFFICE = "office"
    HOME = "home"
    CUSTOM = "custom"

class Cpu(BaseModel):
    model: str = Field(..., min_length=1)
    manufacturer: str = Field(..., pattern="^(Intel|AMD)$")
    cores: int = Field(..., ge=1)
    speed_ghz: float = Field(..., gt=0)
    cache_mb: Optional[float] = Field(None, ge=0)

class Gpu(BaseModel):
    model: str = Field(..., min_length=1)
    manufacturer: str = Field(..., pattern="^(NVIDIA|AMD)$")
    vram_gb: int = Field(..., ge=1)

class Motherboard(BaseModel):
    model: Optional[str] = None
    form_factor: Optional[str] = Field(None, pattern="^(ATX|Micro-ATX|Mini-ITX)$")
    chipset: Optional[str] = None

class Ram(BaseModel):
    capacity_gb: int = Field(..., ge=1)
    speed_mhz: Optional[int] = Field(None, ge=0)
    type: Optional[str] = Field(None, pattern="^(DDR4|DDR5)$")

class Drive(BaseModel):
    type: str = Field(..., pattern="^(SSD|HDD|NVMe)$")
    capacity_gb: int = Field(..., ge=1)

class PowerSupply(BaseModel):
    wattage: int = Field(..., ge=1)
    rating: Optional[str] = Field(None, pattern="^80\\+ (Bronze|Silver|Gold|Platinum)$")

class PcCase(BaseModel):
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    color: Optional[str] = None

class Cooling(BaseModel):
    type: str = Field("air", pattern="^(air|liquid)$")
    description: Optional[str] = None

class OperatingSystem(str, Enum):
    WINDOWS_11 = "Windows 11"
    WINDOWS_10 = "Windows 10"
    LINUX = "Linux"
    NONE = "None"

class PrebuiltPcCreate(BaseModel):
    """Hardware configuration of a prebuilt PC; pricing and stock live on the product"""
    tier: PcTier = PcTier.GAMING
    cpu: Cpu
    gpu: Gpu
    motherboard: Optional[Motherboard] = None
    ram: Ram
    storage: List[Drive] = Field(..., min_length=1)
    power_supply: PowerSupply
    pc_case: Optional[PcCase] = None
    cooling: Optional[Cooling] = None
    operating_system: OperatingSystem = OperatingSystem.WINDOWS_11
    warranty_months: int = Field(12, ge=0)

class PrebuiltPc(PrebuiltPcCreate, TimeStampedModel):
    """Stored prebuilt PC record"""
    pc_id: int
    product_id: int

    @property
    def total_storage_gb(self) -> int:
        return sum(drive.capacity_gb for drive in self.storage)
