from datetime import date
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from .base import TimeStampedModel

class Genre(str, Enum):
    ACTION = "Action"
    ADVENTURE = "Adventure"
    RPG = "RPG"
    STRATEGY = "Strategy"
    SPORTS = "Sports"
    SHOOTER = "Shooter"
    PUZZLE = "Puzzle"
    RACING = "Racing"
    SIMULATION = "Simulation"
    HORROR = "Horror"
    FIGHTING = "Fighting"
    SURVIVAL = "Survival"
    MMO = "MMO"
    PLATFORMER = "Platformer"
    SANDBOX = "Sandbox"

class Platform(str, Enum):
    PC = "PC"
    PLAYSTATION = "PlayStation"
    XBOX = "Xbox"
    NINTENDO = "Nintendo"
    MOBILE = "Mobile"
    VR = "VR"

class AgeRating(str, Enum):
    EVERYONE = "Everyone"
    E10 = "E10+"
    TEEN = "Teen"
    MATURE = "Mature"
    ADULTS_ONLY = "Adults Only"

class Edition(str, Enum):
    STANDARD = "Standard"
    DELUXE = "Deluxe"
    COLLECTOR = "Collector"
    GOLD = "Gold"
    ULTIMATE = "Ultimate"

class SystemSpec(BaseModel):
    os: Optional[str] = None
    processor: Optional[str] = None
    memory: Optional[str] = None
    graphics: Optional[str] = None
    storage: Optional[str] = None

class SystemRequirements(BaseModel):
    minimum: Optional[SystemSpec] = None
    recommended: Optional[SystemSpec] = None

class Language(BaseModel):
    name: str = Field(..., min_length=1)
    interface: bool = False
    audio: bool = False
    subtitles: bool = False

class GameCreate(BaseModel):
    """Game attributes layered on top of a product.

    Price, stock and images stay on the product record.
    """
    genres: List[Genre] = Field(..., min_length=1)
    platforms: List[Platform] = Field(..., min_length=1)
    developer: str = Field(..., min_length=1)
    publisher: str = Field(..., min_length=1)
    release_date: date
    age_rating: AgeRating
    edition: Edition = Edition.STANDARD
    multiplayer: bool = False
    online_features: bool = False
    dlc_available: bool = False
    achievements: bool = False
    cloud_saves: bool = False
    metacritic_score: Optional[int] = Field(None, ge=0, le=100)
    average_playtime: Optional[float] = Field(None, ge=0)  # hours
    system_requirements: Optional[SystemRequirements] = None
    languages: List[Language] = Field(default_factory=list)

class Game(GameCreate, TimeStampedModel):
    """Stored game record"""
    game_id: int
    product_id: int
