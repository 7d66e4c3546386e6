from enum import Enum


class ProductCategory(str, Enum):
    """Closed set of catalog categories"""
    CPU = "CPU"
    GPU = "GPU"
    MOTHERBOARD = "Motherboard"
    RAM = "RAM"
    STORAGE = "Storage"
    PSU = "PSU"
    COOLING = "Cooling"
    CASE = "Case"
    OS = "OS"
    NETWORKING = "Networking"
    RGB = "RGB"
    CAPTURE_CARD = "CaptureCard"
    MONITOR = "Monitor"
    KEYBOARD = "Keyboard"
    MOUSE = "Mouse"
    MOUSEPAD = "Mousepad"
    HEADSET = "Headset"
    SPEAKERS = "Speakers"
    CONTROLLER = "Controller"
    EXTERNAL_STORAGE = "ExternalStorage"
    VR = "VR"
    STREAMING_GEAR = "StreamingGear"
    MICROPHONE = "Microphone"
    WEBCAM = "Webcam"
    GAMING_CHAIR = "GamingChair"
    GAMING_DESK = "GamingDesk"
    SOUND_CARD = "SoundCard"
    CABLES = "Cables"
    GAMING_LAPTOP = "GamingLaptop"
    GAMES = "Games"
    PC_GAMES = "PCGames"
    CONSOLE_GAMES = "ConsoleGames"
    VR_GAMES = "VRGames"
    PREBUILT_PCS = "Prebuilt PCs"


class Availability(str, Enum):
    """Sale-readiness of a product"""
    IN_STOCK = "In Stock"
    OUT_OF_STOCK = "Out of Stock"
    PREORDER = "Preorder"  # sticky while stock is zero
    DISCONTINUED = "Discontinued"  # only set explicitly

    @property
    def is_marker(self) -> bool:
        """States that are set by an admin rather than derived from stock"""
        return self in (Availability.PREORDER, Availability.DISCONTINUED)
