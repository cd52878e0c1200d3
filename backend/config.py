# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, List, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./configurator_audit.db"
    CATALOG_PATH: str = str(Path(__file__).parent / "data" / "catalog.json")

    # External cart service (Shopify-style AJAX cart)
    CART_API_URL: str = "http://127.0.0.1:9292"
    CART_ADD_PATH: str = "/cart/add.js"
    CART_READ_PATH: str = "/cart.js"

    MAX_SLOTS: int = 15
    ROLE_ORDER: List[str] = ["ring-mount", "mag-ring", "adapter", "phone-case"]

    # Transient feedback durations (seconds)
    SUCCESS_DISPLAY_SECONDS: float = 2.0
    ERROR_DISPLAY_SECONDS: float = 2.5
    NOTICE_DISPLAY_SECONDS: float = 2.0

    # In-memory configurator sessions untouched for this long are dropped
    SESSION_IDLE_SECONDS: float = 1800.0

    CASCADE_SLOT_REMOVAL: bool = False
    CLEAR_SELECTION_ON_SUCCESS: bool = False

    CURRENCY_SYMBOL: str = "$"
    MONEY_DECIMALS: int = 2

    FRONTEND_URL: Optional[str] = None

    class Config:
        env_file: ClassVar[str] = str(env_path)

settings = Settings()
