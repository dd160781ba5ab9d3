# chatconnect/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "ChatConnect API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Application identifier; every document path is namespaced under artifacts/{app_id}/
    app_id: str = os.getenv("APP_ID", "chatconnect-app")

    # Document store settings
    # How many times a conflicting transaction is re-run before giving up
    transaction_max_attempts: int = int(os.getenv("TRANSACTION_MAX_ATTEMPTS", "5"))
    # Start the store in offline mode (writes refused) - mainly useful for demos/tests
    store_offline: bool = os.getenv("STORE_OFFLINE", "false").lower() in ("true", "1", "yes")

    # Message listing
    messages_page_size: int = int(os.getenv("MESSAGES_PAGE_SIZE", "200"))

settings = Settings()  # Instantiate configuration
