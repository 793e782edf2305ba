import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv(encoding="utf-8")

class Settings(BaseSettings):
    # App
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "plain")  # plain / json

    # API
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", 8000))

    # FBR Digital Invoicing (process-wide defaults, overridable per tenant/order)
    FBR_BASE_URL: str = os.getenv("FBR_BASE_URL", "")
    FBR_SANDBOX_TOKEN: str = os.getenv("FBR_SANDBOX_TOKEN", "")
    FBR_CONNECT_TIMEOUT: float = float(os.getenv("FBR_CONNECT_TIMEOUT", 10.0))
    FBR_READ_TIMEOUT: float = float(os.getenv("FBR_READ_TIMEOUT", 30.0))
    FBR_LIVE_SALE_TYPE_LOOKUP: bool = os.getenv("FBR_LIVE_SALE_TYPE_LOOKUP", "true").lower() in ("1", "true", "yes")
    FBR_VALIDATE_RETRIES: int = int(os.getenv("FBR_VALIDATE_RETRIES", 0))  # 0 = no retry

    # Seller identity fallback (used when neither the order nor the caller supplies one)
    FBR_SELLER_NTNCNIC: str = os.getenv("FBR_SELLER_NTNCNIC", "1234567890123")
    FBR_SELLER_BUSINESS_NAME: str = os.getenv("FBR_SELLER_BUSINESS_NAME", "Your Business Name")
    FBR_SELLER_PROVINCE: str = os.getenv("FBR_SELLER_PROVINCE", "Punjab")
    FBR_SELLER_ADDRESS: str = os.getenv("FBR_SELLER_ADDRESS", "Your Business Address")

    # Post-submission webhook (disabled when FBR_WEBHOOK_URL is empty)
    FBR_WEBHOOK_URL: str = os.getenv("FBR_WEBHOOK_URL", "")
    FBR_WEBHOOK_SECRET: str = os.getenv("FBR_WEBHOOK_SECRET", "")
    FBR_WEBHOOK_TIMEOUT: float = float(os.getenv("FBR_WEBHOOK_TIMEOUT", 10.0))

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore unknown keys instead of raising
    }

settings = Settings()
