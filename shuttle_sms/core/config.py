"""
Configuration management for the Shuttle SMS application.
"""

from pydantic_settings import BaseSettings
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Shuttle SMS"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    CORS_ORIGINS: List[str] = ["*"]  # In production, specify exact origins
    STATIC_DIR: str = os.getenv("STATIC_DIR", "public")

    # Brand SMS gateway
    SMS_GATEWAY_URL: str = os.getenv("SMS_GATEWAY_URL", "https://api.brandsms.vn/api/SMSBrandname/SendSMS")
    SMS_GATEWAY_TOKEN: str = os.getenv("SMS_GATEWAY_TOKEN", "")
    SMS_BRAND: str = os.getenv("SMS_BRAND", "")
    SMS_GATEWAY_TIMEOUT: float = float(os.getenv("SMS_GATEWAY_TIMEOUT", "30"))

    # Line parsing: "freetext" or "delimited"
    LINE_PARSER: str = os.getenv("LINE_PARSER", "freetext")
    COLUMN_SEPARATOR: str = os.getenv("COLUMN_SEPARATOR", "\t")

    # Message template: "unit" (14h) or "plain" (14)
    MESSAGE_TEMPLATE: str = os.getenv("MESSAGE_TEMPLATE", "unit")
    HOTLINE: str = os.getenv("HOTLINE", "19001997")

    # Phone numbers
    TRUNK_PREFIX: str = os.getenv("TRUNK_PREFIX", "0")
    COUNTRY_CODE: str = os.getenv("COUNTRY_CODE", "84")

    # Dispatch: request id "none" or "timestamp"
    REQUEST_ID_MODE: str = os.getenv("REQUEST_ID_MODE", "none")
    SEND_INTERVAL_SEC: float = float(os.getenv("SEND_INTERVAL_SEC", "3.0"))
    SEND_JITTER_SEC: float = float(os.getenv("SEND_JITTER_SEC", "0.0"))

    # Send log: "json" or "sql"
    LOG_BACKEND: str = os.getenv("LOG_BACKEND", "json")
    LOG_FILE: str = os.getenv("LOG_FILE", "sms-log.json")
    LOG_DATABASE_URL: str = os.getenv("LOG_DATABASE_URL", "sqlite:///sms-log.db")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
