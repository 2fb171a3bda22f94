from functools import lru_cache
from typing import List, Optional
import os

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


MPESA_BASE_URLS = {
    "sandbox": "https://sandbox.safaricom.co.ke",
    "production": "https://api.safaricom.co.ke",
}


class Settings(BaseSettings):
    """Application configuration settings loaded from environment variables."""

    # Service settings
    PROJECT_NAME: str = "Loris Kenya Gateway"
    ENV: str = "production"
    DEBUG: bool = False
    PORT: int = 5000

    # CORS settings, a single origin or a comma-separated list
    FRONTEND_URL: str = "*"

    # Logging settings
    LOG_LEVEL: str = "INFO"
    ENABLE_STRUCTURED_LOGGING: bool = True

    # Outbound HTTP settings
    HTTP_TIMEOUT: float = 10.0  # seconds

    # Backblaze B2 storage settings
    B2_KEY_ID: Optional[str] = None
    B2_APPLICATION_KEY: Optional[str] = None
    B2_BUCKET_NAME: Optional[str] = None
    B2_BUCKET_ID: Optional[str] = None
    B2_AUTH_URL: str = "https://api.backblazeb2.com"
    B2_PUBLIC_URL_BASE: str = "https://f003.backblazeb2.com"

    # Upload settings
    UPLOAD_TMP_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024
    MAX_UPLOAD_FILES: int = 10

    # M-PESA Daraja settings
    MPESA_CONSUMER_KEY: Optional[str] = None
    MPESA_CONSUMER_SECRET: Optional[str] = None
    MPESA_SHORTCODE: Optional[str] = None
    MPESA_PASSKEY: Optional[str] = None
    MPESA_CALLBACK_URL: str = "https://your-backend-url.railway.app/api/mpesa/callback"
    MPESA_ENVIRONMENT: str = "sandbox"
    MPESA_ACCOUNT_REFERENCE: str = "Loris Kenya"
    MPESA_UTC_OFFSET_HOURS: int = 3

    @field_validator("MPESA_ENVIRONMENT")
    @classmethod
    def check_mpesa_environment(cls, v: str) -> str:
        """Only the Daraja sandbox and production hosts are known."""
        v = v.strip().lower()
        if v not in MPESA_BASE_URLS:
            raise ValueError(f"MPESA_ENVIRONMENT must be one of {sorted(MPESA_BASE_URLS)}")
        return v

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from the FRONTEND_URL string."""
        return [origin.strip() for origin in self.FRONTEND_URL.split(",") if origin.strip()]

    @property
    def mpesa_base_url(self) -> str:
        return MPESA_BASE_URLS[self.MPESA_ENVIRONMENT]

    @property
    def is_development(self) -> bool:
        return self.ENV.lower() == "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


def load_env_file(env_file: str = ".env") -> None:
    """
    Load environment variables from specified .env file.

    Args:
        env_file: Path to the .env file. Defaults to ".env".
    """
    env_path = os.path.join(os.getcwd(), env_file)
    if os.path.exists(env_path):
        load_dotenv(env_path)


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings with caching for efficiency.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
