from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(15, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    paystack_secret_key: Optional[str] = Field(None, alias="PAYSTACK_SECRET_KEY")
    paystack_public_key: Optional[str] = Field(None, alias="PAYSTACK_PUBLIC_KEY")
    paystack_base_url: str = Field("https://api.paystack.co", alias="PAYSTACK_BASE_URL")
    paystack_timeout_seconds: float = Field(10.0, alias="PAYSTACK_TIMEOUT_SECONDS")

    # Attempts for the fee read-compute-write sequence before giving up with a 503
    reconcile_max_attempts: int = Field(3, alias="RECONCILE_MAX_ATTEMPTS")
    currency_code: str = Field("NGN", alias="CURRENCY_CODE")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
