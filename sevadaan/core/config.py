# sevadaan/core/config.py

from functools import lru_cache
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./sevadaan.db"

    # Managed Postgres poolers usually need TLS; set DB_SSL_VERIFY=false for self-signed certs
    DB_SSL: bool = False
    DB_SSL_VERIFY: bool = True

    ENV: str = "dev"  # "dev" or "prod"
    LOG_LEVEL: str = "INFO"

    # --- AUTH ---
    SECRET_KEY: str = "dev-secret-key-change-me"
    REFRESH_SECRET_KEY: str = "dev-refresh-secret-key-change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    OTP_EXPIRE_MINUTES: int = 15

    SUPER_ADMIN_EMAIL: str | None = None
    SUPER_ADMIN_PASSWORD: str | None = None
    SUPER_ADMIN_NAME: str | None = "Super Admin"

    # --- EMAIL ---
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    EMAILS_FROM_EMAIL: str = "no-reply@sevadaan.org"
    EMAILS_FROM_NAME: str = "Sevadaan"
    FRONTEND_URL: str = "http://localhost:3000"

    # Comma separated
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # --- RATE LIMITING ---
    REDIS_URL: str | None = None
    RATE_LIMIT_ENABLED: bool = True

    # --- STORAGE ---
    STORAGE_PROVIDER: str = "local"  # "local" or "supabase"
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE_MB: int = 10
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    SUPABASE_BUCKET: str = "ngo-documents"

    # --- PAYMENTS ---
    PAYMENT_PROVIDER: str = "razorpay"  # "razorpay" or "stripe"
    RAZORPAY_KEY_ID: str | None = None
    RAZORPAY_KEY_SECRET: str | None = None
    RAZORPAY_WEBHOOK_SECRET: str | None = None
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None

    # --- INTEGRATION WEBHOOKS ---
    INTEGRATION_WEBHOOK_SECRET: str | None = None
    # "hmac" verifies a SHA-256 HMAC; "length" keeps the old placeholder check
    INTEGRATION_SIGNATURE_MODE: str = "hmac"

    @field_validator("STORAGE_PROVIDER", "PAYMENT_PROVIDER", "INTEGRATION_SIGNATURE_MODE", "ENV")
    @classmethod
    def lower_choice(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def is_dev(self) -> bool:
        return self.ENV == "dev"

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    def validate_for_production(self) -> None:
        """
        Fails fast when a production deployment still runs on development defaults.
        """
        if self.ENV != "prod":
            return

        problems = []
        if len(self.SECRET_KEY) < 32:
            problems.append("SECRET_KEY must be at least 32 characters")
        if len(self.REFRESH_SECRET_KEY) < 32:
            problems.append("REFRESH_SECRET_KEY must be at least 32 characters")
        if self.DATABASE_URL.startswith("sqlite"):
            problems.append("DATABASE_URL must point to a server database in production")
        if self.INTEGRATION_SIGNATURE_MODE not in ("hmac", "length"):
            problems.append("INTEGRATION_SIGNATURE_MODE must be 'hmac' or 'length'")

        if problems:
            raise RuntimeError("Invalid production configuration: " + "; ".join(problems))

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
