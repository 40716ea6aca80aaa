from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path

from waitlist.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    # Environment: "production" hides the interactive docs
    APP_ENV: str = "development"
    PORT: int = 3000

    # Storage backend: "sql" (SQLAlchemy URL, SQLite file by default) or "supabase"
    DATABASE_BACKEND: str = "sql"
    DATABASE_URL: str = "sqlite:///./waitlist.db"

    # Supabase (managed backend)
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_TABLE: str = "waitlist"

    # Mail: "smtp", "resend" or "log"
    MAIL_TRANSPORT: str = "smtp"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_STARTTLS: bool = True
    RESEND_API_KEY: str = ""
    MAIL_FROM: str = "Waitlist <no-reply@example.com>"
    MAIL_SUBJECT: str = "You're on the waiting list ✨"

    # Base of the confirmation links sent by email
    PUBLIC_URL: str = "http://localhost:3000"

    # Confirmation tokens (bytes of randomness, hex encoded)
    TOKEN_BYTES: int = 32

    # Redis (for rate limiting)
    REDIS_URL: str = "redis://localhost:6379"
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_MAX_REQUESTS: int = 10
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    # Static landing page
    STATIC_DIR: str = "public"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    class Config:
        env_file = Path(__file__).parent.parent.parent / ".env"
        env_file_encoding = 'utf-8'
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.strip().lower() == "production"

    def missing_connectivity(self) -> List[str]:
        """Names of mandatory variables that are unset for the selected backend and transport."""
        required: List[str] = []
        # Unknown selector values are reported as missing too
        missing: List[str] = []

        backend = self.DATABASE_BACKEND.strip().lower()
        if backend == "supabase":
            required += ["SUPABASE_URL", "SUPABASE_KEY"]
        elif backend == "sql":
            required.append("DATABASE_URL")
        else:
            missing.append("DATABASE_BACKEND")

        transport = self.MAIL_TRANSPORT.strip().lower()
        if transport == "smtp":
            required.append("SMTP_HOST")
        elif transport == "resend":
            required.append("RESEND_API_KEY")
        elif transport != "log":
            missing.append("MAIL_TRANSPORT")

        missing += [name for name in required if not str(getattr(self, name)).strip()]
        return missing

    def require_connectivity(self) -> None:
        missing = self.missing_connectivity()
        if missing:
            raise ConfigurationError(missing)

    def connectivity_report(self) -> dict:
        """Which connectivity variables are set, without their values."""
        names = ["DATABASE_BACKEND", "DATABASE_URL", "SUPABASE_URL", "SUPABASE_KEY",
                 "MAIL_TRANSPORT", "SMTP_HOST", "RESEND_API_KEY", "PUBLIC_URL"]
        return {name: bool(str(getattr(self, name)).strip()) for name in names}


settings = Settings()
