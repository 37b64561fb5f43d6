"""Application configuration"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Origin gate
    allowed_origin: str = "https://charityaron.vercel.app"
    cors_max_age: int = 86400

    # Rate limiting
    rate_limit_max: int = 5
    rate_limit_window_seconds: int = 60 * 60

    # reCAPTCHA
    recaptcha_secret: str = ""
    recaptcha_verify_url: str = "https://www.google.com/recaptcha/api/siteverify"
    min_recaptcha_score: float = 0.5

    # Google Sheets (service account)
    google_service_account_email: str = ""
    google_private_key: str = ""
    google_sheet_id: str = ""
    sheet_range: Optional[str] = None  # Falls back to the form schema's range

    # Form
    form_schema: str = "consultation"

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    http_timeout_seconds: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def normalized_origin(self) -> str:
        """Allowed origin without its trailing slash"""
        return self.allowed_origin.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
