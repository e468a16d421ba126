# tiretrack/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "TireTrack Auth API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Storage Settings ("memory" or "sql")
    STORAGE_BACKEND: str = "sql"
    DATABASE_URL: str = "sqlite:///./tiretrack.db"

    # OTP Settings
    OTP_CODE_LENGTH: int = 6
    OTP_TTL_SECONDS: int = 5 * 60
    OTP_COOLDOWN_SECONDS: int = 60
    OTP_MAX_ATTEMPTS: int = 5
    # Only honored outside production
    OTP_DEV_BYPASS_CODE: Optional[str] = None

    # Session Settings
    SESSION_TTL_DAYS: int = 30
    SESSION_COOKIE_NAME: str = "tireoff_session"

    # SMS Settings ("console" or "twilio")
    SMS_PROVIDER: str = "console"
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_FROM_NUMBER: str = ""
    SMS_MESSAGE_TEMPLATE: str = "Your TireTrack verification code is {code}"

    # CORS Settings
    ALLOWED_ORIGINS: str = "*"

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    REDIS_URL: Optional[str] = None

    # Audit Settings: key for hashing phone numbers in audit lines
    AUDIT_HASH_SECRET: Optional[str] = None

    # Helper methods for list envs
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def session_ttl_seconds(self) -> int:
        return self.SESSION_TTL_DAYS * 24 * 60 * 60

@lru_cache()
def get_settings() -> Settings:
    return Settings()
