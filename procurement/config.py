from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: str = "5432"
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_NAME: str = "angadi_procurement"
    DATABASE_ECHO: bool = False

    # Buyer's GST state code (33 = Tamil Nadu)
    HOME_STATE_CODE: str = "33"
    TIMEZONE: str = "Asia/Kolkata"

    # Logging
    LOG_FILE: str = "procurement.log"
    LOG_LEVEL: str = "DEBUG"
    LOG_ROTATION: str = "500 MB"

    # Document numbering
    PO_PREFIX: str = "PO"
    PAYMENT_PREFIX: str = "PAY"
    BATCH_PREFIX: str = "BATCH"

    # Money comparisons are done at paise precision
    AMOUNT_TOLERANCE: float = 0.005

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
