from decimal import Decimal
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_NAME: str = "SplitEase Backend"
    DATABASE_URL: str = "sqlite+aiosqlite:///./splitease.db"
    DB_ECHO: bool = False
    LOG_LEVEL: str = "INFO"
    SETTLEMENT_EPSILON: Decimal = Decimal("0.01")

    class Config:
        env_file = ".env"

settings = Settings()
