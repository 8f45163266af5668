# reading_admin/config.py
from pydantic_settings import BaseSettings
from typing import Optional
from pydantic import Field

class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30)

    DATABASE_URL: str = Field("sqlite+aiosqlite:///./reading_admin.db")
    SQLALCHEMY_DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = Field(False)

    LOG_LEVEL: str = Field("INFO")

    # Analytics cache: 15 minutes for story, member and list-level metrics
    CACHE_TTL_SECONDS: int = Field(900)

    # Reading-history rows below this progress (percent) count as a bounce
    BOUNCE_PROGRESS_THRESHOLD: float = Field(10.0)

    TRENDING_WINDOW_DAYS: int = Field(14)
    TRENDING_HALF_LIFE_DAYS: float = Field(7.0)
    TRENDING_THRESHOLD: float = Field(75.0)

    DEFAULT_LEADERBOARD_LIMIT: int = Field(10)

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        """
        Returns the async driver URL:
          - postgresql://... → postgresql+asyncpg://...
          - anything else is used as-is
        """
        url = self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL
        if url.startswith("postgresql://") and "+asyncpg" not in url:
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

settings = Settings()
