"""Runtime configuration, built once at startup and handed to the app factory."""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Store Ratings API"
    environment: str = "development"
    debug: bool = False

    database_url: str = "sqlite:///./store_ratings.db"
    # create tables on startup; use migration/init_db.py for managed databases
    create_schema: bool = True

    jwt_secret: str = "dev-secret"
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = 60 * 60 * 24  # 1 day

    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
