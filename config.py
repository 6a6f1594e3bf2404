from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    app_name: str = "Innerview API"

    # Banco de dados
    database_url: str = "sqlite:///./innerview.db"
    database_echo: bool = False
    seed_database: bool = False

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3002", "http://127.0.0.1:3002"]

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
