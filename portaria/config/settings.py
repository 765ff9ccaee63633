"""
Application settings using pydantic-settings

Loads environment variables from .env.local file
"""

from functools import lru_cache
from typing import List

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Local store
    store_path: str = Field(
        default="data/portaria.json",
        alias="STORE_PATH",
        description="JSON file holding the visitors and visits keys",
    )

    # Environment
    env: str = Field(
        default="development",
        alias="ENV",
        description="Environment (development, staging, production)",
    )

    # Reports
    export_filename_prefix: str = Field(
        default="relatorio_visitantes",
        alias="EXPORT_FILENAME_PREFIX",
        description="Prefix of the exported CSV report filename",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    # CORS Origins
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        alias="CORS_ORIGINS",
        description="Comma-separated allowed CORS origins",
    )

    # API Server Configuration
    api_host: str = Field(default="127.0.0.1", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @computed_field
    @property
    def cors_origins(self) -> List[str]:
        """Allowed CORS origins parsed from CORS_ORIGINS"""
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings

    Returns:
        Settings: Application settings instance
    """
    return Settings()
