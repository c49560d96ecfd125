from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Web server
    SERVICE_HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    CORS_ALLOW_ORIGINS: str = Field(default="*", description="Comma separated origins, or *")

    # Database (MongoDB). Without a URL records are kept in process memory.
    DATABASE_URL: Optional[str] = Field(default=None)
    DATABASE_NAME: str = Field(default="daycare")

    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        if self.CORS_ALLOW_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


settings = Settings()
