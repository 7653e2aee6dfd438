from __future__ import annotations

from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    MAX_REQUEST_BODY_BYTES: int = 1_048_576

    DEBUG: bool = False
    APP_ENV: str = Field(default="development", validation_alias=AliasChoices("APP_ENV", "NODE_ENV"))
    SECURITY_STRICT_MODE: bool = False
    PORT: int = 8000

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    DOCS_TITLE: str = "App Bundle API"
    CORS_ALLOW: str = "*"
    CORS_ALLOW_METHODS: str = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
    CORS_ALLOW_HEADERS: str = "*"

    @staticmethod
    def _parse_csv(value: str) -> List[str]:
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def cors_allow_list(self) -> List[str]:
        values = self._parse_csv(self.CORS_ALLOW)
        return values or ["*"]

    @property
    def cors_allow_methods_list(self) -> List[str]:
        values = self._parse_csv(self.CORS_ALLOW_METHODS)
        return values or ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

    @property
    def cors_allow_headers_list(self) -> List[str]:
        values = self._parse_csv(self.CORS_ALLOW_HEADERS)
        return values or ["*"]

    @property
    def app_env(self) -> str:
        value = (self.APP_ENV or "").strip().lower()
        return value or "development"

    @property
    def strict_security_mode(self) -> bool:
        if bool(self.SECURITY_STRICT_MODE):
            return True
        return self.app_env in {"prod", "production"}
