# Settings - environment/.env configuration, loaded once at startup.
# Created: 2026-10-19
#
# Request handlers never read the environment; create_app() receives a
# Settings instance and builds the storage backend from it.

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Storage zone selector -> S3-compatible region name
ZONE_REGIONS: dict[str, str] = {
    "z0": "cn-east-1",
    "z1": "cn-north-1",
    "z2": "cn-south-1",
    "na0": "us-north-1",
    "as0": "ap-southeast-1",
}

_BACKEND_ALIASES: dict[str, str] = {
    "local": "local",
    "fs": "local",
    "filesystem": "local",
    "object_store": "object_store",
    "object-store": "object_store",
    "s3": "object_store",
    "qiniu": "object_store",
}


class Settings(BaseSettings):
    """soundshelf configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    backend: Literal["local", "object_store"] = Field(
        default="local", validation_alias=AliasChoices("SOUNDSHELF_BACKEND")
    )

    # Object store
    access_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SOUNDSHELF_ACCESS_KEY", "QINIU_ACCESS_KEY"),
    )
    secret_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SOUNDSHELF_SECRET_KEY", "QINIU_SECRET_KEY"),
    )
    bucket: str | None = Field(
        default=None, validation_alias=AliasChoices("SOUNDSHELF_BUCKET", "QINIU_BUCKET")
    )
    domain: str | None = Field(
        default=None, validation_alias=AliasChoices("SOUNDSHELF_DOMAIN", "QINIU_DOMAIN")
    )
    zone: str = Field(default="z0", validation_alias=AliasChoices("SOUNDSHELF_ZONE", "QINIU_ZONE"))
    endpoint_url: str | None = Field(
        default=None, validation_alias=AliasChoices("SOUNDSHELF_ENDPOINT_URL")
    )

    # Local filesystem
    storage_path: Path = Field(
        default=Path("storage"),
        validation_alias=AliasChoices("SOUNDSHELF_STORAGE_PATH", "STORAGE_PATH"),
    )

    # Server
    host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("SOUNDSHELF_HOST"))
    port: int = Field(default=3000, validation_alias=AliasChoices("SOUNDSHELF_PORT", "PORT"))
    log_level: str = Field(
        default="INFO", validation_alias=AliasChoices("SOUNDSHELF_LOG_LEVEL")
    )

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: object) -> object:
        if isinstance(value, str):
            return _BACKEND_ALIASES.get(value.strip().lower(), value)
        return value

    @classmethod
    def load(cls) -> Settings:
        return cls()

    @property
    def region(self) -> str:
        zone = (self.zone or "z0").strip().lower()
        return ZONE_REGIONS.get(zone, zone)

    @property
    def resolved_endpoint_url(self) -> str:
        return self.endpoint_url or f"https://s3.{self.region}.qiniucs.com"

    def missing_object_store_fields(self) -> list[str]:
        """Names of required object-store settings that are unset."""
        required = {
            "access_key": self.access_key,
            "secret_key": self.secret_key,
            "bucket": self.bucket,
            "domain": self.domain,
        }
        return [name for name, value in required.items() if not value]
