"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FirestoreConfig(BaseModel):
    """Firestore-specific configuration."""

    project_id: str
    database: str = "(default)"
    credentials_path: Path | None = None
    timeout: float = Field(10.0, gt=0.0, le=120.0, description="Per-call timeout in seconds")

    @field_validator("project_id")
    @classmethod
    def validate_project_id(cls, v: str) -> str:
        """Validate Google Cloud project id format."""
        from ..utils.security import validate_project_id

        if not validate_project_id(v):
            raise ValueError(f"Invalid Google Cloud project id: {v}")
        return v


class StoreConfig(BaseModel):
    """Document store configuration."""

    provider: Literal["memory", "firestore"] = "memory"
    firestore: FirestoreConfig | None = None


class CollectionsConfig(BaseModel):
    """Collection names used in the document store."""

    chats: str = "chats"
    messages: str = "messages"
    listings: str = "listings"

    @field_validator("chats", "messages", "listings")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Collection names are single path segments."""
        if not v or "/" in v:
            raise ValueError(f"Invalid collection name: {v!r}")
        return v


class AuthConfig(BaseModel):
    """Sign-in restrictions."""

    allowed_email_domain: str | None = "edu.rtu.lv"

    @field_validator("allowed_email_domain")
    @classmethod
    def validate_domain(cls, v: str | None) -> str | None:
        """Accept a bare domain such as ``edu.rtu.lv``."""
        if v is None:
            return v
        v = v.strip().lower()
        if not v or "@" in v or " " in v:
            raise ValueError(f"Invalid email domain: {v!r}")
        return v


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("/var/log/campus-market/market.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    file: FileLoggingConfig = FileLoggingConfig()


class MarketConfig(BaseSettings):
    """Root configuration for campus-market."""

    store: StoreConfig = StoreConfig()
    collections: CollectionsConfig = CollectionsConfig()
    auth: AuthConfig = AuthConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="CAMPUS_MARKET_",
        env_file=".env",
        env_nested_delimiter="__",
    )
