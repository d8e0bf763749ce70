"""
Runtime configuration.

Values come from environment variables (case-insensitive) or a local .env
file. Leaving MONGODB_URI unset runs the API on the in-memory store.
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: Optional[str] = Field(None, description="MongoDB connection string")
    db_name: str = Field("afterschool", description="Database name")
    mongo_timeout_ms: int = Field(2000, ge=1, description="Server selection timeout")

    port: int = Field(8080, description="HTTP port for uvicorn")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    jwt_secret: SecretStr = Field(SecretStr("dev-only-secret-change-me-before-deploying"), description="HMAC key for bearer tokens")
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = Field(120, ge=1)

    seed_on_startup: bool = True
    default_spaces: int = Field(10, ge=0, description="Spaces restored on every startup reset")
    demo_user: Optional[str] = None
    demo_password: Optional[SecretStr] = None

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
