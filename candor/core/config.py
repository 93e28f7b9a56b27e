from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    env: str = Field(default="development", alias="APP_ENV")
    host: str = Field(default="0.0.0.0", alias="APP_HOST")
    port: int = Field(default=8000, alias="APP_PORT")
    timezone: str = Field(default="", alias="PRIMARY_TIMEZONE")

    database_url: str = Field(default="sqlite:///./data/candor.db", alias="DATABASE_URL")
    seed_sample_data: bool = Field(default=False, alias="SEED_SAMPLE_DATA")

    # Deployment URL and public key handed to clients; the key is optional on the server side.
    public_url: str = Field(default="http://localhost:8000", alias="CANDOR_PUBLIC_URL")
    public_api_key: str | None = Field(default=None, alias="CANDOR_PUBLIC_API_KEY")

    secret_key: str = Field(default="change-me-in-production", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    anonymous_token_ttl_days: int = Field(default=90, alias="ANONYMOUS_TOKEN_TTL_DAYS")
    privileged_roles: Annotated[frozenset[str], NoDecode] = Field(
        default=frozenset({"manager", "hr", "admin"}), alias="PRIVILEGED_ROLES"
    )

    token_vault_path: Path = Field(default=Path("~/.candor/tokens.json"), alias="TOKEN_VAULT_PATH")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_serialize: bool = Field(default=False, alias="LOG_SERIALIZE")

    @field_validator("privileged_roles", mode="before")
    @classmethod
    def _split_roles(cls, value: Any) -> Any:
        if isinstance(value, str):
            return frozenset(part.strip().lower() for part in value.split(",") if part.strip())
        return value


@lru_cache
def get_settings() -> AppConfig:
    return AppConfig()
