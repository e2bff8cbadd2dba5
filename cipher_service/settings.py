from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cipher_service.errors import ConfigurationError

_ENVIRONMENTS = {"development", "test", "staging", "production"}
_ENVIRONMENT_ALIASES = {"prod": "production", "stage": "staging", "testing": "test"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    # =========================
    # Environment
    # =========================
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        validation_alias=AliasChoices("environment", "node_env"),
    )

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, value: object) -> object:
        # Node-style names ("dev", "local", "prod", ...) must not block startup.
        if not isinstance(value, str):
            return value
        normalized = value.strip().lower()
        if normalized in _ENVIRONMENTS:
            return normalized
        return _ENVIRONMENT_ALIASES.get(normalized, "development")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    # =========================
    # API
    # =========================
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=3000, validation_alias=AliasChoices("api_port", "port"))
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # =========================
    # Cipher
    # =========================
    secret_key: str = Field(min_length=1)
    secret_iv: str = Field(min_length=1)
    # "ecnryption_method" is the variable name older deployments were configured with.
    encryption_method: str = Field(
        min_length=1,
        validation_alias=AliasChoices("encryption_method", "ecnryption_method"),
    )


def load_settings(env_file: str | None = ".env") -> Settings:
    try:
        return Settings(_env_file=env_file)
    except ValidationError as exc:
        fields = sorted({str(error["loc"][0]).upper() for error in exc.errors() if error["loc"]})
        raise ConfigurationError(f"Invalid or missing configuration: {', '.join(fields)}") from exc


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
