from functools import lru_cache
import json
import logging
import os
from typing import Any, Literal

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


def _parse_list(v: Any) -> Any:
    if not isinstance(v, str):
        return v
    stripped = v.strip()
    if stripped.startswith("[") and stripped.endswith("]"):
        try:
            parsed = json.loads(stripped)
            if isinstance(parsed, list):
                return parsed
        except json.JSONDecodeError:
            pass
    sep = "," if "," in v else ";"
    return [item.strip() for item in v.split(sep) if item.strip()]


class RedisConfig(BaseModel):
    REDIS_URL: str = "redis://localhost:6379/0"

    model_config = ConfigDict(extra="ignore")


class SentryConfig(BaseModel):
    SENTRY_DSN: str | None = None
    SENTRY_ENV: str = "development"
    SENTRY_ENABLED: bool = False

    model_config = ConfigDict(extra="ignore")


class JWTConfig(BaseModel):
    ACCESS_TOKEN_SECRET: str = Field(min_length=1)
    REFRESH_TOKEN_SECRET: str = Field(min_length=1)

    ALGORITHM: str = "HS256"

    ACCESS_TOKEN_EXPIRE_SECONDS: int = Field(20, gt=0)
    REFRESH_TOKEN_EXPIRE_SECONDS: int = Field(60, gt=0)
    TOKEN_LEEWAY_SECONDS: int = Field(0, ge=0)

    # Off by default: refresh keeps the same refresh token until logout/expiry
    REFRESH_TOKEN_ROTATION: bool = False

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def validate_distinct_secrets(self) -> "JWTConfig":
        if self.ACCESS_TOKEN_SECRET == self.REFRESH_TOKEN_SECRET:
            raise ValueError("Access and refresh token secrets must differ")
        return self


class CookieConfig(BaseModel):
    COOKIE_SECURE: bool = True
    COOKIE_HTTPONLY: bool = True
    COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "none"
    COOKIE_PATH: str = "/"
    COOKIE_DOMAIN: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("COOKIE_SAMESITE", mode="before")
    @classmethod
    def normalize_samesite(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class RegistryConfig(BaseModel):
    REGISTRY_BACKEND: Literal["memory", "redis"] = "memory"
    REGISTRY_KEY_PREFIX: str = "refresh_token"

    model_config = ConfigDict(extra="ignore")


class IdentityUser(BaseModel):
    id: str
    username: str
    password_hash: str

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class IdentityConfig(BaseModel):
    IDENTITY_USERS: list[IdentityUser] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("IDENTITY_USERS", mode="before")
    @classmethod
    def parse_users(cls, v: Any) -> Any:
        if isinstance(v, str):
            if not v.strip():
                return []
            return json.loads(v)
        return v


class AppConfig(BaseModel):
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    TESTING: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_LEVEL_FILE: str = "WARNING"

    CORS_ALLOWED_ORIGINS: list[str] = Field(["https://127.0.0.1:5500"])
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOWED_METHODS: list[str] = Field(["*"])
    CORS_ALLOWED_HEADERS: list[str] = Field(["*"])
    CORS_EXPOSE_HEADERS: list[str] = Field([])

    PROJECT_NAME: str = "Token Session Service"

    HOST: str = "0.0.0.0"
    PORT: int = 3007

    model_config = ConfigDict(extra="ignore")

    @field_validator(
        "CORS_ALLOWED_ORIGINS",
        "CORS_ALLOWED_METHODS",
        "CORS_ALLOWED_HEADERS",
        "CORS_EXPOSE_HEADERS",
        mode="before",
    )
    @classmethod
    def parse_cors_list(cls, v: Any) -> Any:
        return [str(item) for item in _parse_list(v)]


class Config(BaseModel):
    app: AppConfig
    jwt: JWTConfig
    cookies: CookieConfig
    registry: RegistryConfig
    redis: RedisConfig
    sentry: SentryConfig
    identity: IdentityConfig

    model_config = ConfigDict(extra="ignore")


@lru_cache
def get_settings() -> Config:
    """
    Cached settings factory.
    Override in tests via monkeypatching or dependency overrides.
    """
    env_filename = ".env.test" if os.getenv("TESTING") == "true" else ".env"
    env_file_values = dotenv_values(env_filename)
    merged_env: dict[str, Any] = {
        k: v
        for k, v in {**env_file_values, **dict(os.environ)}.items()
        if v is not None
    }

    settings = Config(
        app=AppConfig(**merged_env),
        jwt=JWTConfig(**merged_env),
        cookies=CookieConfig(**merged_env),
        registry=RegistryConfig(**merged_env),
        redis=RedisConfig(**merged_env),
        sentry=SentryConfig(**merged_env),
        identity=IdentityConfig(**merged_env),
    )
    logger.info(
        "Settings loaded from %s (registry=%s)",
        env_filename,
        settings.registry.REGISTRY_BACKEND,
    )
    return settings


config = get_settings()
