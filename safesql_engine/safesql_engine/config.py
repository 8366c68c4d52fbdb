"""Gateway configuration loaded from environment variables."""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from safesql_engine.errors import UnsupportedBackendError
from safesql_engine.sql_toolkit import Dialect

logger = logging.getLogger(__name__)


class BackendType(str, Enum):
    EMBEDDED = "embedded"
    NETWORKED = "networked"


_BACKEND_ALIASES: dict[str, BackendType] = {
    "embedded": BackendType.EMBEDDED,
    "sqlite": BackendType.EMBEDDED,
    "networked": BackendType.NETWORKED,
    "postgres": BackendType.NETWORKED,
    "postgresql": BackendType.NETWORKED,
}

_BACKEND_DIALECTS: dict[BackendType, Dialect] = {
    BackendType.EMBEDDED: Dialect.SQLITE,
    BackendType.NETWORKED: Dialect.POSTGRES,
}


def resolve_backend_type(value: str) -> BackendType:
    """Map a configured backend name (or alias) to a :class:`BackendType`.

    Raises:
        UnsupportedBackendError: For any name that is not a known alias.
    """
    backend = _BACKEND_ALIASES.get(value.strip().lower())
    if backend is None:
        raise UnsupportedBackendError(value)
    return backend


class GatewayConfig(BaseModel):
    """Immutable runtime configuration shared by every request."""

    model_config = ConfigDict(frozen=True)

    backend_type: BackendType
    dialect: Dialect
    whitelist: frozenset[str]
    row_cap: int = Field(..., gt=0)

    def describe(self) -> dict[str, object]:
        """The public config resource: backend type, sorted whitelist and row cap."""
        return {
            "backendType": self.backend_type.value,
            "whitelist": sorted(self.whitelist),
            "rowCap": self.row_cap,
        }


class Settings(BaseSettings):
    """Application settings loaded from environment variables with SAFESQL_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SAFESQL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Backend
    backend_type: str = BackendType.EMBEDDED.value
    database_path: str = "./example.db"
    database_url: SecretStr | None = None
    statement_timeout_ms: int = Field(default=30_000, gt=0)

    # Policy
    safe_views: str = "safe_users_v"
    max_rows: int = Field(default=200, gt=0)

    # Logging
    debug: bool = False
    structured_logging: bool = False

    @field_validator("database_url", mode="before")
    @classmethod
    def mask_url_in_repr(cls, v: str | None) -> SecretStr | None:
        if v is None or v == "":
            return None
        if isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @model_validator(mode="after")
    def require_url_for_networked(self) -> Settings:
        if _BACKEND_ALIASES.get(self.backend_type.strip().lower()) is BackendType.NETWORKED and self.database_url is None:
            raise ValueError("SAFESQL_DATABASE_URL is required for the networked backend")
        return self

    @property
    def whitelist(self) -> frozenset[str]:
        """Comma-separated ``safe_views`` as a lowercase set, blanks dropped."""
        return frozenset(part.strip().lower() for part in self.safe_views.split(",") if part.strip())

    def to_gateway_config(self) -> GatewayConfig:
        """Freeze these settings into the :class:`GatewayConfig` used per request.

        Raises:
            UnsupportedBackendError: If ``backend_type`` is not recognised.
        """
        backend = resolve_backend_type(self.backend_type)
        return GatewayConfig(
            backend_type=backend,
            dialect=_BACKEND_DIALECTS[backend],
            whitelist=self.whitelist,
            row_cap=self.max_rows,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info(
            "Loaded settings: backend=%s, %d whitelisted relation(s), row cap %d",
            settings.backend_type,
            len(settings.whitelist),
            settings.max_rows,
        )

    return settings
