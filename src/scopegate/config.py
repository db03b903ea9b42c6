"""
Gateway settings.

Settings can be built in code for tests and are read from ``SCOPEGATE_*``
environment variables in deployments.
"""

from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from scopegate.core.errors import UNDEFINED_COLUMN_CODE
from scopegate.logging import LogFormat, LogLevel, configure_logging


class GatewaySettings(BaseSettings):
    """
    Runtime settings for a scoped gateway.

    Every field can be overridden with ``SCOPEGATE_<FIELD>``;
    ``SCOPEGATE_MISSING_COLUMN_CODES`` is comma separated.

    Attributes:
        organization_field: Column holding a row's organization id
        branch_field: Column holding a row's branch id (branch-referencing resources)
        branch_self_field: Primary key column of resources that are branches
        missing_column_codes: Store error codes meaning "undefined column"
        probe_on_startup: Pre-seed column availability before the first request
        log_level: Level for the ``scopegate`` logger hierarchy
        log_format: ``json`` or ``text``
    """

    organization_field: str = Field(default="organization_id")
    branch_field: str = Field(default="branch_id")
    branch_self_field: str = Field(default="id")
    missing_column_codes: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(UNDEFINED_COLUMN_CODE,)
    )
    probe_on_startup: bool = Field(default=False)
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: LogFormat = Field(default=LogFormat.JSON)

    model_config = SettingsConfigDict(
        env_prefix="SCOPEGATE_",
        env_ignore_empty=True,
        str_strip_whitespace=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator("missing_column_codes", mode="before")
    @classmethod
    def split_codes(cls, v: Any) -> Any:
        if isinstance(v, str):
            return tuple(c.strip() for c in v.split(",") if c.strip())
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_format(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @classmethod
    def from_env(cls, prefix: str = "SCOPEGATE_") -> "GatewaySettings":
        """Build settings from environment variables under ``prefix``."""
        return cls(_env_prefix=prefix)

    def configure_logging(self) -> None:
        """Apply the logging settings to the ``scopegate`` logger."""
        configure_logging(level=self.log_level, format=self.log_format)
