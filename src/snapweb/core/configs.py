"""Pydantic configuration models for a [Web][snapweb.core.web.Web] registry.

All models are loaded from YAML through
[load_yaml()][snapweb.core.yaml.load_yaml] and validated on construction.

Examples:
    ```yaml
    local:
      home_dir: ~/.snapweb
    http:
      timeout: 10
    credentials:
      "ftp://files.example.com":
        user_name: alice
        password: secret
    metrics:
      enabled: true
    ```
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .metrics import MetricsConfig


class LocalConfig(BaseModel):
    """Root of the ``local:`` scheme (app-private store and sandboxes)."""

    home_dir: Path = Field(
        default=Path("~/.snapweb"), description="Directory backing local: addresses"
    )

    @field_validator("home_dir")
    @classmethod
    def _expand(cls, value: Path) -> Path:
        return value.expanduser()


class SandboxConfig(BaseModel):
    """Root of the ``sandbox:`` scheme."""

    root_dir: Path = Field(
        default=Path("~/.snapweb/sandboxes"), description="Directory backing sandbox: addresses"
    )

    @field_validator("root_dir")
    @classmethod
    def _expand(cls, value: Path) -> Path:
        return value.expanduser()


class HttpConfig(BaseModel):
    """HTTP backend limits."""

    timeout: float = Field(default=30.0, gt=0, description="Total request timeout in seconds")
    max_size: int = Field(
        default=64 * 1024 * 1024, ge=1, description="Maximum response body size in bytes"
    )


class FtpConfig(BaseModel):
    """FTP backend limits."""

    timeout: float = Field(default=30.0, gt=0, description="Socket timeout in seconds")


class CredentialsConfig(BaseModel):
    """One user/password pair applied to a site when it is created."""

    user_name: str = Field(description="User name sent to the backend")
    password: str | None = Field(default=None, description="Password sent to the backend")


class LoggingConfig(BaseModel):
    """Log output settings used by the CLI."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(default=False, description="Emit JSON instead of key=value")

    @field_validator("level")
    @classmethod
    def _upper(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return value


class WebConfig(BaseModel):
    """Complete configuration of a registry and the sites it creates."""

    local: LocalConfig = Field(default_factory=LocalConfig)
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    ftp: FtpConfig = Field(default_factory=FtpConfig)
    credentials: dict[str, CredentialsConfig] = Field(
        default_factory=dict, description="Credentials keyed by site address"
    )
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
