"""
Configuration management for the pasture CLI.

Non-secret configuration is loaded from a YAML file (``~/.pastures.yaml`` unless
``--config`` says otherwise) and can be overridden with ``PASTURES_*``
environment variables. Deployment parameters live in the shared var file and
are modelled by ``FastConfig``.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_FILE = "~/.pastures.yaml"

# Set by load_settings() before Settings is instantiated
_config_file: Path | None = None


def yaml_config_settings_source() -> dict[str, Any]:
    """Load configuration from the YAML config file."""
    config_path = _config_file or Path(DEFAULT_CONFIG_FILE).expanduser()
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


# --- Deployment Models ---


class Organization(BaseModel):
    """GCP organization targeted by a pasture."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Numeric organization ID")
    domain: str = Field(description="Organization DNS domain")
    customer_id: str = Field(default="", description="Cloud Identity customer ID")


class FastConfig(BaseModel):
    """Typed view of the shared var file.

    Only ``prefix`` is required. Every other key is forwarded to terraform
    untouched, so unknown keys are allowed and kept.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    prefix: str = Field(description="Unique deployment prefix used for bucket names")
    organization: Organization | None = Field(default=None)

    @field_validator("prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prefix must not be empty")
        if len(value) > 9:
            raise ValueError("prefix must be at most 9 characters")
        if not value[0].isalpha() or not all(
            c.islower() or c.isdigit() or c == "-" for c in value
        ):
            raise ValueError(
                "prefix must start with a letter and contain only lowercase letters, digits and hyphens"
            )
        return value


# --- Storage Configuration Models ---


class StorageBackend(StrEnum):
    """Supported object store backends."""

    GCS = "gcs"
    FILESYSTEM = "filesystem"


class GCSConfig(BaseModel):
    """Google Cloud Storage configuration."""

    project_id: str = Field(default="", description="Quota project for GCS requests")


class FilesystemConfig(BaseModel):
    """Local filesystem storage configuration (one subdirectory per bucket)."""

    root_dir: str = Field(
        default="~/.config/pastures/buckets",
        description="Root directory emulating GCS buckets",
    )


class StorageConfig(BaseModel):
    """Storage configuration."""

    backend: StorageBackend = Field(
        default=StorageBackend.GCS,
        description="Storage backend: gcs or filesystem",
    )
    gcs: GCSConfig = Field(default_factory=GCSConfig)
    filesystem: FilesystemConfig = Field(default_factory=FilesystemConfig)


# --- Main Settings ---


class Settings(BaseSettings):
    """Main CLI settings."""

    model_config = SettingsConfigDict(
        env_prefix="PASTURES_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Output
    verbose: bool = Field(default=False, description="Controls terraform output verbosity")
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)

    # Local layout
    config_dir: Path = Field(
        default=Path("~/.config/pastures"),
        description="Per-user directory holding the var file and stage working trees",
    )
    var_file_name: str = Field(default="pastures.auto.tfvars.json")
    fabric_dir: Path | None = Field(
        default=None,
        description="Checkout of cloud-foundation-fabric (default: <config_dir>/cloud-foundation-fabric)",
    )
    seeds_dir: Path | None = Field(
        default=None,
        description="Directory holding seed templates (default: <config_dir>/seeds)",
    )

    # Terraform
    terraform_binary: str = Field(default="terraform")
    foundation_stages: list[str] = Field(
        default=["0-bootstrap", "1-resman", "2-networking-a-simple"],
        description="FAST stages deployed before the seed, in any order",
    )

    # Organization bootstrap
    admin_group: str = Field(default="gcp-organization-admins")

    # Storage
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings sources: env vars override YAML config."""
        return (
            init_settings,
            env_settings,
            yaml_config_settings_source,
            dotenv_settings,
            file_secret_settings,
        )

    def config_path(self) -> Path:
        return self.config_dir.expanduser()

    def fabric_path(self) -> Path:
        if self.fabric_dir is not None:
            return self.fabric_dir.expanduser()
        return self.config_path() / "cloud-foundation-fabric"

    def seeds_path(self) -> Path:
        if self.seeds_dir is not None:
            return self.seeds_dir.expanduser()
        return self.config_path() / "seeds"


def load_settings(config_file: str | None = None, **overrides: Any) -> Settings:
    """Build settings for one invocation, reading ``config_file`` when given."""
    global _config_file  # noqa: PLW0603
    _config_file = Path(config_file).expanduser() if config_file else None
    return Settings(**overrides)
