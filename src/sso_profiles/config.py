"""Configuration management for sso-profiles.

Loads settings from the environment (and a .env file) and named SSO portals
from portals.yaml.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from sso_profiles.utils.errors import ConfigError

DEFAULT_SSO_REGION = "us-east-1"


class Portal(BaseModel):
    """An IAM Identity Center portal to discover profiles from."""
    start_url: str
    sso_region: str = DEFAULT_SSO_REGION
    prefix: str = ""


class Settings(BaseModel):
    """Application settings loaded from environment variables."""
    start_url: str = Field(default="", description="Default SSO start URL")
    sso_region: str = Field(default=DEFAULT_SSO_REGION, description="Default Identity Center region")
    prefix: str = Field(default="", description="Default prefix for generated profile names")
    backup_dir: str = Field(default="~/.aws/backups", description="Directory for AWS config backups")
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    portals_file: str = Field(
        default="~/.config/sso-profiles/portals.yaml",
        description="YAML file with named portals",
    )


class Config(BaseModel):
    """Full application configuration."""
    settings: Settings
    portals: dict[str, Portal] = Field(default_factory=dict)

    def get_portal(self, name: str) -> Portal:
        """Get a named portal from portals.yaml."""
        if name not in self.portals:
            available = ", ".join(sorted(self.portals)) or "none configured"
            raise ConfigError(f"Unknown portal '{name}'. Available: {available}")
        return self.portals[name]

    def resolve_portal(
        self,
        name: str | None = None,
        start_url: str | None = None,
        sso_region: str | None = None,
        prefix: str | None = None,
    ) -> Portal:
        """Combine explicit values, a named portal and settings into one Portal.

        Explicit values win over the named portal, which wins over settings.
        """
        base = self.get_portal(name) if name else None

        url = start_url or (base.start_url if base else "") or self.settings.start_url
        if not url:
            raise ConfigError("No SSO start URL given")

        return Portal(
            start_url=url,
            sso_region=sso_region or (base.sso_region if base else self.settings.sso_region),
            prefix=prefix if prefix is not None else (base.prefix if base else self.settings.prefix),
        )

    @property
    def portal_names(self) -> list[str]:
        return sorted(self.portals)


def _env(*keys: str, default: str = "") -> str:
    """Try multiple env var names, return the first one found."""
    for key in keys:
        val = os.environ.get(key, "")
        if val:
            return val.strip().strip('"')
    return default


def _load_settings() -> Settings:
    """Load settings from SSO_PROFILES_* environment variables."""
    timeout = _env("SSO_PROFILES_TIMEOUT", default="30")
    try:
        timeout_value = float(timeout)
    except ValueError:
        raise ConfigError(f"SSO_PROFILES_TIMEOUT must be a number, got '{timeout}'")

    return Settings(
        start_url=_env("SSO_PROFILES_START_URL"),
        sso_region=_env("SSO_PROFILES_REGION", "AWS_SSO_REGION", default=DEFAULT_SSO_REGION),
        prefix=_env("SSO_PROFILES_PREFIX"),
        backup_dir=_env("SSO_PROFILES_BACKUP_DIR", default="~/.aws/backups"),
        timeout=timeout_value,
        portals_file=_env("SSO_PROFILES_PORTALS_FILE", default="~/.config/sso-profiles/portals.yaml"),
    )


def _load_portals(path: Path) -> dict[str, Portal]:
    """Load named portals from a YAML file. A missing file means no portals."""
    if not path.exists():
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid portals file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid portals file {path}: expected a mapping")

    portals = {}
    for name, portal_data in (data.get("portals") or {}).items():
        if not isinstance(portal_data, dict) or not portal_data.get("start_url"):
            raise ConfigError(f"Portal '{name}' in {path} needs a start_url")
        portals[str(name)] = Portal(**portal_data)
    return portals


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Load and cache the full application configuration."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    settings = _load_settings()
    portals = _load_portals(Path(settings.portals_file).expanduser())

    return Config(settings=settings, portals=portals)
