"""Discovered profile model."""

from __future__ import annotations

from pydantic import BaseModel, Field

# Keys written to every discovered section, in this order
SECTION_KEYS = ("sso_start_url", "sso_region", "sso_account_id", "sso_role_name")


class DiscoveredProfile(BaseModel):
    """One assumable (account, role) pair reachable through an SSO portal."""
    account_id: str = Field(min_length=1)
    account_name: str = Field(min_length=1)
    role_name: str = Field(min_length=1)
    start_url: str = Field(min_length=1)
    sso_region: str = Field(min_length=1)

    model_config = {"frozen": True}

    @property
    def bare_name(self) -> str:
        """Profile name without prefix, e.g. "Dev-Team-Admin"."""
        return f"{self.account_name.replace(' ', '-')}-{self.role_name}"

    def to_section(self) -> dict[str, str | None]:
        """Key/value pairs for the profile's config section."""
        values = (self.start_url, self.sso_region, self.account_id, self.role_name)
        return dict(zip(SECTION_KEYS, values))
