"""Shared fixtures for the sso-profiles test suite."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from sso_profiles.config import Config, Portal, Settings
from sso_profiles.models.profiles import DiscoveredProfile

START_URL = "https://x.awsapps.com/start"
REGION = "us-east-1"


@pytest.fixture
def fake_settings() -> Settings:
    return Settings(
        start_url="",
        sso_region="us-east-1",
        prefix="",
        backup_dir="./test-backups",
        timeout=5.0,
        portals_file="./test-portals.yaml",
    )


@pytest.fixture
def fake_portals() -> dict[str, Portal]:
    return {
        "work": Portal(start_url="https://work.awsapps.com/start", sso_region="eu-west-1", prefix="work-"),
        "lab": Portal(start_url="https://lab.awsapps.com/start"),
    }


@pytest.fixture
def fake_config(fake_settings, fake_portals) -> Config:
    return Config(settings=fake_settings, portals=fake_portals)


@pytest.fixture
def mock_client():
    """MagicMock standing in for SSOClient."""
    client = MagicMock()
    client.close = MagicMock()
    return client


@pytest.fixture
def sample_profiles() -> list[DiscoveredProfile]:
    """The Dev Team / Prod example: one role per account."""
    return [
        DiscoveredProfile(
            account_id="111", account_name="Dev Team", role_name="Admin",
            start_url=START_URL, sso_region=REGION,
        ),
        DiscoveredProfile(
            account_id="222", account_name="Prod", role_name="Viewer",
            start_url=START_URL, sso_region=REGION,
        ),
    ]
