"""Account and role discovery for an SSO access token."""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from sso_profiles.auth import notify_console
from sso_profiles.client import SSOClient
from sso_profiles.models.auth import require
from sso_profiles.models.profiles import DiscoveredProfile
from sso_profiles.utils.pagination import paginate

logger = logging.getLogger(__name__)


class ProfileDiscoveryService:
    """Enumerates every (account, role) pair an access token can assume."""

    def __init__(
        self,
        client: SSOClient,
        start_url: str,
        sso_region: str,
        notifier: Callable[[str], None] = notify_console,
    ) -> None:
        self._client = client
        self._start_url = start_url
        self._sso_region = sso_region
        self._notify = notifier

    def discover(self, access_token: str) -> list[DiscoveredProfile]:
        """Return all discovered profiles, accounts and roles in provider order.

        Any listing or validation error aborts discovery; nothing partial is
        returned.
        """
        self._notify("[cyan bold]Finding accounts and roles[/cyan bold]")
        profiles = list(self.iter_profiles(access_token))
        logger.info(f"Discovered {len(profiles)} profile(s)")
        return profiles

    def iter_profiles(self, access_token: str) -> Iterator[DiscoveredProfile]:
        """Lazily yield profiles, draining one account's roles before the next account."""
        for account_id, account_name in self._iter_accounts(access_token):
            for role_name in self._iter_roles(access_token, account_id):
                yield DiscoveredProfile(
                    account_id=account_id,
                    account_name=account_name,
                    role_name=role_name,
                    start_url=self._start_url,
                    sso_region=self._sso_region,
                )

    def _iter_accounts(self, access_token: str) -> Iterator[tuple[str, str]]:
        def fetch(next_token: str | None) -> dict:
            return self._client.list_accounts(self._sso_region, access_token, next_token=next_token)

        for account in paginate(fetch, "accountList"):
            account_id = require(account, "accountId", "Account", "account id")
            account_name = require(account, "accountName", f"Account {account_id}", "account name")
            logger.info(f"Account {account_id} ({account_name})")
            yield account_id, account_name

    def _iter_roles(self, access_token: str, account_id: str) -> Iterator[str]:
        def fetch(next_token: str | None) -> dict:
            return self._client.list_account_roles(
                self._sso_region, access_token, account_id, next_token=next_token,
            )

        for role in paginate(fetch, "roleList", required=True):
            yield require(role, "roleName", f"Role in account {account_id}", "role name")
