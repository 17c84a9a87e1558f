"""HTTP client for the IAM Identity Center OIDC and portal APIs.

Both services speak REST-JSON. Requests are never retried: any transport
failure or error response is raised to the caller.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sso_profiles.utils.errors import AuthorizationPending, ServiceError, TransportError

logger = logging.getLogger(__name__)

OIDC_ENDPOINT = "https://oidc.{region}.amazonaws.com"
PORTAL_ENDPOINT = "https://portal.sso.{region}.amazonaws.com"

BEARER_HEADER = "x-amz-sso_bearer_token"

_PENDING_ERRORS = {"AuthorizationPendingException", "authorization_pending"}


def _parse_error(response: httpx.Response) -> ServiceError:
    """Build a ServiceError from an AWS error response."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    # OAuth errors carry a string code; gateways may put an object here instead
    oauth_error = body.get("error")
    if not isinstance(oauth_error, str):
        oauth_error = ""

    # x-amzn-ErrorType looks like "AuthorizationPendingException:http://internal..."
    error_type = response.headers.get("x-amzn-ErrorType", "").split(":")[0]
    if not error_type:
        error_type = str(body.get("__type", "")).split("#")[-1]
    if not error_type:
        error_type = oauth_error or f"HTTP{response.status_code}"

    message = (
        body.get("error_description")
        or body.get("message")
        or body.get("Message")
        or ""
    )

    if error_type in _PENDING_ERRORS or oauth_error in _PENDING_ERRORS:
        return AuthorizationPending(error_type, str(message), response.status_code)
    return ServiceError(error_type, str(message), response.status_code)


class SSOClient:
    """HTTP client for the sso-oidc and sso portal services."""

    def __init__(self, timeout: float = 30.0, verbose: bool = False) -> None:
        self._verbose = verbose
        self._http = httpx.Client(timeout=timeout)

    def request(
        self,
        method: str,
        url: str,
        *,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON body.

        Raises:
            TransportError: If no response was received.
            ServiceError: If the service answered with an error status.
        """
        if self._verbose:
            logger.info(f"{method} {url}")

        try:
            response = self._http.request(
                method=method,
                url=url,
                json=body,
                params=params,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if self._verbose:
            logger.info(f"Response: {response.status_code}")

        if response.status_code >= 400:
            raise _parse_error(response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ServiceError("InvalidResponse", f"{method} {url} returned non-JSON body", response.status_code) from e

    # ── sso-oidc ─────────────────────────────────────────────────────

    def register_client(
        self,
        region: str,
        client_name: str,
        client_type: str,
        scopes: list[str],
    ) -> dict[str, Any]:
        url = OIDC_ENDPOINT.format(region=region) + "/client/register"
        return self.request("POST", url, body={
            "clientName": client_name,
            "clientType": client_type,
            "scopes": scopes,
        })

    def start_device_authorization(
        self,
        region: str,
        client_id: str,
        client_secret: str,
        start_url: str,
    ) -> dict[str, Any]:
        url = OIDC_ENDPOINT.format(region=region) + "/device_authorization"
        return self.request("POST", url, body={
            "clientId": client_id,
            "clientSecret": client_secret,
            "startUrl": start_url,
        })

    def create_token(
        self,
        region: str,
        client_id: str,
        client_secret: str,
        device_code: str,
        grant_type: str,
    ) -> dict[str, Any]:
        """Exchange a device code for an access token.

        Raises AuthorizationPending while the user has not approved yet.
        """
        url = OIDC_ENDPOINT.format(region=region) + "/token"
        return self.request("POST", url, body={
            "clientId": client_id,
            "clientSecret": client_secret,
            "deviceCode": device_code,
            "grantType": grant_type,
        })

    # ── sso portal ───────────────────────────────────────────────────

    def list_accounts(
        self,
        region: str,
        access_token: str,
        next_token: str | None = None,
    ) -> dict[str, Any]:
        url = PORTAL_ENDPOINT.format(region=region) + "/assignment/accounts"
        params = _page_params(next_token)
        return self.request("GET", url, params=params, headers={BEARER_HEADER: access_token})

    def list_account_roles(
        self,
        region: str,
        access_token: str,
        account_id: str,
        next_token: str | None = None,
    ) -> dict[str, Any]:
        url = PORTAL_ENDPOINT.format(region=region) + "/assignment/roles"
        params = {"account_id": account_id, **_page_params(next_token)}
        return self.request("GET", url, params=params, headers={BEARER_HEADER: access_token})

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()


def _page_params(next_token: str | None) -> dict[str, str]:
    return {"next_token": next_token} if next_token else {}
