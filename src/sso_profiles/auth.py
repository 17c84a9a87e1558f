"""Device authorization grant against IAM Identity Center.

Registers a public client, starts a device authorization, sends the user to
the verification link and polls until the link has been approved.
"""

from __future__ import annotations

import logging
import time
import webbrowser
from enum import Enum
from typing import Callable

from rich.console import Console

from sso_profiles.client import SSOClient
from sso_profiles.models.auth import ClientRegistration, DeviceAuthorizationSession, require
from sso_profiles.utils.errors import (
    AuthorizationPending,
    ServiceError,
    SSOProfilesError,
    TransportError,
)

logger = logging.getLogger(__name__)
console = Console(stderr=True)

CLIENT_NAME = "sso-profiles-client"
CLIENT_TYPE = "public"
SCOPES = ["sso-portal:*"]
DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"

# Fixed delay after each authorization_pending answer
POLL_INTERVAL = 1.0


class PollState(str, Enum):
    POLLING = "polling"
    SUCCESS = "success"
    FAILURE = "failure"


def notify_console(message: str) -> None:
    """Default notifier: print to stderr."""
    console.print(message)


class DeviceAuthClient:
    """Obtains a short-lived access token through the device code flow."""

    def __init__(
        self,
        client: SSOClient,
        notifier: Callable[[str], None] = notify_console,
        open_browser: Callable[[str], bool] = webbrowser.open,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self._client = client
        self._notify = notifier
        self._open_browser = open_browser
        self._sleep = sleep
        self._poll_interval = poll_interval

    def authenticate(self, start_url: str, region: str) -> str:
        """Run the full flow and return the access token.

        Args:
            start_url: The portal start URL, e.g. https://my-org.awsapps.com/start.
            region: Region the Identity Center instance lives in.

        Raises:
            ProtocolError: A response lacked a required field.
            ServiceError: The provider rejected a request (denied, expired, ...).
            TransportError: The provider could not be reached.
        """
        registration = self.register_client(region)
        session = self.start_device_authorization(registration, start_url, region)
        return self.poll_for_token(registration, session.device_code, region)

    def register_client(self, region: str) -> ClientRegistration:
        data = self._client.register_client(region, CLIENT_NAME, CLIENT_TYPE, SCOPES)
        registration = ClientRegistration.from_response(data)
        logger.info(f"Registered OIDC client {registration.client_id}")
        return registration

    def start_device_authorization(
        self,
        registration: ClientRegistration,
        start_url: str,
        region: str,
    ) -> DeviceAuthorizationSession:
        """Request a device code and present the verification link to the user."""
        data = self._client.start_device_authorization(
            region, registration.client_id, registration.client_secret, start_url,
        )
        session = DeviceAuthorizationSession.from_response(data)
        self._present(session)
        return session

    def _present(self, session: DeviceAuthorizationSession) -> None:
        self._notify(
            "[cyan bold]Open the following link, if it doesn't open automatically, "
            "to allow access to SSO:[/cyan bold]"
        )
        self._notify(session.verification_uri)
        if session.user_code:
            self._notify(f"[dim]Verification code: {session.user_code}[/dim]")

        # The link is already printed, so any opener failure is only logged
        try:
            opened = self._open_browser(session.verification_uri)
        except Exception as e:
            opened = False
            logger.info(f"Could not open a browser: {e}")
        logger.info(f"Browser opened: {opened}")

    def poll_for_token(
        self,
        registration: ClientRegistration,
        device_code: str,
        region: str,
    ) -> str:
        """Poll CreateToken until the device code is approved.

        State machine:
            POLLING -> POLLING  on authorization_pending, after poll_interval
            POLLING -> SUCCESS  on a token response
            POLLING -> FAILURE  on any other error, raised immediately

        There is no attempt limit or deadline: a provider that keeps answering
        authorization_pending keeps this loop running.
        """
        state = PollState.POLLING
        attempts = 0
        response: dict = {}

        while state is PollState.POLLING:
            attempts += 1
            state, response, error = self._poll_once(registration, device_code, region)
            if state is PollState.FAILURE:
                logger.info(f"Token request failed on attempt {attempts}: {error}")
                raise error  # type: ignore[misc]
            if state is PollState.POLLING:
                logger.info(f"Authorization pending (attempt {attempts}), retrying in {self._poll_interval}s")
                self._sleep(self._poll_interval)

        logger.info(f"Token issued after {attempts} attempt(s)")
        return require(response, "accessToken", "Token response", "access token")

    def _poll_once(
        self,
        registration: ClientRegistration,
        device_code: str,
        region: str,
    ) -> tuple[PollState, dict, SSOProfilesError | None]:
        try:
            response = self._client.create_token(
                region,
                registration.client_id,
                registration.client_secret,
                device_code,
                DEVICE_CODE_GRANT,
            )
        except AuthorizationPending:
            return PollState.POLLING, {}, None
        except (ServiceError, TransportError) as e:
            return PollState.FAILURE, {}, e
        return PollState.SUCCESS, response, None
