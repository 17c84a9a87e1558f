"""Tests for auth.py — registration, device authorization, token polling."""
import webbrowser
from unittest.mock import MagicMock, call

import pytest

from sso_profiles.auth import (
    CLIENT_NAME,
    DEVICE_CODE_GRANT,
    SCOPES,
    DeviceAuthClient,
    PollState,
)
from sso_profiles.models.auth import ClientRegistration
from sso_profiles.utils.errors import (
    AuthorizationPending,
    ProtocolError,
    ServiceError,
    TransportError,
)

VERIFICATION_URI = "https://device.sso.us-east-1.amazonaws.com/?user_code=ABCD-EFGH"


def _pending():
    return AuthorizationPending("AuthorizationPendingException", "", 400)


@pytest.fixture
def sso(mock_client):
    mock_client.register_client.return_value = {"clientId": "cid", "clientSecret": "sec"}
    mock_client.start_device_authorization.return_value = {
        "verificationUriComplete": VERIFICATION_URI,
        "deviceCode": "dev-code",
        "userCode": "ABCD-EFGH",
    }
    mock_client.create_token.return_value = {"accessToken": "T"}
    return mock_client


@pytest.fixture
def messages():
    return []


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def opener():
    return MagicMock(return_value=True)


@pytest.fixture
def auth(sso, messages, sleep, opener):
    return DeviceAuthClient(sso, notifier=messages.append, open_browser=opener, sleep=sleep)


REGISTRATION = ClientRegistration(client_id="cid", client_secret="sec")


# ── register_client ──────────────────────────────────────────────────

def test_register_client_params(auth, sso):
    reg = auth.register_client("us-east-1")
    assert reg == REGISTRATION
    sso.register_client.assert_called_once_with("us-east-1", CLIENT_NAME, "public", SCOPES)
    assert SCOPES == ["sso-portal:*"]


def test_register_missing_secret(auth, sso):
    sso.register_client.return_value = {"clientId": "cid"}
    with pytest.raises(ProtocolError, match="client secret"):
        auth.register_client("us-east-1")


# ── start_device_authorization ───────────────────────────────────────

def test_start_opens_browser_and_notifies(auth, sso, opener, messages):
    session = auth.start_device_authorization(REGISTRATION, "https://x.awsapps.com/start", "us-east-1")

    assert session.device_code == "dev-code"
    sso.start_device_authorization.assert_called_once_with(
        "us-east-1", "cid", "sec", "https://x.awsapps.com/start",
    )
    opener.assert_called_once_with(VERIFICATION_URI)
    assert VERIFICATION_URI in messages


def test_notifies_when_browser_fails(sso, messages, sleep):
    opener = MagicMock(side_effect=webbrowser.Error("no runnable browser"))
    auth = DeviceAuthClient(sso, notifier=messages.append, open_browser=opener, sleep=sleep)

    auth.start_device_authorization(REGISTRATION, "https://x.awsapps.com/start", "us-east-1")
    assert VERIFICATION_URI in messages


def test_notifies_when_opener_raises_os_error(sso, messages, sleep):
    opener = MagicMock(side_effect=OSError("xdg-open not found"))
    auth = DeviceAuthClient(sso, notifier=messages.append, open_browser=opener, sleep=sleep)

    session = auth.start_device_authorization(REGISTRATION, "https://x.awsapps.com/start", "us-east-1")
    assert session.device_code == "dev-code"
    assert VERIFICATION_URI in messages
    opener.assert_called_once_with(VERIFICATION_URI)


def test_link_notified_before_browser_opens(sso, messages, sleep):
    seen = []
    auth = DeviceAuthClient(
        sso, notifier=messages.append, open_browser=lambda url: seen.append(list(messages)), sleep=sleep,
    )

    auth.start_device_authorization(REGISTRATION, "https://x.awsapps.com/start", "us-east-1")
    assert VERIFICATION_URI in seen[0]


def test_notifies_when_browser_not_opened(sso, messages, sleep):
    auth = DeviceAuthClient(sso, notifier=messages.append, open_browser=lambda url: False, sleep=sleep)

    auth.start_device_authorization(REGISTRATION, "https://x.awsapps.com/start", "us-east-1")
    assert VERIFICATION_URI in messages


def test_start_missing_device_code(auth, sso, opener):
    sso.start_device_authorization.return_value = {"verificationUriComplete": VERIFICATION_URI}
    with pytest.raises(ProtocolError, match="device code"):
        auth.start_device_authorization(REGISTRATION, "https://x.awsapps.com/start", "us-east-1")
    opener.assert_not_called()


# ── poll_for_token ───────────────────────────────────────────────────

def test_poll_pending_twice_then_success(auth, sso, sleep):
    sso.create_token.side_effect = [_pending(), _pending(), {"accessToken": "T"}]

    token = auth.poll_for_token(REGISTRATION, "dev-code", "us-east-1")

    assert token == "T"
    assert sso.create_token.call_count == 3
    assert sleep.call_args_list == [call(1.0), call(1.0)]


def test_poll_immediate_success_does_not_sleep(auth, sso, sleep):
    assert auth.poll_for_token(REGISTRATION, "dev-code", "us-east-1") == "T"
    sleep.assert_not_called()


def test_poll_request_fields(auth, sso):
    auth.poll_for_token(REGISTRATION, "dev-code", "us-east-1")
    sso.create_token.assert_called_once_with("us-east-1", "cid", "sec", "dev-code", DEVICE_CODE_GRANT)


def test_poll_access_denied_fails_immediately(auth, sso, sleep):
    denied = ServiceError("AccessDeniedException", "denied", 400)
    sso.create_token.side_effect = [_pending(), denied, {"accessToken": "T"}]

    with pytest.raises(ServiceError) as exc_info:
        auth.poll_for_token(REGISTRATION, "dev-code", "us-east-1")
    assert exc_info.value is denied
    assert sso.create_token.call_count == 2
    assert sleep.call_count == 1


def test_poll_transport_error_not_retried(auth, sso, sleep):
    sso.create_token.side_effect = TransportError("connection reset")

    with pytest.raises(TransportError):
        auth.poll_for_token(REGISTRATION, "dev-code", "us-east-1")
    assert sso.create_token.call_count == 1
    sleep.assert_not_called()


def test_poll_missing_access_token(auth, sso):
    sso.create_token.return_value = {"tokenType": "Bearer"}
    with pytest.raises(ProtocolError, match="access token"):
        auth.poll_for_token(REGISTRATION, "dev-code", "us-east-1")


def test_poll_custom_interval(sso, messages, opener):
    sleep = MagicMock()
    auth = DeviceAuthClient(sso, notifier=messages.append, open_browser=opener, sleep=sleep, poll_interval=0.25)
    sso.create_token.side_effect = [_pending(), {"accessToken": "T"}]

    auth.poll_for_token(REGISTRATION, "dev-code", "us-east-1")
    sleep.assert_called_once_with(0.25)


def test_poll_once_states(auth, sso):
    sso.create_token.side_effect = [_pending(), {"accessToken": "T"}, TransportError("x")]
    assert auth._poll_once(REGISTRATION, "d", "us-east-1")[0] is PollState.POLLING
    assert auth._poll_once(REGISTRATION, "d", "us-east-1")[0] is PollState.SUCCESS
    state, _, error = auth._poll_once(REGISTRATION, "d", "us-east-1")
    assert state is PollState.FAILURE
    assert isinstance(error, TransportError)


# ── authenticate ─────────────────────────────────────────────────────

def test_authenticate_end_to_end(auth, sso, messages):
    sso.create_token.side_effect = [_pending(), {"accessToken": "T"}]

    assert auth.authenticate("https://x.awsapps.com/start", "us-east-1") == "T"
    sso.register_client.assert_called_once()
    sso.start_device_authorization.assert_called_once()
    assert VERIFICATION_URI in messages


def test_authenticate_stops_on_registration_error(auth, sso):
    sso.register_client.side_effect = ServiceError("InvalidScopeException", "", 400)
    with pytest.raises(ServiceError):
        auth.authenticate("https://x.awsapps.com/start", "us-east-1")
    sso.start_device_authorization.assert_not_called()
    sso.create_token.assert_not_called()
