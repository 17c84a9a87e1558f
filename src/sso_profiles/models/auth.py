"""Device authorization data models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from sso_profiles.utils.errors import ProtocolError


def require(data: dict[str, Any], key: str, source: str, field: str | None = None) -> str:
    """Return a non-empty string field from a response or raise ProtocolError."""
    value = data.get(key)
    if not value:
        raise ProtocolError(field or key, source)
    return str(value)


class ClientRegistration(BaseModel):
    """Public OIDC client registered for a single authorization attempt."""
    client_id: str
    client_secret: str

    model_config = {"frozen": True}

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> ClientRegistration:
        source = "SSO client registration"
        return cls(
            client_id=require(data, "clientId", source, "client id"),
            client_secret=require(data, "clientSecret", source, "client secret"),
        )


class DeviceAuthorizationSession(BaseModel):
    """Verification link and device code returned by StartDeviceAuthorization."""
    verification_uri: str  # the complete URI, user code already embedded
    device_code: str
    user_code: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> DeviceAuthorizationSession:
        source = "SSO device authorization"
        return cls(
            verification_uri=require(data, "verificationUriComplete", source, "verification URL"),
            device_code=require(data, "deviceCode", source, "device code"),
            user_code=data.get("userCode"),
        )
