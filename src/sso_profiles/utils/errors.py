"""Error taxonomy and structured error output."""

from __future__ import annotations

import json
import sys

from rich.console import Console

console = Console(stderr=True)


class SSOProfilesError(Exception):
    """Base class for every error raised by sso-profiles."""


class ProtocolError(SSOProfilesError):
    """A provider response lacked a field the flow cannot continue without."""

    def __init__(self, field: str, source: str) -> None:
        self.field = field
        self.source = source
        super().__init__(f"{source} provided no {field}")


class ServiceError(SSOProfilesError):
    """The provider rejected a request."""

    def __init__(self, error_type: str, message: str, status_code: int | None = None) -> None:
        self.error_type = error_type
        self.message = message
        self.status_code = status_code
        detail = f"{error_type}: {message}" if message else error_type
        if status_code is not None:
            detail = f"{detail} (HTTP {status_code})"
        super().__init__(detail)


class AuthorizationPending(ServiceError):
    """The user has not approved the device authorization yet."""


class TransportError(SSOProfilesError):
    """A request never produced a response (DNS, TLS, timeout, reset)."""


class StructuralError(SSOProfilesError):
    """The configuration document could not accept a mutation."""


class FileAccessError(SSOProfilesError):
    """The AWS config file or a backup could not be read or written."""


class ConfigError(SSOProfilesError):
    """Settings or portal definitions are missing or invalid."""


# Service error types that mean something specific to the user
_AUTH_DENIED = {"AccessDeniedException", "access_denied"}
_TOKEN_EXPIRED = {"ExpiredTokenException", "expired_token"}
_UNAUTHORIZED = {"UnauthorizedException", "UnauthorizedClientException", "InvalidClientException"}

# Actionable hints keyed by error code
_ERROR_HINTS: dict[str, str] = {
    "AUTH_DENIED": "The sign-in request was denied in the browser — run the command again and approve it",
    "TOKEN_EXPIRED": "The device code expired before it was approved — run the command again",
    "UNAUTHORIZED": "Check the start URL and that --sso-region matches the Identity Center region",
    "TRANSPORT_ERROR": "Connection error — check network connectivity and the SSO region",
    "PROTOCOL_ERROR": "The identity provider returned an incomplete response — try again later",
    "CONFIG_STRUCTURE_ERROR": "Inspect the AWS config file for malformed sections",
    "FILE_ERROR": "Check permissions on the AWS config file and the backup directory",
    "CONFIG_ERROR": "Pass a start URL, use --portal, or set SSO_PROFILES_START_URL",
}


def error_code(error: Exception) -> str:
    """Classify an exception into a stable error code."""
    if isinstance(error, ProtocolError):
        return "PROTOCOL_ERROR"
    if isinstance(error, ServiceError):
        if error.error_type in _AUTH_DENIED:
            return "AUTH_DENIED"
        if error.error_type in _TOKEN_EXPIRED:
            return "TOKEN_EXPIRED"
        if error.error_type in _UNAUTHORIZED or error.status_code == 401:
            return "UNAUTHORIZED"
        return "SERVICE_ERROR"
    if isinstance(error, TransportError):
        return "TRANSPORT_ERROR"
    if isinstance(error, StructuralError):
        return "CONFIG_STRUCTURE_ERROR"
    if isinstance(error, FileAccessError):
        return "FILE_ERROR"
    if isinstance(error, ConfigError):
        return "CONFIG_ERROR"
    return "RUNTIME_ERROR"


def _get_hint(code: str) -> str | None:
    return _ERROR_HINTS.get(code)


def handle_error(error: Exception) -> None:
    """Report an error as JSON on stdout and as a human-readable line on stderr.

    The JSON object has the shape
    {"error": true, "code": "SERVICE_ERROR", "message": "...", "hint": "..."}
    """
    message = str(error)
    code = error_code(error)
    hint = _get_hint(code)

    error_obj: dict[str, object] = {
        "error": True,
        "code": code,
        "message": message,
    }
    if hint:
        error_obj["hint"] = hint

    json.dump(error_obj, sys.stdout)
    sys.stdout.write("\n")

    console.print(f"[red]Error:[/red] {message}")
    if hint:
        console.print(f"[dim]Hint: {hint}[/dim]")
