"""Error types raised by the API client and how they read to a patient."""
from typing import Any, Optional

from clinic_booking import config


class ClinicClientError(Exception):
    """Base class for client-side failures."""
    pass


class ApiError(ClinicClientError):
    """The backend answered with a non-2xx status, or with a body that is not JSON."""

    def __init__(
        self,
        message: str,
        status: int,
        code: Optional[str] = None,
        errors: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.errors = errors

    @classmethod
    def from_response(cls, response) -> "ApiError":
        """Build from a ``requests.Response``, preferring the server's own text."""
        try:
            data = response.json()
        except ValueError:
            data = None

        message = None
        code = None
        errors = None
        if isinstance(data, dict):
            message = data.get("message") or data.get("error")
            code = data.get("code")
            errors = data.get("errors")

        if not message:
            message = f"HTTP {response.status_code}"
        return cls(message, status=response.status_code, code=code, errors=errors)

    @property
    def has_server_message(self) -> bool:
        return not self.message.startswith("HTTP ")


class NetworkError(ClinicClientError):
    """No usable answer: connection refused, DNS failure, timeout, open circuit."""

    status = 0
    code = "NETWORK_ERROR"

    def __init__(self, message: str = config.NETWORK_ERROR_MESSAGE):
        super().__init__(message)
        self.message = message


class PermissionDenied(ClinicClientError):
    """The current auth session lacks the role an operation needs."""
    pass


def describe_api_error(error: Exception, default: str = config.GENERIC_RETRY_MESSAGE) -> str:
    """
    Turn a client error into the sentence shown to the user.

    - 409 conflicts are shown verbatim
    - 422 validation errors show the first field message
    - network failures show the connectivity message
    - anything else shows the server message when there is one
    """
    if isinstance(error, NetworkError):
        return config.NETWORK_ERROR_MESSAGE

    if isinstance(error, ApiError):
        if error.status == 409:
            return error.message
        if error.status == 422 and error.errors:
            return _first_validation_message(error.errors) or default
        if error.has_server_message:
            return error.message

    return default


def _first_validation_message(errors) -> Optional[str]:
    # {"field": ["msg", ...]} or express-validator style [{"msg": ...}, ...]
    if isinstance(errors, dict):
        first = next(iter(errors.values()))
    else:
        first = errors[0]

    if isinstance(first, list):
        first = first[0] if first else None
    if isinstance(first, dict):
        first = first.get("msg") or first.get("message")
    return str(first) if first else None
