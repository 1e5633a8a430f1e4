"""
Quoting error taxonomy.

Credential and gateway failures keep the upstream status code and body in
their message so they can be diagnosed from the UI or the logs.
"""
from typing import Optional


class QuotingError(Exception):
    """Base class for all quoting failures."""


class ConfigurationError(QuotingError):
    """No usable credentials/configuration; aborts a batch before it starts."""


class CredentialError(QuotingError):
    """Client id/secret rejected by the auth endpoint. Not retryable."""

    def __init__(self, message: str, status_code: Optional[int] = 401, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class GatewayError(QuotingError):
    """Transient upstream gateway failure (e.g. 520). Caller may retry later."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(QuotingError):
    """Any other non-2xx answer from the auth endpoint."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NetworkError(QuotingError):
    """DNS / connection level failure before any HTTP status was received."""


class UpstreamError(QuotingError):
    """Non-2xx answer from a quote, carrier or service-level endpoint."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
