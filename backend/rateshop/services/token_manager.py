"""
Bearer token lifecycle for the primary carrier network.

The token is cached per TokenManager instance and refreshed when 90% of its
reported lifetime has elapsed. Refreshes are single-flight: concurrent
callers that find the token expired wait on the same refresh.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests
from requests.auth import HTTPBasicAuth

from rateshop.schemas.upstream import OAuthTokenResponse
from rateshop.services.errors import (
    AuthenticationError,
    ConfigurationError,
    CredentialError,
    GatewayError,
)
from rateshop.services.http_transport import send

logger = logging.getLogger(__name__)

# Fraction of the reported TTL we are willing to use
TOKEN_TTL_SAFETY_FACTOR = 0.9


@dataclass(frozen=True)
class Project44Credentials:
    client_id: str
    client_secret: str

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass
class CachedToken:
    access_token: str
    expires_at: float


class TokenManager:
    def __init__(
        self,
        credentials: Project44Credentials,
        http: requests.Session,
        oauth_url: str,
        clock: Callable[[], float] = time.monotonic,
        timeout: float = 30.0,
    ):
        self.credentials = credentials
        self.http = http
        self.oauth_url = oauth_url
        self.clock = clock
        self.timeout = timeout
        self._token: Optional[CachedToken] = None
        self._lock = asyncio.Lock()

    def _valid_cached(self) -> Optional[str]:
        if self._token and self.clock() < self._token.expires_at:
            return self._token.access_token
        return None

    async def get_token(self) -> str:
        cached = self._valid_cached()
        if cached:
            return cached

        async with self._lock:
            # Another caller may have refreshed while we waited
            cached = self._valid_cached()
            if cached:
                return cached
            self._token = await self._fetch_token()
            return self._token.access_token

    def invalidate(self) -> None:
        self._token = None

    async def _fetch_token(self) -> CachedToken:
        if not self.credentials.is_configured:
            raise ConfigurationError(
                "Project44 client credentials are not configured. "
                "Set PROJECT44_CLIENT_ID and PROJECT44_CLIENT_SECRET."
            )

        logger.info("Obtaining new Project44 access token")
        response = await send(
            self.http,
            "POST",
            self.oauth_url,
            timeout=self.timeout,
            data={"grant_type": "client_credentials"},
            auth=HTTPBasicAuth(self.credentials.client_id, self.credentials.client_secret),
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
            },
        )

        if not response.ok:
            raise _classify_auth_failure(response)

        token_data = OAuthTokenResponse.model_validate(response.json())
        requested_at = self.clock()
        expires_at = requested_at + token_data.expires_in * TOKEN_TTL_SAFETY_FACTOR
        logger.info("Project44 access token obtained (valid for %ss)", token_data.expires_in)
        return CachedToken(access_token=token_data.access_token, expires_at=expires_at)


def _classify_auth_failure(response: requests.Response) -> Exception:
    status_code = response.status_code
    body = response.text or ""
    logger.error("OAuth failed: %s %s", status_code, body)

    try:
        error_data = json.loads(body) if body else {}
    except ValueError:
        error_data = {}
    if not isinstance(error_data, dict):
        error_data = {}
    description = error_data.get("error_description") or body

    if status_code == 401 and error_data.get("error") == "invalid_client":
        return CredentialError(
            f"Invalid OAuth credentials: "
            f"{description or 'The client secret supplied for a confidential client is invalid'}. "
            f"Please verify your Client ID and Client Secret are correct.",
            status_code=status_code,
            body=body,
        )
    if status_code == 520:
        return GatewayError(
            f"Network error (520): This may be a temporary issue with Project44's API gateway. "
            f"Please wait a few minutes and try again. Response: {body}",
            status_code=status_code,
            body=body,
        )
    return AuthenticationError(
        f"OAuth authentication failed: {status_code} - {description}",
        status_code=status_code,
        body=body,
    )
