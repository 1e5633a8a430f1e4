"""
Unit tests for the Project44 OAuth token lifecycle.
"""

import asyncio

import pytest
import requests

from conftest import build_response
from rateshop.services.errors import (
    AuthenticationError,
    ConfigurationError,
    CredentialError,
    GatewayError,
    NetworkError,
)
from rateshop.services.token_manager import Project44Credentials, TokenManager

OAUTH_URL = "https://auth.test/api/v4/oauth2/token"


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_manager(fake_http, credentials, clock=None):
    return TokenManager(credentials, fake_http, OAUTH_URL, clock=clock or FakeClock())


class TestTokenManager:

    @pytest.mark.asyncio
    async def test_token_reused_within_lifetime(self, fake_http, credentials, token_body):
        fake_http.add("POST", "/oauth2/token", build_response(200, token_body))
        manager = make_manager(fake_http, credentials)

        first = await manager.get_token()
        second = await manager.get_token()

        assert first == second == "token-1"
        assert len(fake_http.calls_to("/oauth2/token")) == 1

    @pytest.mark.asyncio
    async def test_token_refreshed_after_safety_window(self, fake_http, credentials):
        fake_http.add("POST", "/oauth2/token", [
            build_response(200, {"access_token": "token-1", "expires_in": 100}),
            build_response(200, {"access_token": "token-2", "expires_in": 100}),
        ])
        clock = FakeClock()
        manager = make_manager(fake_http, credentials, clock)

        assert await manager.get_token() == "token-1"
        clock.now += 89
        assert await manager.get_token() == "token-1"
        clock.now += 2
        assert await manager.get_token() == "token-2"
        assert len(fake_http.calls_to("/oauth2/token")) == 2

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self, fake_http, credentials, token_body):
        fake_http.add("POST", "/oauth2/token", build_response(200, token_body))
        manager = make_manager(fake_http, credentials)

        tokens = await asyncio.gather(*(manager.get_token() for _ in range(5)))

        assert set(tokens) == {"token-1"}
        assert len(fake_http.calls_to("/oauth2/token")) == 1

    @pytest.mark.asyncio
    async def test_request_uses_client_credentials_grant(self, fake_http, credentials, token_body):
        fake_http.add("POST", "/oauth2/token", build_response(200, token_body))

        await make_manager(fake_http, credentials).get_token()

        call = fake_http.calls_to("/oauth2/token")[0]
        assert call["data"] == {"grant_type": "client_credentials"}
        assert call["auth"].username == "client-id"
        assert call["auth"].password == "client-secret"
        assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"

    @pytest.mark.asyncio
    async def test_invalidate_forces_new_token(self, fake_http, credentials):
        fake_http.add("POST", "/oauth2/token", [
            build_response(200, {"access_token": "token-1", "expires_in": 3600}),
            build_response(200, {"access_token": "token-2", "expires_in": 3600}),
        ])
        manager = make_manager(fake_http, credentials)

        await manager.get_token()
        manager.invalidate()

        assert await manager.get_token() == "token-2"


class TestTokenFailures:

    @pytest.mark.asyncio
    async def test_invalid_client_is_credential_error(self, fake_http, credentials):
        fake_http.add("POST", "/oauth2/token", build_response(
            401, {"error": "invalid_client", "error_description": "bad secret"}
        ))

        with pytest.raises(CredentialError) as excinfo:
            await make_manager(fake_http, credentials).get_token()

        assert "Invalid OAuth credentials" in str(excinfo.value)
        assert "bad secret" in str(excinfo.value)
        assert excinfo.value.status_code == 401

    @pytest.mark.asyncio
    async def test_520_is_gateway_error(self, fake_http, credentials):
        fake_http.add("POST", "/oauth2/token", build_response(520, "origin error"))

        with pytest.raises(GatewayError) as excinfo:
            await make_manager(fake_http, credentials).get_token()

        assert "520" in str(excinfo.value)
        assert "origin error" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_other_status_is_authentication_error(self, fake_http, credentials):
        fake_http.add("POST", "/oauth2/token", build_response(403, {"error": "forbidden"}))

        with pytest.raises(AuthenticationError) as excinfo:
            await make_manager(fake_http, credentials).get_token()

        assert "OAuth authentication failed: 403" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_401_without_invalid_client_is_authentication_error(self, fake_http, credentials):
        fake_http.add("POST", "/oauth2/token", build_response(401, {"error": "unauthorized"}))

        with pytest.raises(AuthenticationError):
            await make_manager(fake_http, credentials).get_token()

    @pytest.mark.asyncio
    async def test_missing_credentials_is_configuration_error(self, fake_http):
        manager = make_manager(fake_http, Project44Credentials(client_id="", client_secret=""))

        with pytest.raises(ConfigurationError):
            await manager.get_token()
        assert fake_http.calls == []

    @pytest.mark.asyncio
    async def test_connection_failure_is_network_error(self, fake_http, credentials):
        def refuse(method, url, **kwargs):
            raise requests.ConnectionError("connection refused")

        fake_http.add("POST", "/oauth2/token", refuse)

        with pytest.raises(NetworkError, match="Network connection failed"):
            await make_manager(fake_http, credentials).get_token()

    @pytest.mark.asyncio
    async def test_failed_refresh_does_not_cache(self, fake_http, credentials, token_body):
        fake_http.add("POST", "/oauth2/token", [
            build_response(520, "gateway"),
            build_response(200, token_body),
        ])
        manager = make_manager(fake_http, credentials)

        with pytest.raises(GatewayError):
            await manager.get_token()

        assert await manager.get_token() == "token-1"
