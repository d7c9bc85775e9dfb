# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/credential_keeper/providers/twitch_auth_base.py
"""
Twitch OAuth2 refreshing provider.

Handles the authorization-code exchange and keeps user access tokens fresh
by refreshing them shortly before they expire.

OAuth Configuration:
- Authorization URL: https://id.twitch.tv/oauth2/authorize
- Token URL: https://id.twitch.tv/oauth2/token
- Redirect URI: configured (REDIRECT_URI)
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from ..config import AuthConfig, DEFAULT_REFRESH_EXPIRY_BUFFER
from ..failure_logger import CATEGORY_REFRESHING_PROVIDER
from ..types import AccessToken
from ..utils.credential_formatter import mask_secret
from .provider_interface import RefreshingProvider

lib_logger = logging.getLogger("credential_keeper")

# =============================================================================
# OAUTH CONFIGURATION
# =============================================================================

TWITCH_AUTH_URL = "https://id.twitch.tv/oauth2/authorize"
TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"

DEFAULT_HTTP_TIMEOUT: float = 30.0
# Floor between two refreshes of the same user, whatever the token lifetime
MIN_RENEWAL_INTERVAL_SECONDS: float = 30.0


def build_authorize_url(
    client_id: str,
    redirect_uri: str,
    scopes: List[str],
    state: Optional[str] = None,
    auth_url: str = TWITCH_AUTH_URL,
) -> str:
    """Build the URL the login route redirects the broadcaster to."""
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": " ".join(scopes),
    }
    if state:
        params["state"] = state
    return f"{auth_url}?{urlencode(params)}"


def _token_from_response(token_data: Any) -> Optional[AccessToken]:
    if not isinstance(token_data, dict):
        raise ValueError(
            f"Unexpected token response of type {type(token_data).__name__}"
        )
    if not token_data.get("access_token"):
        return None
    scope = token_data.get("scope") or []
    if isinstance(scope, str):
        scope = scope.split()
    expires_in = token_data.get("expires_in")
    return AccessToken(
        access_token=token_data["access_token"],
        refresh_token=token_data.get("refresh_token"),
        scope=list(scope),
        expires_in=int(expires_in) if expires_in is not None else None,
        obtainment_timestamp=int(time.time() * 1000),
    )


class TwitchRefreshingProvider(RefreshingProvider):
    """
    Refreshing provider backed by the Twitch identity endpoints.

    Each registered user gets one background task that sleeps until the
    token is within REFRESH_EXPIRY_BUFFER_SECONDS of expiring, refreshes it
    and reports the new token. A failed refresh is reported once and ends
    that user's renewal loop; re-authentication is left to the login flow.
    """

    TOKEN_URL: str = TWITCH_TOKEN_URL

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        app_implied_scopes: Optional[List[str]] = None,
        redirect_uri: Optional[str] = None,
        refresh_expiry_buffer_seconds: int = DEFAULT_REFRESH_EXPIRY_BUFFER,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.client_id = client_id
        self.client_secret = client_secret
        self.app_implied_scopes = list(app_implied_scopes or [])
        self.redirect_uri = redirect_uri
        self.refresh_expiry_buffer_seconds = refresh_expiry_buffer_seconds
        self._transport = transport

        self._tokens: Dict[str, AccessToken] = {}
        self._renewal_tasks: Dict[str, asyncio.Task] = {}
        self._refresh_locks: Dict[str, asyncio.Lock] = {}

    @classmethod
    def from_config(cls, config: AuthConfig) -> "TwitchRefreshingProvider":
        return cls(
            client_id=config.client_id,
            client_secret=config.client_secret,
            app_implied_scopes=config.scopes,
            redirect_uri=config.redirect_uri,
            refresh_expiry_buffer_seconds=config.refresh_expiry_buffer_seconds,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=DEFAULT_HTTP_TIMEOUT, transport=self._transport)

    def _get_lock(self, user_id: str) -> asyncio.Lock:
        if user_id not in self._refresh_locks:
            self._refresh_locks[user_id] = asyncio.Lock()
        return self._refresh_locks[user_id]

    async def exchange_code(
        self, client_id: str, client_secret: str, code: str, redirect_uri: str
    ) -> Optional[AccessToken]:
        lib_logger.info(
            "Exchanging authorization code for tokens...",
            extra={"category": CATEGORY_REFRESHING_PROVIDER},
        )
        async with self._client() as client:
            response = await client.post(
                self.TOKEN_URL,
                data={
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "code": code.strip(),
                    "grant_type": "authorization_code",
                    "redirect_uri": redirect_uri,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
            response.raise_for_status()
            token_data = response.json()

        return _token_from_response(token_data)

    async def refresh(self, user_id: str) -> AccessToken:
        """
        Refresh the access token for ``user_id`` using its refresh token.

        Raises:
            ValueError: if the user is unknown or has no refresh token
            httpx.HTTPError: if the identity provider rejected the refresh
        """
        async with self._get_lock(user_id):
            token = self._tokens.get(user_id)
            if token is None:
                raise ValueError(f"No token registered for user '{user_id}'")
            if not token.refresh_token:
                raise ValueError(f"No refresh_token for user '{user_id}'")

            lib_logger.debug(
                f"Refreshing Twitch token for '{user_id}' ({mask_secret(token.access_token)})...",
                extra={"category": CATEGORY_REFRESHING_PROVIDER},
            )

            async with self._client() as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "grant_type": "refresh_token",
                        "refresh_token": token.refresh_token,
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
                response.raise_for_status()
                token_data = response.json()

            new_token = _token_from_response(token_data)
            if new_token is None:
                raise ValueError(f"Refresh response missing access_token for '{user_id}'")
            if new_token.refresh_token is None:
                # Twitch rotates refresh tokens, but keep the old one if it didn't
                new_token = AccessToken(
                    access_token=new_token.access_token,
                    refresh_token=token.refresh_token,
                    scope=new_token.scope,
                    expires_in=new_token.expires_in,
                    obtainment_timestamp=new_token.obtainment_timestamp,
                )

            self._tokens[user_id] = new_token

        self._emit_renewal(user_id, new_token)
        return new_token

    def _seconds_until_refresh(self, token: AccessToken) -> Optional[float]:
        expiry = token.expiry_timestamp
        if expiry is None:
            return None
        # The buffer never exceeds half the token lifetime
        buffer = min(self.refresh_expiry_buffer_seconds, (token.expires_in or 0) / 2)
        return max(0.0, expiry / 1000 - time.time() - buffer)

    async def _renewal_loop(self, user_id: str) -> None:
        min_delay = 0.0
        while True:
            token = self._tokens.get(user_id)
            if token is None:
                return
            delay = self._seconds_until_refresh(token)
            if delay is None:
                lib_logger.debug(
                    f"Token for '{user_id}' does not expire, nothing to renew.",
                    extra={"category": CATEGORY_REFRESHING_PROVIDER},
                )
                return

            await asyncio.sleep(max(delay, min_delay))
            min_delay = MIN_RENEWAL_INTERVAL_SECONDS

            try:
                await self.refresh(user_id)
            except (httpx.HTTPError, ValueError) as e:
                lib_logger.error(
                    f"Failed to refresh Twitch token for '{user_id}': {e}",
                    extra={"category": CATEGORY_REFRESHING_PROVIDER},
                )
                self._emit_renewal_failure(user_id)
                return

    async def start_auto_renewal(self, user_id: str, token: AccessToken) -> None:
        self._tokens[user_id] = token

        existing = self._renewal_tasks.get(user_id)
        if existing and not existing.done():
            existing.cancel()

        self._renewal_tasks[user_id] = asyncio.create_task(self._renewal_loop(user_id))
        lib_logger.info(
            f"Auto-renewal started for '{user_id}'.",
            extra={"category": CATEGORY_REFRESHING_PROVIDER},
        )

    async def stop(self) -> None:
        tasks = [t for t in self._renewal_tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._renewal_tasks.clear()
