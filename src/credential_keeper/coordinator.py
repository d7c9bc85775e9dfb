# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Credential Coordinator

Orchestrates the access-token lifecycle for the single Twitch identity the
bot and the event listener run as:

- captures the authorization code handed back to the login callback
- exchanges it for an access token through the refreshing provider
- rotates every new token into tokens.json (current + previous)
- keeps the in-memory token and the service statuses

Usage:
    coordinator = CredentialCoordinator(AuthConfig.from_env())
    coordinator.set_authorization_code(code)
    result = await coordinator.exchange_authorization_code(client_id, client_secret)
    if result.ok:
        coordinator.set_credential(result.credential)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from .config import AuthConfig
from .error_handler import (
    CredentialKeeperError,
    ExchangeFailedError,
    MissingCodeError,
    StorageError,
)
from .failure_logger import CATEGORY_ACCESS_TOKEN
from .providers.provider_interface import RefreshingProvider
from .refreshing import ProviderFactory, RefreshingProviderAdapter
from .status import ServiceStatusRegistry
from .storage import CredentialStore
from .types import AccessToken, Credential, CredentialHistory, ServiceStatus
from .utils.credential_formatter import format_credential_for_display

lib_logger = logging.getLogger("credential_keeper")

EXPIRY_DISPLAY_FORMAT = "%d.%m.%y %H:%M:%S"


@dataclass
class ExchangeResult:
    """
    Result of an authorization-code exchange.

    Exactly one of ``credential`` and ``error`` is set.
    """

    credential: Optional[AccessToken] = None
    error: Optional[CredentialKeeperError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.credential is not None


class CredentialCoordinator:
    """
    Owns the in-memory access token, the pending authorization code and the
    service statuses; tokens.json (through the store) is the source of truth
    across restarts.
    """

    def __init__(
        self,
        config: AuthConfig,
        store: Optional[CredentialStore] = None,
        provider_factory: Optional[ProviderFactory] = None,
    ):
        self._config = config
        self._store = store or CredentialStore(config.tokens_file)
        self._code: Optional[str] = None
        self._credential: Optional[Credential] = None
        self._scopes: List[str] = list(config.scopes)
        self._redirect_uri: str = config.redirect_uri
        self._statuses = ServiceStatusRegistry()
        self._refreshing = RefreshingProviderAdapter(self, config, provider_factory)

        self._load_persisted_credential()

    def _load_persisted_credential(self) -> None:
        if not self._store.exists():
            return
        # Without a channel to join the stored token is of no use to the bot
        if not self._config.has_channel_identity:
            return

        history = self._store.read()
        if history and history.current is not None:
            self.set_credential(history.current, persist=False)

    @property
    def config(self) -> AuthConfig:
        return self._config

    @property
    def store(self) -> CredentialStore:
        return self._store

    # -------------------------------------------------------------------------
    # Authorization code
    # -------------------------------------------------------------------------

    def set_authorization_code(self, code: str) -> None:
        self._code = code

    def get_authorization_code(self) -> Optional[str]:
        return self._code

    async def exchange_authorization_code(
        self, client_id: str, client_secret: str
    ) -> ExchangeResult:
        """
        Exchange the pending authorization code for an access token.

        The new token is returned, not persisted; pass it to set_credential.
        Failures are returned in the result instead of being raised.
        """
        if not self._code:
            return ExchangeResult(error=MissingCodeError())

        # Authorization codes are single-use
        code, self._code = self._code, None
        try:
            token = await self.get_refreshing_provider().exchange_code(
                client_id, client_secret, code, self._redirect_uri
            )
        except Exception as e:
            lib_logger.error(
                f"Authorization-code exchange failed: {e}",
                extra={"category": CATEGORY_ACCESS_TOKEN},
            )
            return ExchangeResult(
                error=ExchangeFailedError(
                    f"Couldn't exchange the authorization-code for an access-token: {e}",
                    cause=e,
                )
            )

        if not token:
            return ExchangeResult(error=ExchangeFailedError())
        return ExchangeResult(credential=token)

    # -------------------------------------------------------------------------
    # Access token
    # -------------------------------------------------------------------------

    def set_credential(self, credential: Credential, persist: bool = True) -> None:
        """
        Make ``credential`` the current access token.

        With ``persist`` the old current token is moved into the history and
        tokens.json is rewritten. A failing store is logged and never stops
        the in-memory update.
        """
        if persist:
            try:
                history = self._store.read() or CredentialHistory()
                history.rotate(credential, limit=self._config.history_limit)
                self._store.write(history)
            except StorageError as e:
                lib_logger.error(str(e), extra={"category": CATEGORY_ACCESS_TOKEN})

        if isinstance(credential, AccessToken):
            expire_date = credential.expiry_date
            if expire_date:
                lib_logger.info(
                    "New access-token is valid until "
                    + expire_date.strftime(EXPIRY_DISPLAY_FORMAT),
                    extra={"category": CATEGORY_ACCESS_TOKEN},
                )

        previous = self._credential
        self._credential = credential
        lib_logger.info(
            f"Updated access-token from {format_credential_for_display(previous)} "
            f"to {format_credential_for_display(credential)}",
            extra={"category": CATEGORY_ACCESS_TOKEN},
        )

    def get_credential(self) -> Optional[Credential]:
        return self._credential

    def has_credential(self) -> bool:
        return self._credential is not None

    def get_scopes(self) -> List[str]:
        return list(self._scopes)

    def get_redirect_uri(self) -> str:
        return self._redirect_uri

    # -------------------------------------------------------------------------
    # Service status
    # -------------------------------------------------------------------------

    def get_status(self, service: str) -> ServiceStatus:
        return self._statuses.get(service)

    def set_status(self, service: str, status: ServiceStatus) -> None:
        self._statuses.update(service, status)

    def update_status(self, service: str, status: ServiceStatus) -> None:
        self._statuses.update(service, status)

    def get_all_statuses(self) -> Dict[str, ServiceStatus]:
        return self._statuses.get_all()

    def replace_statuses(self, statuses: Mapping[str, ServiceStatus]) -> None:
        self._statuses.replace_all(statuses)

    # -------------------------------------------------------------------------
    # Refreshing provider
    # -------------------------------------------------------------------------

    @property
    def refreshing(self) -> RefreshingProviderAdapter:
        return self._refreshing

    def get_refreshing_provider(self) -> RefreshingProvider:
        return self._refreshing.provider

    def set_refreshing_provider(self, provider: RefreshingProvider) -> None:
        self._refreshing.set_provider(provider)


# Process-wide coordinator for components that are not handed one explicitly
_coordinator: Optional[CredentialCoordinator] = None


def get_coordinator(config: Optional[AuthConfig] = None) -> CredentialCoordinator:
    """
    Get the global credential coordinator instance.

    Args:
        config: Configuration used on first access; read from the
            environment when omitted

    Returns:
        CredentialCoordinator instance
    """
    global _coordinator

    if _coordinator is None:
        _coordinator = CredentialCoordinator(config or AuthConfig.from_env())

    return _coordinator


def set_coordinator(coordinator: Optional[CredentialCoordinator]) -> None:
    """Install (or with None, forget) the global coordinator."""
    global _coordinator
    _coordinator = coordinator
