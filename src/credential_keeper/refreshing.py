# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import logging
from typing import TYPE_CHECKING, Callable, Optional

from .config import AuthConfig
from .failure_logger import CATEGORY_REFRESHING_PROVIDER
from .providers.provider_interface import RefreshingProvider
from .types import AccessToken

if TYPE_CHECKING:
    from .coordinator import CredentialCoordinator

lib_logger = logging.getLogger("credential_keeper")

ProviderFactory = Callable[[AuthConfig], RefreshingProvider]


def _default_provider_factory(config: AuthConfig) -> RefreshingProvider:
    from .providers.twitch_auth_base import TwitchRefreshingProvider

    return TwitchRefreshingProvider.from_config(config)


class RefreshingProviderAdapter:
    """
    Owns the single refreshing provider of the process.

    The provider is built on first access and its renewal listeners are
    pointed back at the coordinator, so every renewal made by the provider
    is rotated into tokens.json and the in-memory token.
    """

    def __init__(
        self,
        coordinator: "CredentialCoordinator",
        config: AuthConfig,
        provider_factory: Optional[ProviderFactory] = None,
    ):
        self._coordinator = coordinator
        self._config = config
        self._provider_factory = provider_factory or _default_provider_factory
        self._provider: Optional[RefreshingProvider] = None

    @property
    def provider(self) -> RefreshingProvider:
        if self._provider is None:
            self._provider = self._wire(self._provider_factory(self._config))
        return self._provider

    def set_provider(self, provider: RefreshingProvider) -> None:
        """Replace the provider wholesale (e.g. with a fake in tests)."""
        self._provider = self._wire(provider)

    def _wire(self, provider: RefreshingProvider) -> RefreshingProvider:
        provider.on_renewal(self._handle_renewal)
        provider.on_renewal_failure(self._handle_renewal_failure)
        return provider

    def _handle_renewal(self, user_id: str, new_token: AccessToken) -> None:
        lib_logger.info(
            f"Refresh token for {user_id} was refreshed",
            extra={"category": CATEGORY_REFRESHING_PROVIDER},
        )
        self._coordinator.set_credential(new_token)

    def _handle_renewal_failure(self, user_id: str) -> None:
        lib_logger.info(
            f"Couldn't refresh the access-token for {user_id}",
            extra={"category": CATEGORY_REFRESHING_PROVIDER},
        )

    def default_user_id(self) -> str:
        if self._config.channel_ids:
            return self._config.channel_ids[0]
        return "default"

    async def start(self, user_id: Optional[str] = None) -> bool:
        """
        Hand the coordinator's current token to the provider for auto-renewal.

        Returns:
            False when there is no structured token to renew
        """
        credential = self._coordinator.get_credential()
        if not isinstance(credential, AccessToken):
            lib_logger.info(
                "No refreshable access-token loaded, auto-renewal not started.",
                extra={"category": CATEGORY_REFRESHING_PROVIDER},
            )
            return False
        await self.provider.start_auto_renewal(user_id or self.default_user_id(), credential)
        return True

    async def close(self) -> None:
        if self._provider is not None:
            await self._provider.stop()
