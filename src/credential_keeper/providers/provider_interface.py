# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ..types import AccessToken

RenewalCallback = Callable[[str, AccessToken], None]
RenewalFailureCallback = Callable[[str], None]


class RefreshingProvider(ABC):
    """
    An interface for the auto-refreshing credential capability.

    The coordinator only ever talks to this interface, so the concrete
    provider (the HTTP-backed Twitch one, or a fake in tests) can be swapped.
    Renewal and renewal-failure listeners are registered once and invoked
    for every user the provider renews.
    """

    def __init__(self):
        self._renewal_callbacks: List[RenewalCallback] = []
        self._failure_callbacks: List[RenewalFailureCallback] = []

    def on_renewal(self, callback: RenewalCallback) -> None:
        """Registers a listener called with ``(user_id, new_token)`` after each renewal."""
        self._renewal_callbacks.append(callback)

    def on_renewal_failure(self, callback: RenewalFailureCallback) -> None:
        """Registers a listener called with ``user_id`` when a renewal fails."""
        self._failure_callbacks.append(callback)

    def _emit_renewal(self, user_id: str, token: AccessToken) -> None:
        for callback in list(self._renewal_callbacks):
            callback(user_id, token)

    def _emit_renewal_failure(self, user_id: str) -> None:
        for callback in list(self._failure_callbacks):
            callback(user_id)

    @abstractmethod
    async def exchange_code(
        self, client_id: str, client_secret: str, code: str, redirect_uri: str
    ) -> Optional[AccessToken]:
        """
        Exchanges an authorization code for an access token.

        Returns:
            The new token, or None if the identity provider returned none.
        """
        pass

    @abstractmethod
    async def start_auto_renewal(self, user_id: str, token: AccessToken) -> None:
        """
        Starts keeping ``token`` fresh for ``user_id``.

        Every renewal is reported through the on_renewal listeners.
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stops all background renewal."""
        pass
