# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from .config import AuthConfig
from .coordinator import (
    CredentialCoordinator,
    ExchangeResult,
    get_coordinator,
    set_coordinator,
)
from .error_handler import (
    CredentialKeeperError,
    ExchangeFailedError,
    MissingCodeError,
    StorageError,
)
from .storage import CredentialStore, ReadOutcome, ReadResult
from .types import (
    AccessToken,
    Credential,
    CredentialHistory,
    ServiceRunningStatus,
    ServiceStatus,
    SERVICE_BOT,
    SERVICE_EVENT_LISTENER,
)

__all__ = [
    "AuthConfig",
    "CredentialCoordinator",
    "ExchangeResult",
    "get_coordinator",
    "set_coordinator",
    "CredentialKeeperError",
    "ExchangeFailedError",
    "MissingCodeError",
    "StorageError",
    "CredentialStore",
    "ReadOutcome",
    "ReadResult",
    "AccessToken",
    "Credential",
    "CredentialHistory",
    "ServiceRunningStatus",
    "ServiceStatus",
    "SERVICE_BOT",
    "SERVICE_EVENT_LISTENER",
]
