# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Type definitions for the credential keeper.

This module contains the credential record, the on-disk history shape and
the service status types shared by the coordinator, the store and the
HTTP surface.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# =============================================================================
# SERVICE STATUS
# =============================================================================


SERVICE_BOT = "bot"
SERVICE_EVENT_LISTENER = "eventListener"
KNOWN_SERVICES = (SERVICE_BOT, SERVICE_EVENT_LISTENER)


class ServiceRunningStatus(str, Enum):
    """Running state reported by a dependent service."""

    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    STOPPED_NO_ACCESS_TOKEN = "STOPPED_NO_ACCESS_TOKEN"
    STOPPED_INVALID_ACCESS_TOKEN = "STOPPED_INVALID_ACCESS_TOKEN"


@dataclass(frozen=True)
class ServiceStatus:
    status: ServiceRunningStatus = ServiceRunningStatus.STOPPED
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "reason": self.reason}


# =============================================================================
# CREDENTIALS
# =============================================================================


@dataclass(frozen=True)
class AccessToken:
    """
    A structured OAuth access token.

    Serialized with the same camelCase keys the bot service has always written,
    so an existing tokens.json keeps loading after a migration.
    """

    access_token: str
    refresh_token: Optional[str] = None
    scope: List[str] = field(default_factory=list)
    expires_in: Optional[int] = None  # seconds
    obtainment_timestamp: int = field(
        default_factory=lambda: int(time.time() * 1000)
    )  # ms since epoch

    @property
    def expiry_timestamp(self) -> Optional[int]:
        """Expiry in ms since epoch, or None for non-expiring tokens."""
        if self.expires_in is None:
            return None
        return self.obtainment_timestamp + self.expires_in * 1000

    @property
    def expiry_date(self) -> Optional[datetime]:
        expiry = self.expiry_timestamp
        if expiry is None:
            return None
        return datetime.fromtimestamp(expiry / 1000)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "scope": list(self.scope),
            "expiresIn": self.expires_in,
            "obtainmentTimestamp": self.obtainment_timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessToken":
        # Accept both the persisted camelCase shape and a raw token response
        access_token = data.get("accessToken") or data.get("access_token")
        if not access_token:
            raise ValueError("Token record is missing accessToken")

        scope = data.get("scope") or []
        if isinstance(scope, str):
            scope = scope.split()

        expires_in = data.get("expiresIn", data.get("expires_in"))
        obtained = data.get("obtainmentTimestamp")
        if obtained is None:
            obtained = int(time.time() * 1000)

        return cls(
            access_token=access_token,
            refresh_token=data.get("refreshToken") or data.get("refresh_token"),
            scope=list(scope),
            expires_in=int(expires_in) if expires_in is not None else None,
            obtainment_timestamp=int(obtained),
        )


Credential = Union[str, AccessToken]


def credential_to_json(credential: Credential) -> Union[str, Dict[str, Any]]:
    if isinstance(credential, AccessToken):
        return credential.to_dict()
    return credential


def credential_from_json(value: Any) -> Credential:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return AccessToken.from_dict(value)
    raise ValueError(f"Unsupported credential value of type {type(value).__name__}")


@dataclass
class CredentialHistory:
    """The full contents of tokens.json."""

    current: Optional[Credential] = None
    previous: List[Credential] = field(default_factory=list)

    def rotate(self, credential: Credential, limit: int = 0) -> None:
        """
        Make ``credential`` current, appending the old current to ``previous``.

        The old value is not appended when it equals the new one, so setting
        the same credential twice adds nothing. ``previous`` is append-only:
        a credential that comes back after another one (A, B, A) keeps its
        older entry, and ``previous`` then holds the current value too.
        A positive ``limit`` drops the oldest entries once ``previous`` grows
        past it.
        """
        if self.current is not None and self.current != credential:
            self.previous.append(self.current)
        self.current = credential
        if limit > 0 and len(self.previous) > limit:
            del self.previous[: len(self.previous) - limit]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": (
                credential_to_json(self.current) if self.current is not None else None
            ),
            "previous": [credential_to_json(c) for c in self.previous],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CredentialHistory":
        if not isinstance(data, dict):
            raise ValueError("Credential history must be a JSON object")

        current = data.get("current")
        previous = data.get("previous") or []
        if not isinstance(previous, list):
            raise ValueError("'previous' must be a list")

        return cls(
            current=credential_from_json(current) if current is not None else None,
            previous=[credential_from_json(c) for c in previous],
        )
