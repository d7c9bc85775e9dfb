# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .error_handler import ConfigValidationError

lib_logger = logging.getLogger("credential_keeper")


TOKENS_FILE_NAME = "tokens.json"

DEFAULT_REDIRECT_URI = "http://localhost:3000/callback"
DEFAULT_TOKENS_LOCATION = "tokens"
DEFAULT_LOG_DIR = "logs"
DEFAULT_REFRESH_EXPIRY_BUFFER: int = 5 * 60  # 5 minutes before expiry

# Chat bot + event listener scopes
DEFAULT_SCOPES = [
    "chat:read",
    "chat:edit",
    "channel:moderate",
    "moderator:read:followers",
    "channel:read:redemptions",
    "channel:read:subscriptions",
    "bits:read",
]


def _split_list_env(name: str, default: str = "") -> list[str]:
    raw = os.getenv(name, default)
    values = [value.strip() for value in re.split(r"[,\s]+", raw)]
    return [value for value in values if value]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        lib_logger.warning(f"Invalid {name} value: {raw}, using default {default}")
        return default


@dataclass(frozen=True)
class AuthConfig:
    """
    Everything the credential keeper reads from the environment, collected
    into a single value that is passed to the coordinator and the provider.
    """

    client_id: str = ""
    client_secret: str = ""
    channel_ids: list[str] = field(default_factory=list)
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    redirect_uri: str = DEFAULT_REDIRECT_URI
    tokens_location: Path = Path(DEFAULT_TOKENS_LOCATION)
    history_limit: int = 0
    refresh_expiry_buffer_seconds: int = DEFAULT_REFRESH_EXPIRY_BUFFER
    log_dir: Path = Path(DEFAULT_LOG_DIR)

    @property
    def tokens_file(self) -> Path:
        return self.tokens_location / TOKENS_FILE_NAME

    @property
    def has_channel_identity(self) -> bool:
        return len(self.channel_ids) > 0

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "AuthConfig":
        load_dotenv(env_file)

        scopes = _split_list_env("TWITCH_SCOPES") or list(DEFAULT_SCOPES)
        history_limit = max(0, _int_env("CREDENTIAL_HISTORY_LIMIT", 0))

        return cls(
            client_id=(os.getenv("CLIENT_ID") or "").strip(),
            client_secret=(os.getenv("CLIENT_SECRET") or "").strip(),
            channel_ids=_split_list_env("TWITCH_CHANNELS_ID"),
            scopes=scopes,
            redirect_uri=(os.getenv("REDIRECT_URI") or "").strip()
            or DEFAULT_REDIRECT_URI,
            tokens_location=Path(
                os.getenv("TOKENS_LOCATION") or DEFAULT_TOKENS_LOCATION
            ),
            history_limit=history_limit,
            refresh_expiry_buffer_seconds=_int_env(
                "REFRESH_EXPIRY_BUFFER_SECONDS", DEFAULT_REFRESH_EXPIRY_BUFFER
            ),
            log_dir=Path(os.getenv("LOG_DIR") or DEFAULT_LOG_DIR),
        )

    def validate(self) -> None:
        invalid_reasons: list[str] = []
        if not self.client_id:
            invalid_reasons.append("CLIENT_ID is missing")
        if not self.client_secret:
            invalid_reasons.append("CLIENT_SECRET is missing")

        if invalid_reasons:
            raise ConfigValidationError(
                "Refusing startup due to incomplete OAuth client settings: "
                + "; ".join(invalid_reasons)
                + "."
            )

        if not self.has_channel_identity:
            lib_logger.warning(
                "TWITCH_CHANNELS_ID is not set. A stored access-token will not be "
                "loaded at startup."
            )
