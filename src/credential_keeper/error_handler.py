# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from typing import Optional


class CredentialKeeperError(Exception):
    """Base class for all credential keeper errors."""


class MissingCodeError(CredentialKeeperError):
    """Raised when an exchange is attempted before an authorization code was captured."""

    def __init__(self, message: str = "No code provided, visit /login to retrieve one"):
        super().__init__(message)


class ExchangeFailedError(CredentialKeeperError):
    """Raised when the provider did not return a credential for the authorization code."""

    def __init__(
        self,
        message: str = "Couldn't exchange the authorization-code for an access-token",
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.cause = cause


class StorageError(CredentialKeeperError):
    """Raised when the credential history file cannot be read, parsed or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ConfigValidationError(CredentialKeeperError):
    pass
