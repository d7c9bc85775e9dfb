# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

from fastapi import Request

from credential_keeper import CredentialCoordinator


def get_credential_coordinator(request: Request) -> CredentialCoordinator:
    """Dependency to get the credential coordinator from the app state."""
    return request.app.state.coordinator
