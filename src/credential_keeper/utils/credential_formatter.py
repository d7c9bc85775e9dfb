# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Utility for formatting credentials for display in logs.

Access tokens are bearer secrets, so log lines only ever carry the last
6 characters of the token string. Structured tokens additionally show
their scopes and expiry.
"""

from typing import Optional

from ..types import AccessToken, Credential


def mask_secret(secret: Optional[str]) -> str:
    """
    Mask a secret string down to its last 6 characters.

    Examples:
        >>> mask_secret("abcdefghijklmnop")
        "...klmnop"
        >>> mask_secret(None)
        "<none>"
    """
    if not secret:
        return "<none>"
    return f"...{secret[-6:]}"


def format_credential_for_display(credential: Optional[Credential]) -> str:
    """
    Format a credential for display in logs.

    For plain token strings, returns the masked string.
    For structured tokens, returns the masked access token with its scopes
    and expiry.
    """
    if credential is None:
        return "<none>"
    if isinstance(credential, AccessToken):
        expiry = credential.expiry_date
        expires = expiry.isoformat(timespec="seconds") if expiry else "never"
        scopes = ",".join(credential.scope) or "-"
        return f"{mask_secret(credential.access_token)} (scopes: {scopes}, expires: {expires})"
    return mask_secret(credential)
