# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

import logging
import secrets
import time
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from credential_keeper import AccessToken, CredentialCoordinator
from credential_keeper.providers import build_authorize_url
from keeper_app.dependencies import get_credential_coordinator

router = APIRouter(tags=["auth"])

OAUTH_STATE_TTL_SECONDS: float = 10 * 60
MAX_PENDING_OAUTH_STATES = 100


class CallbackResponse(BaseModel):
    ok: bool
    scopes: list[str]
    expires_at: Optional[str] = None
    auto_renewal: bool


def _pending_states(request: Request) -> Dict[str, float]:
    """OAuth states handed out by /login, mapped to when they were issued."""
    if not hasattr(request.app.state, "pending_oauth_states"):
        request.app.state.pending_oauth_states = {}
    return request.app.state.pending_oauth_states


def _prune_states(pending: Dict[str, float], now: float) -> None:
    for state, issued_at in list(pending.items()):
        if now - issued_at > OAUTH_STATE_TTL_SECONDS:
            del pending[state]
    # Insertion order is issue order, so the oldest go first
    while len(pending) >= MAX_PENDING_OAUTH_STATES:
        del pending[next(iter(pending))]


@router.get("/login")
async def login(
    request: Request,
    coordinator: CredentialCoordinator = Depends(get_credential_coordinator),
) -> RedirectResponse:
    config = coordinator.config
    if not config.client_id:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="CLIENT_ID is not configured",
        )

    now = time.monotonic()
    pending = _pending_states(request)
    _prune_states(pending, now)
    state = secrets.token_urlsafe(16)
    pending[state] = now

    url = build_authorize_url(
        client_id=config.client_id,
        redirect_uri=coordinator.get_redirect_uri(),
        scopes=coordinator.get_scopes(),
        state=state,
    )
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get("/callback", response_model=CallbackResponse)
async def callback(
    request: Request,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    error_description: Optional[str] = Query(default=None),
    coordinator: CredentialCoordinator = Depends(get_credential_coordinator),
) -> CallbackResponse:
    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Authorization was not granted: {error_description or error}",
        )

    issued_at = _pending_states(request).pop(state, None) if state else None
    if issued_at is None or time.monotonic() - issued_at > OAUTH_STATE_TTL_SECONDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unknown, expired or missing OAuth state, visit /login again",
        )

    if code:
        coordinator.set_authorization_code(code)

    config = coordinator.config
    result = await coordinator.exchange_authorization_code(
        config.client_id, config.client_secret
    )
    if not result.ok:
        logging.warning(f"Login callback failed: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(result.error),
        )

    token: AccessToken = result.credential
    coordinator.set_credential(token)
    auto_renewal = await coordinator.refreshing.start()

    expiry = token.expiry_date
    return CallbackResponse(
        ok=True,
        scopes=token.scope,
        expires_at=expiry.isoformat(timespec="seconds") if expiry else None,
        auto_renewal=auto_renewal,
    )
