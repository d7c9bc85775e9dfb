# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from credential_keeper import (
    CredentialCoordinator,
    ServiceRunningStatus,
    ServiceStatus,
)
from keeper_app.dependencies import get_credential_coordinator

router = APIRouter(prefix="/status", tags=["status"])


class ServiceStatusModel(BaseModel):
    status: ServiceRunningStatus
    reason: Optional[str] = None


class StatusResponse(BaseModel):
    has_access_token: bool
    services: dict[str, ServiceStatusModel]


def _build_status_response(coordinator: CredentialCoordinator) -> StatusResponse:
    return StatusResponse(
        has_access_token=coordinator.has_credential(),
        services={
            name: ServiceStatusModel(status=s.status, reason=s.reason)
            for name, s in coordinator.get_all_statuses().items()
        },
    )


@router.get("", response_model=StatusResponse)
async def get_status(
    coordinator: CredentialCoordinator = Depends(get_credential_coordinator),
) -> StatusResponse:
    return _build_status_response(coordinator)


@router.put("/{service}", response_model=StatusResponse)
async def update_service_status(
    service: str,
    payload: ServiceStatusModel,
    coordinator: CredentialCoordinator = Depends(get_credential_coordinator),
) -> StatusResponse:
    try:
        coordinator.update_status(
            service, ServiceStatus(status=payload.status, reason=payload.reason)
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _build_status_response(coordinator)
