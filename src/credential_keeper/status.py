# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from typing import Dict, Mapping

from .types import KNOWN_SERVICES, ServiceRunningStatus, ServiceStatus


class ServiceStatusRegistry:
    """
    Running state of the services that consume the access token.

    No transition rules are enforced; the bot and the event listener pick
    their own transitions (e.g. STOPPED_NO_ACCESS_TOKEN when they start
    without a token).
    """

    def __init__(self):
        self._statuses: Dict[str, ServiceStatus] = {
            service: ServiceStatus(ServiceRunningStatus.STOPPED) for service in KNOWN_SERVICES
        }

    @staticmethod
    def _check_service(service: str) -> None:
        if service not in KNOWN_SERVICES:
            raise ValueError(
                f"Unknown service '{service}', expected one of {', '.join(KNOWN_SERVICES)}"
            )

    def get(self, service: str) -> ServiceStatus:
        self._check_service(service)
        return self._statuses[service]

    def get_all(self) -> Dict[str, ServiceStatus]:
        return dict(self._statuses)

    def replace_all(self, statuses: Mapping[str, ServiceStatus]) -> None:
        for service in statuses:
            self._check_service(service)
        missing = [s for s in KNOWN_SERVICES if s not in statuses]
        if missing:
            raise ValueError(f"Missing status for {', '.join(missing)}")
        self._statuses = dict(statuses)

    def update(self, service: str, status: ServiceStatus) -> None:
        self._check_service(service)
        self._statuses[service] = status
