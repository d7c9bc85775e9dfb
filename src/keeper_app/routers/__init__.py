# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

from keeper_app.routers.auth_api import router as auth_router
from keeper_app.routers.status_api import router as status_router

__all__ = ["auth_router", "status_router"]
