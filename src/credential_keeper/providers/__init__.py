# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from .provider_interface import RefreshingProvider
from .twitch_auth_base import TwitchRefreshingProvider, build_authorize_url

__all__ = ["RefreshingProvider", "TwitchRefreshingProvider", "build_authorize_url"]
