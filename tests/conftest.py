import sys
from pathlib import Path
from typing import Optional

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from credential_keeper import AccessToken, AuthConfig, CredentialCoordinator, set_coordinator
from credential_keeper.providers.provider_interface import RefreshingProvider


class FakeRefreshingProvider(RefreshingProvider):
    """In-memory provider that records calls and lets tests trigger renewals."""

    def __init__(self, exchange_result: Optional[AccessToken] = None, exchange_error: Optional[Exception] = None):
        super().__init__()
        self.exchange_result = exchange_result
        self.exchange_error = exchange_error
        self.exchange_calls: list[tuple[str, str, str, str]] = []
        self.renewing: dict[str, AccessToken] = {}
        self.stopped = False

    async def exchange_code(self, client_id, client_secret, code, redirect_uri):
        self.exchange_calls.append((client_id, client_secret, code, redirect_uri))
        if self.exchange_error is not None:
            raise self.exchange_error
        return self.exchange_result

    async def start_auto_renewal(self, user_id, token):
        self.renewing[user_id] = token

    async def stop(self):
        self.stopped = True

    def renew(self, user_id: str, token: AccessToken) -> None:
        self.renewing[user_id] = token
        self._emit_renewal(user_id, token)

    def fail(self, user_id: str) -> None:
        self._emit_renewal_failure(user_id)


def make_token(value: str = "access-abcdef123456", expires_in: Optional[int] = 14400) -> AccessToken:
    return AccessToken(
        access_token=value,
        refresh_token=f"refresh-{value}",
        scope=["chat:read", "chat:edit"],
        expires_in=expires_in,
        obtainment_timestamp=1_700_000_000_000,
    )


@pytest.fixture(autouse=True)
def reset_global_coordinator():
    set_coordinator(None)
    yield
    set_coordinator(None)


@pytest.fixture
def auth_config(tmp_path: Path) -> AuthConfig:
    return AuthConfig(
        client_id="client-id",
        client_secret="client-secret",
        channel_ids=["123456"],
        scopes=["chat:read", "chat:edit"],
        redirect_uri="http://localhost:3000/callback",
        tokens_location=tmp_path / "tokens",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def fake_provider() -> FakeRefreshingProvider:
    return FakeRefreshingProvider(exchange_result=make_token("exchanged-token-000001"))


@pytest.fixture
def coordinator(auth_config: AuthConfig, fake_provider: FakeRefreshingProvider) -> CredentialCoordinator:
    return CredentialCoordinator(auth_config, provider_factory=lambda _config: fake_provider)
