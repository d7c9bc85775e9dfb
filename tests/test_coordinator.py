import json
from dataclasses import replace
import logging

import pytest

from credential_keeper import (
    CredentialCoordinator,
    CredentialHistory,
    CredentialStore,
    ExchangeFailedError,
    MissingCodeError,
    get_coordinator,
    set_coordinator,
)
from credential_keeper.config import AuthConfig

from conftest import FakeRefreshingProvider, make_token


def _read_file(config) -> dict:
    return json.loads(config.tokens_file.read_text())


def test_rotation_scenario_from_empty_store(coordinator, auth_config) -> None:
    coordinator.set_credential("tok-1")
    assert _read_file(auth_config) == {"current": "tok-1", "previous": []}

    coordinator.set_credential("tok-2")
    assert _read_file(auth_config) == {"current": "tok-2", "previous": ["tok-1"]}
    assert coordinator.get_credential() == "tok-2"


def test_rotation_appends_previous_current_exactly_once(coordinator, auth_config) -> None:
    a = make_token("token-a")
    b = make_token("token-b")

    coordinator.set_credential("tok-0")
    coordinator.set_credential(a)
    coordinator.set_credential(b)

    history = coordinator.store.read()
    assert history.current == b
    assert history.previous == ["tok-0", a]
    assert history.previous.count(a) == 1


def test_setting_same_credential_twice_does_not_duplicate_it(coordinator) -> None:
    coordinator.set_credential("tok-1")
    coordinator.set_credential("tok-1")

    history = coordinator.store.read()
    assert history.current == "tok-1"
    assert history.previous == []


def test_returning_credential_keeps_its_older_history_entry(coordinator) -> None:
    coordinator.set_credential("tok-a")
    coordinator.set_credential("tok-b")
    coordinator.set_credential("tok-a")

    history = coordinator.store.read()
    assert history.current == "tok-a"
    assert history.previous == ["tok-a", "tok-b"]


def test_history_limit_drops_oldest(auth_config, fake_provider) -> None:
    config = replace(auth_config, history_limit=2)
    coordinator = CredentialCoordinator(config, provider_factory=lambda _c: fake_provider)

    for value in ("tok-1", "tok-2", "tok-3", "tok-4"):
        coordinator.set_credential(value)

    history = coordinator.store.read()
    assert history.current == "tok-4"
    assert history.previous == ["tok-2", "tok-3"]


def test_set_credential_without_persist_leaves_file_alone(coordinator, auth_config) -> None:
    coordinator.set_credential("in-memory-only", persist=False)

    assert coordinator.get_credential() == "in-memory-only"
    assert not auth_config.tokens_file.exists()


def test_store_failure_does_not_block_in_memory_update(tmp_path, fake_provider, caplog) -> None:
    blocker = tmp_path / "blocked"
    blocker.write_text("")
    config = AuthConfig(client_id="id", client_secret="secret", channel_ids=["1"], tokens_location=blocker)
    coordinator = CredentialCoordinator(config, provider_factory=lambda _c: fake_provider)

    with caplog.at_level(logging.ERROR, logger="credential_keeper"):
        coordinator.set_credential("tok-1")

    assert coordinator.get_credential() == "tok-1"
    assert "Failed to write credential history" in caplog.text


def test_expiry_is_logged_for_structured_tokens(coordinator, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="credential_keeper"):
        coordinator.set_credential(make_token("token-with-expiry"))

    assert "New access-token is valid until" in caplog.text


def test_non_expiring_token_still_updates_memory(coordinator, caplog) -> None:
    token = make_token("never-expires", expires_in=None)

    with caplog.at_level(logging.INFO, logger="credential_keeper"):
        coordinator.set_credential(token)

    assert coordinator.get_credential() == token
    assert "valid until" not in caplog.text


def test_raw_tokens_are_not_logged(coordinator, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="credential_keeper"):
        coordinator.set_credential("supersecret-token-987654")

    assert "supersecret-token-987654" not in caplog.text
    assert "...987654" in caplog.text


def test_startup_loads_persisted_current(auth_config, fake_provider) -> None:
    CredentialStore(auth_config.tokens_file).write(
        CredentialHistory(current=make_token("persisted"), previous=["older"])
    )
    before = auth_config.tokens_file.read_text()

    coordinator = CredentialCoordinator(auth_config, provider_factory=lambda _c: fake_provider)

    assert coordinator.get_credential() == make_token("persisted")
    # Loaded from the file, so nothing is rewritten
    assert auth_config.tokens_file.read_text() == before


def test_startup_without_channel_identity_skips_loading(auth_config, fake_provider) -> None:
    CredentialStore(auth_config.tokens_file).write(CredentialHistory(current="persisted"))
    config = replace(auth_config, channel_ids=[])

    coordinator = CredentialCoordinator(config, provider_factory=lambda _c: fake_provider)

    assert coordinator.get_credential() is None


def test_startup_with_broken_file_starts_empty(auth_config, fake_provider) -> None:
    auth_config.tokens_location.mkdir(parents=True)
    auth_config.tokens_file.write_text("]]")

    coordinator = CredentialCoordinator(auth_config, provider_factory=lambda _c: fake_provider)

    assert coordinator.get_credential() is None


def test_authorization_code_round_trip(coordinator) -> None:
    assert coordinator.get_authorization_code() is None
    coordinator.set_authorization_code("code-1")
    assert coordinator.get_authorization_code() == "code-1"


@pytest.mark.asyncio
async def test_exchange_without_code_fails_and_touches_nothing(coordinator, fake_provider, auth_config) -> None:
    result = await coordinator.exchange_authorization_code("client-id", "client-secret")

    assert result.ok is False
    assert isinstance(result.error, MissingCodeError)
    assert fake_provider.exchange_calls == []
    assert not auth_config.tokens_file.exists()


@pytest.mark.asyncio
async def test_exchange_returns_credential_without_persisting(coordinator, fake_provider, auth_config) -> None:
    coordinator.set_authorization_code("auth-code")

    result = await coordinator.exchange_authorization_code("client-id", "client-secret")

    assert result.ok is True
    assert result.credential == fake_provider.exchange_result
    assert fake_provider.exchange_calls == [
        ("client-id", "client-secret", "auth-code", "http://localhost:3000/callback")
    ]
    assert coordinator.get_credential() is None
    assert not auth_config.tokens_file.exists()


@pytest.mark.asyncio
async def test_exchange_with_empty_provider_result_fails(coordinator, fake_provider) -> None:
    fake_provider.exchange_result = None
    coordinator.set_authorization_code("auth-code")

    result = await coordinator.exchange_authorization_code("client-id", "client-secret")

    assert isinstance(result.error, ExchangeFailedError)
    assert result.credential is None


@pytest.mark.asyncio
async def test_exchange_provider_exception_is_returned_not_raised(coordinator, fake_provider) -> None:
    fake_provider.exchange_error = RuntimeError("invalid authorization code")
    coordinator.set_authorization_code("auth-code")

    result = await coordinator.exchange_authorization_code("client-id", "client-secret")

    assert isinstance(result.error, ExchangeFailedError)
    assert isinstance(result.error.cause, RuntimeError)
    assert "invalid authorization code" in str(result.error)


@pytest.mark.asyncio
async def test_code_is_consumed_by_an_exchange(coordinator, fake_provider) -> None:
    coordinator.set_authorization_code("auth-code")

    first = await coordinator.exchange_authorization_code("client-id", "client-secret")
    second = await coordinator.exchange_authorization_code("client-id", "client-secret")

    assert first.ok is True
    assert isinstance(second.error, MissingCodeError)
    assert len(fake_provider.exchange_calls) == 1
    assert coordinator.get_authorization_code() is None


@pytest.mark.asyncio
async def test_code_is_consumed_by_a_failed_exchange(coordinator, fake_provider) -> None:
    fake_provider.exchange_error = RuntimeError("invalid authorization code")
    coordinator.set_authorization_code("auth-code")

    await coordinator.exchange_authorization_code("client-id", "client-secret")
    retry = await coordinator.exchange_authorization_code("client-id", "client-secret")

    assert isinstance(retry.error, MissingCodeError)
    assert len(fake_provider.exchange_calls) == 1


def test_scopes_and_redirect_come_from_config(coordinator) -> None:
    assert coordinator.get_scopes() == ["chat:read", "chat:edit"]
    assert coordinator.get_redirect_uri() == "http://localhost:3000/callback"


def test_global_coordinator_is_a_singleton(auth_config) -> None:
    first = get_coordinator(auth_config)
    second = get_coordinator()

    assert first is second

    replacement = CredentialCoordinator(auth_config, provider_factory=lambda _c: FakeRefreshingProvider())
    set_coordinator(replacement)
    assert get_coordinator() is replacement
