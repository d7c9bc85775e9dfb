import logging

import pytest

from credential_keeper import CredentialCoordinator

from conftest import FakeRefreshingProvider, make_token


def test_provider_is_built_lazily_once(auth_config) -> None:
    built = []

    def factory(config):
        built.append(config)
        return FakeRefreshingProvider()

    coordinator = CredentialCoordinator(auth_config, provider_factory=factory)
    assert built == []

    first = coordinator.get_refreshing_provider()
    second = coordinator.get_refreshing_provider()

    assert first is second
    assert built == [auth_config]


def test_renewal_is_rotated_into_store_and_memory(coordinator, fake_provider, auth_config) -> None:
    coordinator.set_credential(make_token("initial-token"))
    renewed = make_token("renewed-token")

    coordinator.get_refreshing_provider()
    fake_provider.renew("123456", renewed)

    history = coordinator.store.read()
    assert coordinator.get_credential() == renewed
    assert history.current == renewed
    assert history.previous == [make_token("initial-token")]


def test_renewal_failure_only_logs(coordinator, fake_provider, caplog: pytest.LogCaptureFixture) -> None:
    coordinator.set_credential("kept-token")
    before = coordinator.store.read()
    coordinator.get_refreshing_provider()

    with caplog.at_level(logging.INFO, logger="credential_keeper"):
        fake_provider.fail("123456")

    assert "Couldn't refresh the access-token for 123456" in caplog.text
    assert coordinator.get_credential() == "kept-token"
    assert coordinator.store.read() == before


def test_injected_provider_replaces_lazy_one(coordinator, fake_provider) -> None:
    injected = FakeRefreshingProvider()
    coordinator.set_refreshing_provider(injected)

    assert coordinator.get_refreshing_provider() is injected

    injected.renew("123456", make_token("from-injected"))
    assert coordinator.get_credential() == make_token("from-injected")


@pytest.mark.asyncio
async def test_start_hands_current_token_to_provider(coordinator, fake_provider) -> None:
    token = make_token("startup-token")
    coordinator.set_credential(token, persist=False)

    started = await coordinator.refreshing.start()

    assert started is True
    assert fake_provider.renewing == {"123456": token}


@pytest.mark.asyncio
async def test_start_skips_plain_string_tokens(coordinator, fake_provider) -> None:
    coordinator.set_credential("plain-token", persist=False)

    assert await coordinator.refreshing.start() is False
    assert fake_provider.renewing == {}


@pytest.mark.asyncio
async def test_close_stops_provider_only_if_built(coordinator, fake_provider) -> None:
    await coordinator.refreshing.close()
    assert fake_provider.stopped is False

    coordinator.get_refreshing_provider()
    await coordinator.refreshing.close()
    assert fake_provider.stopped is True
