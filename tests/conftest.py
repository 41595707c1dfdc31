"""
Shared fixtures: in-memory SQL environment, a controllable clock and a
network-free connector.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Tuple

import pytest

from config.settings import Settings
from connectors.base import Connector
from connectors.models import ExternalCredential
from connectors.registry import ConnectorRegistry
from core.environment import reset_environment
from database.environment import SqlEnvironment
from database.session import build_engine, build_session_factory, init_db


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeConnector(Connector):
    """Connector whose 'provider' hands out a token derived from the code."""

    def __init__(self, environment=None, *, fail_with: Optional[Exception] = None) -> None:
        super().__init__(environment, state_ttl_seconds=300)
        self.fail_with = fail_with
        self.exchanged: List[Tuple[str, dict]] = []

    @property
    def slug(self) -> str:
        return "fake"

    @property
    def display_name(self) -> str:
        return "Fake"

    @property
    def scopes(self) -> List[str]:
        return ["read"]

    def get_authorization_url(self, state: str) -> str:
        return f"https://provider.example/authorize?state={state}"

    def create_credential(self, code: str, info: Mapping[str, Any]) -> ExternalCredential:
        self.exchanged.append((code, dict(info)))
        if self.fail_with is not None:
            raise self.fail_with
        return self.store_credential(
            {
                "access_token": f"token-{code}",
                "account_id": "acct-1",
                "account_label": "fake-user",
                "expires_in": 3600,
            },
            info,
        )


@pytest.fixture(autouse=True)
def _reset_singletons():
    reset_environment()
    ConnectorRegistry.reset()
    yield
    reset_environment()
    ConnectorRegistry.reset()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings(base_rest_url="https://blog.example/api/v1", oauth_state_ttl_seconds=600)


@pytest.fixture
def environment(session_factory, clock, settings) -> SqlEnvironment:
    return SqlEnvironment(session_factory, settings=settings, clock=clock)


@pytest.fixture
def fake_connector(environment) -> FakeConnector:
    connector = FakeConnector(environment)
    ConnectorRegistry().register(connector)
    return connector
