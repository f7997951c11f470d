import random

import pytest

from bluff.messaging.router import MessageRouter
from bluff.server.app import create_app
from bluff.server.settings import GameServerSettings
from bluff.session.connections import Broadcaster
from bluff.session.registry import GameRegistry
from bluff.tests.mocks import MockConnection


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def registry(rng):
    return GameRegistry(rng=rng)


@pytest.fixture
def broadcaster(registry):
    return Broadcaster(registry)


@pytest.fixture
def message_router(registry, broadcaster):
    return MessageRouter(registry, broadcaster)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def settings():
    return GameServerSettings(max_capacity=10, log_dir="unused")


@pytest.fixture
def app(settings, registry, broadcaster, message_router):
    return create_app(
        settings=settings,
        registry=registry,
        broadcaster=broadcaster,
        message_router=message_router,
    )
