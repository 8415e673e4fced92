"""
Pytest configuration for session_client. In-memory SQLite and a fixed signing secret so the
end-to-end tests can run identity_provider in-process.
"""
import os

import pytest

os.environ["IDP_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["IDP_SIGNING_SECRET"] = "test-signing-secret-0123456789abcdef"
os.environ.pop("IDP_SEED_EMAIL", None)
os.environ.pop("IDP_SEED_PASSWORD", None)

from session_client.gateway import NetworkGateway  # noqa: E402
from session_client.session import SessionController  # noqa: E402
from session_client.storage import MemoryStorage  # noqa: E402
from session_client.tests.fakes import BASE_URL, FakeClock, ScriptedProvider  # noqa: E402


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def gateway(provider):
    return NetworkGateway(transport=provider.transport, timeout=5.0)


@pytest.fixture
def session(gateway, clock, storage):
    return SessionController(gateway, base_url=BASE_URL, clock=clock, storage=storage)
