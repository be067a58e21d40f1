"""
Shared fixtures for ReBAC service tests.
"""

import pytest
from prometheus_client import CollectorRegistry

from shared.metrics import MetricsCollector
from shared.test_helpers import FakeOpenFGA
from service_rebac.app.store.client import TupleStoreClient

API_URL = "http://openfga.test"


@pytest.fixture
def fake():
    """In-memory tuple store."""
    return FakeOpenFGA()


@pytest.fixture
def metrics():
    """Metrics collector on a private registry."""
    return MetricsCollector("rebac-test", CollectorRegistry())


@pytest.fixture
async def store(fake, metrics):
    """Gateway bootstrapped against an empty store."""
    client = TupleStoreClient(API_URL, transport=fake.transport(), metrics=metrics)
    await client.bootstrap(initial_tuples=[])
    yield client
    await client.close()
