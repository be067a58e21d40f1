"""
Tests for the ReBAC service wiring.
"""

import pytest

from shared.config import get_config
from shared.errors import BackendError, NotInitializedError
from service_rebac.app.main import ReBACService


@pytest.fixture
def config():
    """Service configuration pointed at the fake backend."""
    return get_config(
        "rebac",
        openfga_url="http://openfga.test",
        openfga_store_name="rebac-test",
        root_user_email="admin@example.com",
        default_org="acme"
    )


@pytest.fixture
def service(config, fake):
    """ReBAC service on the fake backend."""
    return ReBACService(config, transport=fake.transport())


class TestReBACService:
    """Test service lifecycle."""

    def test_config_defaults(self):
        """Test configuration defaults."""
        config = get_config("rebac")
        assert config.openfga_store_name == "openobserve"
        assert config.rbac_enabled is True
        assert config.list_only_permitted is True
        assert config.read_page_size == 100
        assert config.bootstrap_batch_size == 50

    def test_state_before_start(self, service):
        """Test reading state before start."""
        with pytest.raises(NotInitializedError):
            service.state
        assert service.health()["status"] == "not_initialized"

    @pytest.mark.asyncio
    async def test_start_bootstraps_store(self, service, fake):
        """Test start creates and seeds the configured store."""
        state = await service.start()

        assert service.state == state
        assert fake.stores[state.store_id]["name"] == "rebac-test"
        stored = fake.tuples(state.store_id)
        assert ("user:admin@example.com", "admin", "org:acme") in stored
        assert ("org:acme", "owningOrg", "logs:_all_acme") in stored

        health = service.health()
        assert health["status"] == "ok"
        assert health["store_id"] == state.store_id

        await service.stop()

    @pytest.mark.asyncio
    async def test_start_failure_propagates(self, service, fake):
        """Test bootstrap errors are raised and counted."""
        fake.fail("list_stores", status_code=503, body="unavailable")

        with pytest.raises(BackendError):
            await service.start()

        assert service.metrics.registry.get_sample_value(
            "errors_total", {"error_type": "BACKEND_ERROR", "service": "rebac"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_components_share_gateway(self, service, fake):
        """Test services operate on the bootstrapped store."""
        await service.start()

        await service.roles.create("acme", "developer")
        await service.groups.create("acme", "ops")
        await service.groups.update("acme", "ops", add_users={"a@example.com"}, add_roles={"developer"})
        await service.orgs.add_user_to_org("acme", "a@example.com", "viewer")

        assert await service.roles.get_roles_for_org_user("acme", "a@example.com") == ["developer"]
        assert await service.checker.is_allowed("acme", "a@example.com", "GET", "logs:x", "root") is True

        await service.stop()
