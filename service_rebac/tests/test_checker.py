"""
Unit tests for the permission checker.
"""

import pytest
from unittest.mock import AsyncMock

from shared.errors import BackendError, BackendUnavailableError
from service_rebac.app.permissions.checker import PermissionChecker
from service_rebac.app.store.client import TupleStoreClient
from service_rebac.app.tuples.models import TupleKey


@pytest.fixture
def mock_store():
    """Gateway mock that allows everything."""
    store = AsyncMock(spec=TupleStoreClient)
    store.check.return_value = True
    store.list_objects.return_value = []
    return store


@pytest.fixture
def checker(mock_store, metrics):
    """Checker with authorization enabled."""
    return PermissionChecker(mock_store, metrics=metrics)


class TestIsAllowed:
    """Test single permission decisions."""

    @pytest.mark.asyncio
    async def test_disabled_allows_without_backend(self, mock_store):
        """Test disabled authorization allows everything."""
        checker = PermissionChecker(mock_store, rbac_enabled=False)

        assert await checker.is_allowed("default", "a@example.com", "DELETE", "logs:x") is True
        mock_store.check.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["root", "Root", "ROOT"])
    async def test_root_bypass(self, checker, mock_store, role):
        """Test root role allows regardless of backend state."""
        mock_store.check.side_effect = BackendError("check", 500, "down")

        assert await checker.is_allowed("default", "root@example.com", "DELETE", "anything", role) is True
        mock_store.check.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_object_denies(self, checker, mock_store):
        """Test objects without a type separator are denied."""
        assert await checker.is_allowed("default", "a@example.com", "GET", "no-colon") is False
        mock_store.check.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_resource_type_denies(self, checker, mock_store):
        """Test unknown type prefixes are denied."""
        assert await checker.is_allowed("default", "a@example.com", "GET", "spaceship:x") is False
        mock_store.check.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_checks_concrete_object(self, checker, mock_store):
        """Test GET on an entity checks can_read on that entity."""
        assert await checker.is_allowed("default", "a@example.com", "GET", "logs:my_stream", "user") is True

        mock_store.check.assert_awaited_once_with(
            TupleKey.of("user:a@example.com", "can_read", "logs:my_stream")
        )

    @pytest.mark.asyncio
    async def test_list_checks_type_wildcard(self, checker, mock_store):
        """Test GET on a wildcard checks can_list on the org wildcard."""
        await checker.is_allowed("default", "a@example.com", "GET", "logs:_all")

        mock_store.check.assert_awaited_once_with(
            TupleKey.of("user:a@example.com", "can_list", "logs:_all_default")
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,relation", [
        ("POST", "can_create"),
        ("PUT", "can_update"),
        ("PATCH", "can_update"),
        ("DELETE", "can_delete"),
    ])
    async def test_method_relations(self, checker, mock_store, method, relation):
        """Test write methods map to their check relations."""
        await checker.is_allowed("default", "a@example.com", method, "dashboard:d1")

        mock_store.check.assert_awaited_once_with(
            TupleKey.of("user:a@example.com", relation, "dashboard:d1")
        )

    @pytest.mark.asyncio
    async def test_backend_denial(self, checker, mock_store):
        """Test a negative check denies."""
        mock_store.check.return_value = False

        assert await checker.is_allowed("default", "a@example.com", "GET", "logs:x") is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        BackendError("check", 500, "boom"),
        BackendUnavailableError("check", "ConnectError: refused"),
    ])
    async def test_backend_error_denies(self, checker, mock_store, metrics, error):
        """Test backend failures fail closed."""
        mock_store.check.side_effect = error

        assert await checker.is_allowed("default", "a@example.com", "GET", "logs:x") is False
        assert metrics.registry.get_sample_value(
            "rebac_permission_checks_total", {"decision": "deny", "reason": "backend_error"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_check_permissions_wraps_is_allowed(self, checker, mock_store):
        """Test the convenience wrapper argument order."""
        assert await checker.check_permissions("a@example.com", "default", "GET", "logs:x") is True

        mock_store.check.assert_awaited_once_with(TupleKey.of("user:a@example.com", "can_read", "logs:x"))


class TestListObjectsForUser:
    """Test permitted object listing."""

    @pytest.mark.asyncio
    async def test_unrestricted_cases_return_none(self, mock_store):
        """Test disabled, unrestricted listing and root return None."""
        disabled = PermissionChecker(mock_store, rbac_enabled=False)
        unrestricted = PermissionChecker(mock_store, list_only_permitted=False)
        enabled = PermissionChecker(mock_store)

        assert await disabled.list_objects_for_user("default", "a@example.com", "AllowList", "logs") is None
        assert await unrestricted.list_objects_for_user("default", "a@example.com", "AllowList", "logs") is None
        assert await enabled.list_objects_for_user("default", "r@example.com", "AllowList", "logs", "Root") is None
        mock_store.list_objects.assert_not_called()

    @pytest.mark.asyncio
    async def test_returns_bare_entity_ids(self, checker, mock_store):
        """Test objects are filtered by type and wildcards dropped."""
        mock_store.list_objects.return_value = [
            "logs:stream_a",
            "logs:_all_default",
            "metrics:cpu",
            "logs:stream_b",
        ]

        result = await checker.list_objects_for_user("default", "a@example.com", "AllowList", "logs")

        assert result == ["stream_a", "stream_b"]
        mock_store.list_objects.assert_awaited_once_with("user:a@example.com", "can_list", "logs")

    @pytest.mark.asyncio
    async def test_unknown_permission_uses_read(self, checker, mock_store):
        """Test unknown permission strings resolve to can_read."""
        await checker.list_objects_for_user("default", "a@example.com", "whatever", "dashboard")

        mock_store.list_objects.assert_awaited_once_with("user:a@example.com", "can_read", "dashboard")

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self, checker, mock_store):
        """Test listing errors are not swallowed."""
        mock_store.list_objects.side_effect = BackendError("list_objects", 500, "boom")

        with pytest.raises(BackendError):
            await checker.list_objects_for_user("default", "a@example.com", "AllowGet", "logs")
