"""
ReBAC authorization core service.

Wires the tuple store gateway, permission checker, role/group services and
org lifecycle tuples together around one configuration.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from shared.config import ServiceConfig, get_config
from shared.errors import NotInitializedError, ReBACException
from shared.logging import configure_logging, get_logger
from shared.metrics import get_metrics_collector

from .groups.service import GroupService
from .orgs.tuples import OrgTupleService
from .permissions.checker import PermissionChecker
from .roles.service import RoleService
from .store.client import TupleStoreClient
from .tuples.models import StoreState

SERVICE_NAME = "rebac"


class ReBACService:
    """ReBAC service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_config(SERVICE_NAME)
        configure_logging(SERVICE_NAME, self.config.log_level)
        self.logger = get_logger(SERVICE_NAME)
        self.metrics = get_metrics_collector(SERVICE_NAME)

        self.store = TupleStoreClient(
            api_url=self.config.openfga_url,
            store_name=self.config.openfga_store_name,
            timeout=self.config.request_timeout_seconds,
            store_id=self.config.openfga_store_id,
            model_id=self.config.openfga_model_id,
            page_size=self.config.read_page_size,
            bootstrap_batch_size=self.config.bootstrap_batch_size,
            transport=transport,
            metrics=self.metrics
        )
        self.checker = PermissionChecker(
            self.store,
            rbac_enabled=self.config.rbac_enabled,
            list_only_permitted=self.config.list_only_permitted,
            metrics=self.metrics
        )
        self.groups = GroupService(self.store)
        self.roles = RoleService(self.store, self.groups)
        self.orgs = OrgTupleService(self.store)

    @property
    def state(self) -> StoreState:
        """Store and model ids resolved by start()."""
        if self.store.state is None or self.store.state.model_id is None:
            raise NotInitializedError("ReBAC service not started")
        return self.store.state

    async def start(self) -> StoreState:
        """Bootstrap the tuple store."""
        try:
            state = await self.store.bootstrap(
                root_user_email=self.config.root_user_email,
                default_org=self.config.default_org,
                meta_org=self.config.meta_org
            )
        except ReBACException as e:
            self.metrics.record_error(e.code)
            self.logger.error("Tuple store bootstrap failed", error=e.message)
            raise
        self.logger.info(
            "ReBAC service started",
            store_id=state.store_id,
            model_id=state.model_id,
            is_new_store=state.is_new_store
        )
        return state

    async def stop(self):
        await self.store.close()
        self.logger.info("ReBAC service stopped")

    def health(self) -> Dict[str, Any]:
        state = self.store.state
        return {
            "service": SERVICE_NAME,
            "status": "ok" if state is not None else "not_initialized",
            "store_id": state.store_id if state else None,
            "model_id": state.model_id if state else None,
            "rbac_enabled": self.config.rbac_enabled,
        }


async def _bootstrap():
    service = ReBACService()
    try:
        await service.start()
    finally:
        await service.stop()


if __name__ == "__main__":
    asyncio.run(_bootstrap())
