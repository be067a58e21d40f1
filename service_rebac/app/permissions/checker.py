"""
Permission checker.

Single-decision authorization on the request hot path. Backend failures
deny; nothing here raises to the caller except ``list_objects_for_user``.
"""

from typing import List, Optional

from shared.errors import ReBACException
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .models import Permission
from ..resources import catalog
from ..store.client import TupleStoreClient
from ..tuples import codec
from ..tuples.models import TupleKey

ROOT_ROLE = "root"


class PermissionChecker:
    """Evaluates (user, method, object) decisions against the tuple store."""

    def __init__(
        self,
        store: TupleStoreClient,
        rbac_enabled: bool = True,
        list_only_permitted: bool = True,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.store = store
        self.rbac_enabled = rbac_enabled
        self.list_only_permitted = list_only_permitted
        self.metrics = metrics
        self.logger = get_logger("rebac.checker")

    async def is_allowed(
        self,
        org_id: str,
        user_id: str,
        method: str,
        object: str,
        role: Optional[str] = None,
    ) -> bool:
        """Decide whether ``user_id`` may perform ``method`` on ``object``."""
        if not self.rbac_enabled:
            return self._decide(True, "disabled")

        if role is not None and role.lower() == ROOT_ROLE:
            return self._decide(True, "root")

        parsed = codec.parse_object(object)
        if parsed is None:
            self.logger.warning("Malformed object", object=object, user_id=user_id)
            return self._decide(False, "malformed_object")
        resource_type, entity_id = parsed

        if not catalog.is_valid(resource_type):
            self.logger.warning("Unknown resource type", resource_type=resource_type, user_id=user_id)
            return self._decide(False, "unknown_resource_type")

        is_list = codec.is_all_org_entity(entity_id, org_id)
        permission = Permission.from_method(method, is_list)
        target = (
            codec.resource_object_all(org_id, resource_type)
            if is_list
            else codec.resource_object(org_id, resource_type, entity_id)
        )
        tuple_key = TupleKey.of(codec.user_type(user_id), permission.relation, target)

        try:
            allowed = await self.store.check(tuple_key)
        except ReBACException as e:
            self.logger.error(
                "Permission check failed, denying",
                user=tuple_key.user,
                relation=tuple_key.relation,
                object=tuple_key.object,
                error=e.message
            )
            return self._decide(False, "backend_error")

        self.logger.debug(
            "Permission check",
            user=tuple_key.user,
            relation=tuple_key.relation,
            object=tuple_key.object,
            allowed=allowed
        )
        return self._decide(allowed, "tuple")

    async def check_permissions(
        self,
        user_id: str,
        org_id: str,
        method: str,
        object: str,
        role: Optional[str] = None,
    ) -> bool:
        """Boolean convenience wrapper around ``is_allowed``."""
        return await self.is_allowed(org_id, user_id, method, object, role)

    async def list_objects_for_user(
        self,
        org_id: str,
        user_id: str,
        permission: str,
        object_type: str,
        role: Optional[str] = None,
    ) -> Optional[List[str]]:
        """Entity ids of ``object_type`` the user may access.

        None means listings are unrestricted and the caller should return
        everything. Backend errors propagate.
        """
        if not self.rbac_enabled or not self.list_only_permitted:
            return None
        if role is not None and role.lower() == ROOT_ROLE:
            return None

        parsed = Permission.parse(permission)
        relation = parsed.relation if parsed is not None else Permission.ALLOW_GET.relation

        objects = await self.store.list_objects(codec.user_type(user_id), relation, object_type)

        prefix = f"{object_type}:"
        entities = []
        for obj in objects:
            entity_id = codec.strip_prefix(obj, prefix)
            if entity_id is None or codec.is_all_org_entity(entity_id, org_id):
                continue
            entities.append(entity_id)

        self.logger.debug(
            "Listed permitted objects",
            org_id=org_id,
            user_id=user_id,
            object_type=object_type,
            relation=relation,
            count=len(entities)
        )
        return entities

    def _decide(self, allowed: bool, reason: str) -> bool:
        if self.metrics:
            self.metrics.record_permission_check("allow" if allowed else "deny", reason)
        return allowed
