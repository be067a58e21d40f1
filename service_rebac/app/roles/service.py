"""
Role service.

Custom roles exist while an ``owningOrg`` tuple from their org points at
them. Permissions are granted to the role's ``#has`` userset; users are
``assigned`` to the role directly or through a group.
"""

import time
from typing import Iterable, List, Optional

from shared.errors import (
    DuplicateEntryError,
    InvalidResourceTypeError,
    RoleNotFoundError,
    ValidationError,
)
from shared.logging import get_logger

from .models import RoleResponse
from ..groups.service import GroupService, capitalize
from ..orgs.tuples import get_user_crole_tuple
from ..permissions.models import PermissionEntry, UserRoleOption, permission_to_relation, relation_to_permission
from ..resources import catalog
from ..store.client import TupleStoreClient
from ..tuples import codec
from ..tuples.models import TupleKey, TupleKeyFilter

SYSTEM_ROLES = ["admin", "editor", "viewer"]


def is_system_role(name: str) -> bool:
    return name.lower() in SYSTEM_ROLES


class RoleService:
    """Custom role management on top of the tuple store."""

    def __init__(self, store: TupleStoreClient, groups: Optional[GroupService] = None):
        self.store = store
        self.groups = groups or GroupService(store)
        self.logger = get_logger("rebac.roles")

    async def create(self, org_id: str, name: str):
        if is_system_role(name):
            raise ValidationError(f"Cannot create role with system name: {name}", {"role": name})

        existing = await self.list_roles(org_id)
        if any(r.lower() == name.lower() for r in existing):
            raise DuplicateEntryError(f"Role '{name}' already exists", {"role": name})

        await self.store.write(writes=[
            TupleKey.of(codec.org_type(org_id), "owningOrg", codec.role_type(org_id, name))
        ])
        self.logger.info("Created role", org_id=org_id, role=name)

    async def list_roles(self, org_id: str) -> List[str]:
        """Sorted custom role names in the org.

        Scans every tuple, since a filtered read needs a concrete object.
        """
        prefix = codec.role_prefix(org_id)
        org = codec.org_type(org_id)
        roles = set()

        for t in await self.store.read():
            if t.key.relation != "owningOrg" or t.key.user != org:
                continue
            name = codec.strip_prefix(t.key.object, prefix)
            if name is not None and not is_system_role(name):
                roles.add(name)

        return sorted(roles)

    def list_system_roles(self) -> List[UserRoleOption]:
        return [UserRoleOption(label=capitalize(r), value=r) for r in SYSTEM_ROLES]

    async def list_custom_roles(self, org_id: str) -> List[UserRoleOption]:
        return [
            UserRoleOption(label=capitalize(r), value=r.lower())
            for r in await self.list_roles(org_id)
        ]

    async def get_all_roles(self, org_id: str, permitted: Optional[List[str]] = None) -> List[str]:
        """All custom roles, optionally restricted to ``permitted`` (case-insensitive)."""
        roles = await self.list_roles(org_id)
        if permitted is None:
            return roles
        allowed = {p.lower() for p in permitted}
        return [r for r in roles if r.lower() in allowed]

    async def get_all_role_options(self, org_id: str) -> List[UserRoleOption]:
        """System roles followed by custom roles."""
        return self.list_system_roles() + await self.list_custom_roles(org_id)

    async def delete(self, org_id: str, name: str):
        """Delete the role, its assignments and every permission it grants."""
        if is_system_role(name):
            raise ValidationError(f"Cannot delete system role: {name}", {"role": name})

        role = codec.role_type(org_id, name)
        deletes = [t.key for t in await self.store.read(TupleKeyFilter(object=role))]
        deletes.extend(
            t.key for t in await self.store.read(TupleKeyFilter(user=codec.userset(role, "has")))
        )

        await self.store.write(deletes=deletes)
        self.logger.info("Deleted role", org_id=org_id, role=name, tuples=len(deletes))

    async def get_users_with_role(self, org_id: str, name: str) -> List[str]:
        """Emails of users directly assigned to the role."""
        tuples = await self.store.read(
            TupleKeyFilter(relation="assigned", object=codec.role_type(org_id, name))
        )
        return [u for u in (codec.user_email(t.key.user) for t in tuples) if u is not None]

    async def get_role_permissions(self, org_id: str, name: str, resource_type: str) -> List[PermissionEntry]:
        """Permissions the role grants on objects of ``resource_type``.

        Type-wide grants come back as ``<type>:_all_<org_id>``.
        """
        role_has = codec.userset(codec.role_type(org_id, name), "has")
        tuples = await self.store.read(TupleKeyFilter(user=role_has))

        prefix = f"{resource_type}:"
        entries = []
        for t in tuples:
            entity_id = codec.strip_prefix(t.key.object, prefix)
            if entity_id is None:
                continue
            if codec.is_all_org_entity(entity_id, org_id):
                obj = codec.resource_object_all(org_id, resource_type)
            else:
                obj = codec.resource_object(org_id, resource_type, entity_id)
            entries.append(PermissionEntry(object=obj, permission=relation_to_permission(t.key.relation)))

        self.logger.debug(
            "Role permissions",
            org_id=org_id,
            role=name,
            resource_type=resource_type,
            count=len(entries)
        )
        return entries

    async def add_permissions(self, org_id: str, name: str, permissions: Iterable[PermissionEntry]):
        await self.store.write(writes=self._permission_tuples(org_id, name, permissions))

    async def remove_permissions(self, org_id: str, name: str, permissions: Iterable[PermissionEntry]):
        await self.store.write(deletes=self._permission_tuples(org_id, name, permissions))

    def _permission_tuples(self, org_id: str, name: str, permissions: Iterable[PermissionEntry]) -> List[TupleKey]:
        """Validate every entry before building any tuple."""
        role_has = codec.userset(codec.role_type(org_id, name), "has")
        tuples = []
        for entry in permissions:
            parsed = codec.parse_object(entry.object)
            if parsed is None:
                raise ValidationError(f"Malformed object: {entry.object}", {"object": entry.object})
            resource_type, entity_id = parsed
            if not catalog.is_valid(resource_type):
                raise InvalidResourceTypeError(resource_type)

            if codec.is_all_org_entity(entity_id, org_id):
                obj = codec.resource_object_all(org_id, resource_type)
            else:
                obj = codec.resource_object(org_id, resource_type, entity_id)
            tuples.append(TupleKey.of(role_has, permission_to_relation(entry.permission), obj))
        return tuples

    async def add_users(self, org_id: str, name: str, users: Iterable[str]):
        writes = [get_user_crole_tuple(org_id, name, email) for email in sorted(set(users))]
        await self.store.write(writes=writes)

    async def remove_users(self, org_id: str, name: str, users: Iterable[str]):
        deletes = [get_user_crole_tuple(org_id, name, email) for email in sorted(set(users))]
        await self.store.write(deletes=deletes)

    async def update_role(
        self,
        org_id: str,
        name: str,
        add_permissions: Optional[List[PermissionEntry]] = None,
        remove_permissions: Optional[List[PermissionEntry]] = None,
        add_users: Optional[Iterable[str]] = None,
        remove_users: Optional[Iterable[str]] = None,
    ):
        """Apply changes in order: add permissions, remove permissions, add users, remove users."""
        if add_permissions:
            await self.add_permissions(org_id, name, add_permissions)
        if remove_permissions:
            await self.remove_permissions(org_id, name, remove_permissions)
        if add_users:
            await self.add_users(org_id, name, add_users)
        if remove_users:
            await self.remove_users(org_id, name, remove_users)

    async def get_role(self, org_id: str, name: str) -> RoleResponse:
        users = await self.get_users_with_role(org_id, name)
        if not users and not await self.store.read(TupleKeyFilter(object=codec.role_type(org_id, name))):
            raise RoleNotFoundError(name)

        now = int(time.time() * 1_000_000)
        return RoleResponse(name=name, label=capitalize(name), users=users, created_at=now, updated_at=now)

    async def get_roles_for_org_user(self, org_id: str, user_email: str) -> List[str]:
        """Roles held by the user, directly or through groups."""
        return await self.groups.user_roles(org_id, user_email)
