"""
Group service.

A group exists while an ``owningOrg`` tuple from its org points at it.
Members are ``member`` tuples from users; roles are ``grp_assigned``
tuples from the group to the role.
"""

import time
import uuid
from typing import Iterable, List, Optional, Set

from shared.errors import DuplicateEntryError, GroupNotFoundError
from shared.logging import get_logger

from .models import GroupResponse
from ..orgs.tuples import get_group_member_tuple, get_group_role_tuple
from ..store.client import TupleStoreClient
from ..tuples import codec
from ..tuples.models import TupleKey, TupleKeyFilter


def capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


def _now_micros() -> int:
    return int(time.time() * 1_000_000)


class GroupService:
    """Group management on top of the tuple store."""

    def __init__(self, store: TupleStoreClient):
        self.store = store
        self.logger = get_logger("rebac.groups")

    async def create(
        self,
        org_id: str,
        name: str,
        display_name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> str:
        """Create a group and return its generated id."""
        existing = await self.list_groups(org_id)
        if any(g.lower() == name.lower() for g in existing):
            raise DuplicateEntryError(f"Group '{name}' already exists", {"group": name})

        group_id = uuid.uuid4().hex
        await self.store.write(writes=[
            TupleKey.of(codec.org_type(org_id), "owningOrg", codec.group_type(org_id, name))
        ])

        self.logger.info("Created group", org_id=org_id, group=name, group_id=group_id)
        return group_id

    async def create_with_users(self, org_id: str, name: str, users: Optional[Iterable[str]] = None) -> str:
        group_id = await self.create(org_id, name)
        if users:
            await self.add_users(org_id, name, users)
        return group_id

    async def list_groups(self, org_id: str) -> List[str]:
        """Sorted group names in the org.

        Scans every tuple: groups are found by their ``owningOrg`` tuple and,
        for older data without one, by any ``member`` tuple on the group.
        """
        prefix = codec.group_prefix(org_id)
        org = codec.org_type(org_id)
        groups: Set[str] = set()

        for t in await self.store.read():
            name = codec.strip_prefix(t.key.object, prefix)
            if name is None:
                continue
            if t.key.relation == "owningOrg" and t.key.user == org:
                groups.add(name)
            elif t.key.relation == "member":
                groups.add(name)

        return sorted(groups)

    async def get_all_groups(self, org_id: str, permitted: Optional[List[str]] = None) -> List[str]:
        """All groups, optionally restricted to ``permitted`` (case-insensitive)."""
        groups = await self.list_groups(org_id)
        if permitted is None:
            return groups
        allowed = {p.lower() for p in permitted}
        return [g for g in groups if g.lower() in allowed]

    async def get_group(self, org_id: str, name: str) -> GroupResponse:
        group = codec.group_type(org_id, name)

        member_tuples = await self.store.read(TupleKeyFilter(relation="member", object=group))
        users = [u for u in (codec.user_email(t.key.user) for t in member_tuples) if u is not None]

        role_tuples = await self.store.read(TupleKeyFilter(user=group, relation="grp_assigned"))
        roles = self._role_names(org_id, role_tuples)

        if not users and not roles:
            # Memberless groups still exist through their ownership tuple.
            if not await self.store.read(TupleKeyFilter(object=group)):
                raise GroupNotFoundError(name)

        now = _now_micros()
        return GroupResponse(
            id=uuid.uuid4().hex,
            name=name,
            display_name=capitalize(name),
            roles=roles,
            users=users,
            created_at=now,
            updated_at=now
        )

    async def delete(self, org_id: str, name: str):
        """Delete every tuple on the group and every grant made through it."""
        group = codec.group_type(org_id, name)

        deletes = [t.key for t in await self.store.read(TupleKeyFilter(object=group))]
        deletes.extend(
            t.key for t in await self.store.read(TupleKeyFilter(user=codec.userset(group, "member")))
        )
        deletes.extend(t.key for t in await self.store.read(TupleKeyFilter(user=group)))

        await self.store.write(deletes=deletes)
        self.logger.info("Deleted group", org_id=org_id, group=name, tuples=len(deletes))

    async def add_users(self, org_id: str, name: str, users: Iterable[str]):
        writes = [get_group_member_tuple(org_id, name, email) for email in sorted(set(users))]
        await self.store.write(writes=writes)

    async def remove_users(self, org_id: str, name: str, users: Iterable[str]):
        deletes = [get_group_member_tuple(org_id, name, email) for email in sorted(set(users))]
        await self.store.write(deletes=deletes)

    async def add_roles(self, org_id: str, name: str, roles: Iterable[str]):
        writes = [get_group_role_tuple(org_id, name, role) for role in sorted(set(roles))]
        await self.store.write(writes=writes)

    async def remove_roles(self, org_id: str, name: str, roles: Iterable[str]):
        deletes = [get_group_role_tuple(org_id, name, role) for role in sorted(set(roles))]
        await self.store.write(deletes=deletes)

    async def update(
        self,
        org_id: str,
        name: str,
        add_users: Optional[Iterable[str]] = None,
        remove_users: Optional[Iterable[str]] = None,
        add_roles: Optional[Iterable[str]] = None,
        remove_roles: Optional[Iterable[str]] = None,
    ):
        """Apply membership changes in order: add users, remove users, add roles, remove roles."""
        if add_users:
            await self.add_users(org_id, name, add_users)
        if remove_users:
            await self.remove_users(org_id, name, remove_users)
        if add_roles:
            await self.add_roles(org_id, name, add_roles)
        if remove_roles:
            await self.remove_roles(org_id, name, remove_roles)

    async def get_group_users(self, org_id: str, name: str) -> List[str]:
        return (await self.get_group(org_id, name)).users

    async def get_group_roles(self, org_id: str, name: str) -> List[str]:
        return (await self.get_group(org_id, name)).roles

    async def user_groups(self, org_id: str, user_email: str) -> List[str]:
        """Groups in the org the user is a member of."""
        tuples = await self.store.read(
            TupleKeyFilter(user=codec.user_type(user_email), relation="member")
        )
        prefix = codec.group_prefix(org_id)
        names = (codec.strip_prefix(t.key.object, prefix) for t in tuples)
        return sorted({n for n in names if n is not None})

    async def user_roles(self, org_id: str, user_email: str) -> List[str]:
        """Roles held directly or through any group, sorted and unique."""
        direct = await self.store.read(
            TupleKeyFilter(user=codec.user_type(user_email), relation="assigned")
        )
        roles = set(self._role_names(org_id, direct))

        for group_name in await self.user_groups(org_id, user_email):
            group_roles = await self.store.read(
                TupleKeyFilter(user=codec.group_type(org_id, group_name), relation="grp_assigned")
            )
            roles.update(self._role_names(org_id, group_roles))

        return sorted(roles)

    @staticmethod
    def _role_names(org_id: str, tuples) -> List[str]:
        prefix = codec.role_prefix(org_id)
        names = (codec.strip_prefix(t.key.object, prefix) for t in tuples)
        return [n for n in names if n is not None]
