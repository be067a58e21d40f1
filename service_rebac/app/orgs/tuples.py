"""
Org lifecycle tuples.

Pure builders return tuple lists; ``OrgTupleService`` applies them through
the tuple store gateway.

Org-level relations (admin, editor, viewer, allowed_user) are evaluated as
an intersection with ``org_context``, so every grant is written together
with its ``org_context`` tuple.
"""

from typing import Iterable, List, Optional, Tuple

from shared.logging import get_logger

from ..permissions.models import grant_relation_for
from ..store.client import TupleStoreClient
from ..tuples import codec
from ..tuples.models import TupleKey, TupleKeyFilter

ORG_CONTEXT = "org_context"
ALL_ORG_ROLE_RELATIONS = ["admin", "editor", "viewer", "allowed_user"]


def role_to_relation(role: str) -> str:
    """Map a system role name to its relation on the org object."""
    role = role.lower()
    if role in ("root", "admin"):
        return "admin"
    if role == "editor":
        return "editor"
    if role == "viewer":
        return "viewer"
    return "allowed_user"


def get_add_user_to_org_tuples(org_id: str, user_email: str, role: str) -> List[TupleKey]:
    user = codec.user_type(user_email)
    org = codec.org_type(org_id)
    return [
        TupleKey.of(user, role_to_relation(role), org),
        TupleKey.of(user, ORG_CONTEXT, org),
    ]


def get_user_crole_tuple(org_id: str, role_name: str, user_email: str) -> TupleKey:
    """Assign a custom role to a user."""
    return TupleKey.of(codec.user_type(user_email), "assigned", codec.role_type(org_id, role_name))


def get_role_key(org_id: str, role_name: str) -> str:
    return codec.role_type(org_id, role_name)


def get_user_crole_removal_tuples(user_email: str, role_key: str) -> List[TupleKey]:
    return [TupleKey.of(codec.user_type(user_email), "assigned", role_key)]


def get_org_creation_tuples(org_id: str) -> List[TupleKey]:
    org = codec.org_type(org_id)
    return [TupleKey.of(org, "member", org)]


def get_ownership_tuple(org_id: str, resource_type: str, entity_id: str, owner_email: str) -> TupleKey:
    return TupleKey.of(
        codec.user_type(owner_email),
        "owner",
        codec.resource_object(org_id, resource_type, entity_id)
    )


def get_resource_parent_tuple(org_id: str, resource_type: str, entity_id: str) -> TupleKey:
    """Make the org the owning parent of a concrete resource."""
    return TupleKey.of(
        codec.org_type(org_id),
        "owningOrg",
        codec.resource_object(org_id, resource_type, entity_id)
    )


def get_org_resource_permission_tuple(
    org_id: str,
    resource_type: str,
    role_name: str,
    permission: str,
) -> TupleKey:
    """Grant a role a permission on every resource of a type in the org."""
    return TupleKey.of(
        codec.userset(codec.role_type(org_id, role_name), "has"),
        grant_relation_for(permission),
        codec.resource_object_all(org_id, resource_type)
    )


def get_group_member_tuple(org_id: str, group_name: str, user_email: str) -> TupleKey:
    return TupleKey.of(codec.user_type(user_email), "member", codec.group_type(org_id, group_name))


def get_group_role_tuple(org_id: str, group_name: str, role_name: str) -> TupleKey:
    return TupleKey.of(
        codec.group_type(org_id, group_name),
        "grp_assigned",
        codec.role_type(org_id, role_name)
    )


def get_service_account_creation_tuples(org_id: str, email: str) -> List[TupleKey]:
    user = codec.user_type(email)
    org = codec.org_type(org_id)
    return [TupleKey.of(user, "allowed_user", org), TupleKey.of(user, ORG_CONTEXT, org)]


def get_new_user_creation_tuples(user_email: str, default_org: str = "default") -> List[TupleKey]:
    """Basic access to the default org for a freshly created user."""
    return get_service_account_creation_tuples(default_org, user_email)


def get_delete_user_system_role_tuples(org_id: str, user_email: str, role: str) -> List[TupleKey]:
    """Tuples to delete when the user's role is known."""
    return get_add_user_to_org_tuples(org_id, user_email, role)


def get_delete_all_user_from_org_tuples(org_id: str, user_email: str) -> List[TupleKey]:
    """Tuples to delete when the user's role is unknown."""
    user = codec.user_type(user_email)
    org = codec.org_type(org_id)
    tuples = [TupleKey.of(user, relation, org) for relation in ALL_ORG_ROLE_RELATIONS]
    tuples.append(TupleKey.of(user, ORG_CONTEXT, org))
    return tuples


def get_delete_user_from_org_tuples(org_id: str, user_email: str) -> List[TupleKey]:
    """Legacy owner/admin/member grants on the org."""
    user = codec.user_type(user_email)
    org = codec.org_type(org_id)
    return [TupleKey.of(user, relation, org) for relation in ("owner", "admin", "member")]


def get_update_user_role_tuples(
    org_id: str,
    user_email: str,
    old_role: str,
    new_role: str,
) -> Optional[Tuple[List[TupleKey], List[TupleKey]]]:
    """(writes, deletes) for a role change, or None when the relation is unchanged."""
    old_relation = role_to_relation(old_role)
    new_relation = role_to_relation(new_role)
    if old_relation == new_relation:
        return None

    user = codec.user_type(user_email)
    org = codec.org_type(org_id)
    return [TupleKey.of(user, new_relation, org)], [TupleKey.of(user, old_relation, org)]


class OrgTupleService:
    """Applies org lifecycle tuple changes."""

    def __init__(self, store: TupleStoreClient):
        self.store = store
        self.logger = get_logger("rebac.orgs")

    async def update_tuples(
        self,
        writes: Optional[Iterable[TupleKey]] = None,
        deletes: Optional[Iterable[TupleKey]] = None,
    ):
        writes = list(writes or [])
        deletes = list(deletes or [])
        if not writes and not deletes:
            return
        await self.store.write(writes, deletes)

    async def add_user_to_org(self, org_id: str, user_email: str, role: str):
        await self.update_tuples(writes=get_add_user_to_org_tuples(org_id, user_email, role))
        self.logger.info("User added to org", org_id=org_id, user=user_email, role=role)

    async def delete_user_from_org(self, org_id: str, user_email: str):
        """Remove every possible org role of a user."""
        await self.update_tuples(deletes=get_delete_all_user_from_org_tuples(org_id, user_email))
        self.logger.info("User removed from org", org_id=org_id, user=user_email)

    async def delete_user_from_org_with_role(self, org_id: str, user_email: str, role: str):
        await self.update_tuples(deletes=get_delete_user_system_role_tuples(org_id, user_email, role))
        self.logger.info("User removed from org", org_id=org_id, user=user_email, role=role)

    async def update_user_role(self, org_id: str, user_email: str, old_role: str, new_role: str):
        """Swap the org role relation; org_context is left in place."""
        change = get_update_user_role_tuples(org_id, user_email, old_role, new_role)
        if change is None:
            return
        writes, deletes = change
        await self.update_tuples(writes, deletes)
        self.logger.info(
            "User role updated",
            org_id=org_id,
            user=user_email,
            old_role=old_role,
            new_role=new_role
        )

    async def save_org_tuples(self, org_id: str):
        await self.update_tuples(writes=get_org_creation_tuples(org_id))
        self.logger.info("Org tuples saved", org_id=org_id)

    async def delete_org_tuples(self, org_id: str) -> int:
        """Delete every tuple on or owned by the org; returns the number deleted."""
        org = codec.org_type(org_id)
        tuples = await self.store.read(TupleKeyFilter(object=org))
        tuples.extend(await self.store.read(TupleKeyFilter(user=org)))
        # the self-referential member tuple matches both reads
        deletes = list(dict.fromkeys(t.key for t in tuples))
        await self.update_tuples(deletes=deletes)
        self.logger.info("Org tuples deleted", org_id=org_id, count=len(deletes))
        return len(deletes)
