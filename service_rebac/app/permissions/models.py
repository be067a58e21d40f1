"""
Permission types and their two encodings.

Each permission has an API-facing relation used when granting it to a role
(``ALLOW_*``) and a check relation used when evaluating access
(``admin``, ``can_*``).
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Permission(str, Enum):
    """Permission types."""
    ALLOW_ALL = "AllowAll"
    ALLOW_LIST = "AllowList"
    ALLOW_GET = "AllowGet"
    ALLOW_POST = "AllowPost"
    ALLOW_PUT = "AllowPut"
    ALLOW_DELETE = "AllowDelete"

    @classmethod
    def parse(cls, value: str) -> Optional["Permission"]:
        """Accept ``AllowGet`` or ``allow_get`` in any case."""
        return _PARSE.get(value.lower())

    @classmethod
    def from_method(cls, method: str, is_list: bool = False) -> "Permission":
        method = method.upper()
        if method == "GET":
            return cls.ALLOW_LIST if is_list else cls.ALLOW_GET
        if method == "POST":
            return cls.ALLOW_POST
        if method in ("PUT", "PATCH"):
            return cls.ALLOW_PUT
        if method == "DELETE":
            return cls.ALLOW_DELETE
        return cls.ALLOW_GET

    @property
    def relation(self) -> str:
        """Relation evaluated by check / list-objects."""
        return _CHECK_RELATIONS[self]

    @property
    def grant_relation(self) -> str:
        """Relation written on a role's ``#has`` userset."""
        return _GRANT_RELATIONS[self]

    def implies(self, other: "Permission") -> bool:
        return self is Permission.ALLOW_ALL or self is other


_PARSE: Dict[str, Permission] = {}
for _perm in Permission:
    _PARSE[_perm.value.lower()] = _perm
    _PARSE["allow_" + _perm.value[len("Allow"):].lower()] = _perm

_CHECK_RELATIONS: Dict[Permission, str] = {
    Permission.ALLOW_ALL: "admin",
    Permission.ALLOW_LIST: "can_list",
    Permission.ALLOW_GET: "can_read",
    Permission.ALLOW_POST: "can_create",
    Permission.ALLOW_PUT: "can_update",
    Permission.ALLOW_DELETE: "can_delete",
}

_GRANT_RELATIONS: Dict[Permission, str] = {
    Permission.ALLOW_ALL: "ALLOW_ALL",
    Permission.ALLOW_LIST: "ALLOW_LIST",
    Permission.ALLOW_GET: "ALLOW_GET",
    Permission.ALLOW_POST: "ALLOW_POST",
    Permission.ALLOW_PUT: "ALLOW_PUT",
    Permission.ALLOW_DELETE: "ALLOW_DELETE",
}

_FROM_GRANT_RELATION: Dict[str, Permission] = {v: k for k, v in _GRANT_RELATIONS.items()}
_FROM_CHECK_RELATION: Dict[str, Permission] = {v: k for k, v in _CHECK_RELATIONS.items()}

GRANT_RELATIONS: List[str] = list(_GRANT_RELATIONS.values())


def permission_to_relation(permission: str) -> str:
    """``AllowGet`` -> ``ALLOW_GET``; unknown input degrades to ``ALLOW_GET``."""
    parsed = Permission.parse(permission)
    if parsed is None:
        return Permission.ALLOW_GET.grant_relation
    return parsed.grant_relation


def relation_to_permission(relation: str) -> str:
    """``ALLOW_GET`` -> ``AllowGet``; unknown input degrades to ``AllowGet``."""
    return _FROM_GRANT_RELATION.get(relation, Permission.ALLOW_GET).value


def grant_relation_for(permission: str) -> str:
    """Like permission_to_relation but also accepts check relations (``can_read``)."""
    if permission.lower() in _FROM_CHECK_RELATION:
        return _FROM_CHECK_RELATION[permission.lower()].grant_relation
    return permission_to_relation(permission)


class PermissionEntry(BaseModel):
    """A permission granted on a resource object."""
    model_config = ConfigDict(frozen=True)

    object: str = Field(..., description="Resource object, e.g. logs:my_stream or logs:_all_default")
    permission: str = Field(..., description="AllowAll, AllowList, AllowGet, AllowPost, AllowPut or AllowDelete")


class UserRoleOption(BaseModel):
    """Role option for user assignment dropdowns."""
    label: str
    value: str
