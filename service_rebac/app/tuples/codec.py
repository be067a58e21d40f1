"""
Object and tuple string codec.

Every user/object string that reaches the tuple store is built here:

    org:<org_id>
    user:<email>
    role:<org_id>_<role_name>
    group:<org_id>_<group_name>
    <resource_type>:<entity_id>
    <resource_type>:_all_<org_id>     (every entity of that type in the org)
    <object>#<relation>               (userset reference)

Org scoping of concrete resources is carried by ownership tuples, not by
the object name.
"""

from typing import Optional, Tuple

ALL_PREFIX = "_all"

ORG = "org"
USER = "user"
ROLE = "role"
GROUP = "group"


def org_type(org_id: str) -> str:
    return f"{ORG}:{org_id}"


def user_type(email: str) -> str:
    return f"{USER}:{email}"


def role_type(org_id: str, role_name: str) -> str:
    return f"{ROLE}:{org_id}_{role_name}"


def group_type(org_id: str, group_name: str) -> str:
    return f"{GROUP}:{org_id}_{group_name}"


def resource_object(org_id: str, resource_type: str, entity_id: str) -> str:
    return f"{resource_type}:{entity_id}"


def resource_object_all(org_id: str, resource_type: str) -> str:
    return f"{resource_type}:{all_entity(org_id)}"


def all_entity(org_id: str) -> str:
    return f"{ALL_PREFIX}_{org_id}"


def userset(object_id: str, relation: str) -> str:
    """Reference to everyone holding ``relation`` on ``object_id``."""
    return f"{object_id}#{relation}"


def role_prefix(org_id: str) -> str:
    return f"{ROLE}:{org_id}_"


def group_prefix(org_id: str) -> str:
    return f"{GROUP}:{org_id}_"


def parse_object(value: str) -> Optional[Tuple[str, str]]:
    """Split ``type:entity`` on the first colon; None when there is no colon."""
    resource_type, sep, entity_id = value.partition(":")
    if not sep:
        return None
    return resource_type, entity_id


def is_all_org_entity(entity_id: str, org_id: str) -> bool:
    """True for any wildcard entity id.

    Any ``_all`` prefix counts, not only ``_all_<org_id>``; list-vs-get
    decisions rely on this.
    """
    return entity_id == all_entity(org_id) or entity_id == ALL_PREFIX or entity_id.startswith(ALL_PREFIX)


def strip_prefix(value: str, prefix: str) -> Optional[str]:
    if value.startswith(prefix):
        return value[len(prefix):]
    return None


def user_email(user: str) -> Optional[str]:
    """Email part of a ``user:<email>`` subject, None for any other subject."""
    return strip_prefix(user, f"{USER}:")
