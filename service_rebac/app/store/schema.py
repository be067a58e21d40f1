"""
Default authorization model and bootstrap tuples.

The model is generated from the resource catalog so that every catalog
type has the same relation layout:

- ``ALLOW_*``: direct grants to a role's ``#has`` userset
- ``owningOrg``: the org that owns the object (org admins/editors/viewers inherit)
- ``owner``: the user who created the object
- ``parent`` / ``selfParent``: hierarchy inheritance (streams, folders)
- ``admin``, ``can_list``, ``can_read``, ``can_create``, ``can_update``,
  ``can_delete``: computed relations evaluated by check and list-objects
"""

from typing import Any, Dict, List

from ..permissions.models import Permission
from ..resources import catalog
from ..tuples import codec
from ..tuples.models import TupleKey

SCHEMA_VERSION = "1.1"

# Org relations that require org_context as well as the direct grant.
ORG_ROLE_RELATIONS = ["admin", "editor", "viewer", "allowed_user"]

# Folder types whose per-org default folder hangs off the wildcard object.
SELF_PARENT_TYPES = {"dfolder", "afolder", "rfolder"}

_READ_PERMISSIONS = {Permission.ALLOW_LIST, Permission.ALLOW_GET}


def _this() -> Dict[str, Any]:
    return {"this": {}}


def _computed(relation: str) -> Dict[str, Any]:
    return {"computedUserset": {"relation": relation}}


def _from(tupleset: str, relation: str) -> Dict[str, Any]:
    return {
        "tupleToUserset": {
            "tupleset": {"relation": tupleset},
            "computedUserset": {"relation": relation},
        }
    }


def _union(*children: Dict[str, Any]) -> Dict[str, Any]:
    return {"union": {"child": list(children)}}


def _intersection(*children: Dict[str, Any]) -> Dict[str, Any]:
    return {"intersection": {"child": list(children)}}


def _direct(*types: str) -> Dict[str, Any]:
    related = []
    for t in types:
        if "#" in t:
            type_name, relation = t.split("#", 1)
            related.append({"type": type_name, "relation": relation})
        else:
            related.append({"type": t})
    return {"directly_related_user_types": related}


def _resource_relations(resource: catalog.Resource) -> Dict[str, Dict[str, Any]]:
    """Relations and metadata shared by every catalog resource type."""
    relations: Dict[str, Any] = {"owningOrg": _this(), "owner": _this()}
    metadata: Dict[str, Any] = {"owningOrg": _direct(codec.ORG), "owner": _direct(codec.USER)}

    inherit = []
    if resource.parent is not None:
        relations["parent"] = _this()
        metadata["parent"] = _direct(resource.parent)
        inherit.append("parent")
    if resource.key in SELF_PARENT_TYPES:
        relations["selfParent"] = _this()
        metadata["selfParent"] = _direct(resource.key)
        inherit.append("selfParent")

    for permission in Permission:
        relations[permission.grant_relation] = _this()
        metadata[permission.grant_relation] = _direct("role#has")

    relations["admin"] = _union(
        _computed(Permission.ALLOW_ALL.grant_relation),
        _computed("owner"),
        _from("owningOrg", "admin"),
        *[_from(rel, "admin") for rel in inherit],
    )

    for permission in Permission:
        if permission is Permission.ALLOW_ALL:
            continue
        check = permission.relation
        children = [
            _computed(permission.grant_relation),
            _computed("admin"),
            _from("owningOrg", "editor"),
        ]
        if permission in _READ_PERMISSIONS:
            children.append(_from("owningOrg", "viewer"))
        children.extend(_from(rel, check) for rel in inherit)
        relations[check] = _union(*children)

    return {"relations": relations, "metadata": metadata}


def _org_type() -> Dict[str, Any]:
    relations: Dict[str, Any] = {
        "owner": _this(),
        "org_context": _this(),
        "member": _this(),
    }
    metadata: Dict[str, Any] = {
        "owner": _direct(codec.USER),
        "org_context": _direct(codec.USER),
        "member": _direct(codec.ORG, codec.USER),
    }
    for relation in ORG_ROLE_RELATIONS:
        relations[relation] = _intersection(_this(), _computed("org_context"))
        metadata[relation] = _direct(codec.USER)
    return {"type": codec.ORG, "relations": relations, "metadata": {"relations": metadata}}


def get_authorization_model() -> Dict[str, Any]:
    """Authorization model document accepted by the authorization-models endpoint."""
    type_definitions: List[Dict[str, Any]] = [_org_type()]

    for resource in catalog.RESOURCE_TYPES.values():
        if resource.key == codec.ORG:
            continue
        parts = _resource_relations(resource)
        relations, metadata = parts["relations"], parts["metadata"]

        if resource.key == codec.ROLE:
            relations["assigned"] = _this()
            metadata["assigned"] = _direct(codec.USER)
            relations["grp_assigned"] = _this()
            metadata["grp_assigned"] = _direct(codec.GROUP)
            relations["has"] = _union(_computed("assigned"), _from("grp_assigned", "member"))
        elif resource.key == codec.GROUP:
            relations["member"] = _this()
            metadata["member"] = _direct(codec.USER)

        type_definitions.append({
            "type": resource.key,
            "relations": relations,
            "metadata": {"relations": metadata},
        })

    return {"schema_version": SCHEMA_VERSION, "type_definitions": type_definitions}


def _org_bootstrap_tuples(org_id: str) -> List[TupleKey]:
    org = codec.org_type(org_id)
    tuples = [
        TupleKey.of(org, "owningOrg", codec.resource_object_all(org_id, resource.key))
        for resource in sorted(catalog.RESOURCE_TYPES.values(), key=lambda r: r.order)
        if resource.key != codec.ORG
    ]

    for folder_type in catalog.DEFAULT_FOLDER_TYPES:
        default_folder = codec.resource_object(org_id, folder_type, "default")
        tuples.append(TupleKey.of(org, "owningOrg", default_folder))
        tuples.append(TupleKey.of(
            codec.resource_object_all(org_id, folder_type), "selfParent", default_folder
        ))

    stream_all = codec.resource_object_all(org_id, "stream")
    for child in catalog.STREAM_CHILDREN:
        tuples.append(TupleKey.of(stream_all, "parent", codec.resource_object_all(org_id, child)))

    return tuples


def get_initial_tuples(root_user_email: str, default_org: str = "default", meta_org: str = "_meta") -> List[TupleKey]:
    """Tuples written once into a freshly created store."""
    root = codec.user_type(root_user_email)
    tuples = [TupleKey.of(codec.org_type(default_org), "owningOrg", root)]
    for org_id in (default_org, meta_org):
        tuples.append(TupleKey.of(root, "admin", codec.org_type(org_id)))
        tuples.append(TupleKey.of(root, "org_context", codec.org_type(org_id)))

    tuples.extend(_org_bootstrap_tuples(default_org))

    tuples.append(TupleKey.of(
        codec.org_type(meta_org), "owningOrg", codec.resource_object(meta_org, "logs", "audit")
    ))
    tuples.extend(_org_bootstrap_tuples(meta_org))
    return tuples
