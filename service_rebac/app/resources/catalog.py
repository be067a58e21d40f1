"""
Resource catalog for the ReBAC core.

Static table of every resource type the authorization model knows about,
with display metadata and the parent/child hierarchy:

- stream -> logs, metrics, traces, metadata, index
- dfolder -> dashboard
- afolder -> alert
- rfolder -> report

The catalog is the single source of truth for which object type prefixes
are acceptable anywhere else in the core.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional


@dataclass(frozen=True)
class Resource:
    """Resource type descriptor."""
    key: str
    display_name: str
    parent: Optional[str] = None
    order: int = 0
    visible: bool = True
    has_entities: bool = True
    top_level: bool = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "top_level", self.parent is None)


_RESOURCES: List[Resource] = [
    # Core types
    Resource("user", "Users", None, 1),
    Resource("group", "Groups", None, 2),
    Resource("role", "Roles", None, 3),
    Resource("org", "Organizations", None, 4, has_entities=False),

    # Streams
    Resource("stream", "Streams", None, 10, visible=False),
    Resource("logs", "Logs", "stream", 11),
    Resource("metrics", "Metrics", "stream", 12),
    Resource("traces", "Traces", "stream", 13),
    Resource("metadata", "Metadata", "stream", 14, visible=False),
    Resource("index", "Index", "stream", 15),

    # Dashboards
    Resource("dfolder", "Dashboard Folders", None, 20),
    Resource("dashboard", "Dashboards", "dfolder", 21),
    Resource("template", "Templates", None, 22),
    Resource("savedviews", "Saved Views", None, 23),

    # Alerts
    Resource("afolder", "Alert Folders", None, 30),
    Resource("alert", "Alerts", "afolder", 31),
    Resource("destination", "Destinations", None, 32),

    # Reports
    Resource("rfolder", "Report Folders", None, 40),
    Resource("report", "Reports", "rfolder", 41),

    # Functions and pipelines
    Resource("function", "Functions", None, 50),
    Resource("pipeline", "Pipelines", None, 51),

    # System
    Resource("settings", "Settings", None, 60, has_entities=False),
    Resource("kv", "KV Store", None, 61),
    Resource("enrichment_table", "Enrichment Tables", None, 62),
    Resource("summary", "Summary", None, 63),
    Resource("syslog-route", "Syslog Routes", None, 64),

    # Security
    Resource("passcode", "Passcodes", None, 70),
    Resource("rumtoken", "RUM Tokens", None, 71),
    Resource("service_accounts", "Service Accounts", None, 72),
    Resource("cipher_keys", "Cipher Keys", None, 73),

    # Other
    Resource("search_jobs", "Search Jobs", None, 80),
    Resource("action_scripts", "Action Scripts", None, 81),
    Resource("ratelimit", "Rate Limits", None, 82),
    Resource("ai", "AI", None, 83, has_entities=False),
    Resource("re_patterns", "Regex Patterns", None, 84),
    Resource("license", "License", None, 90, has_entities=False),
]

# Older API names kept valid as object type prefixes.
LEGACY_ALIASES: List[Resource] = [
    Resource("templates", "Templates", None, 22),
    Resource("functions", "Functions", None, 50),
    Resource("reports", "Reports", None, 41),
    Resource("destinations", "Destinations", None, 32),
    Resource("alert_folders", "Alert Folders", None, 30),
    Resource("serviceaccounts", "Service Accounts", None, 72),
    Resource("actionscripts", "Action Scripts", None, 81),
    Resource("cipherkeys", "Cipher Keys", None, 73),
]

RESOURCE_TYPES: Dict[str, Resource] = {r.key: r for r in _RESOURCES}

# Aliases are valid input but are not part of the generated model.
_ALL_KEYS: Dict[str, Resource] = {**RESOURCE_TYPES, **{r.key: r for r in LEGACY_ALIASES}}

NON_CLOUD_RESOURCE_KEYS: FrozenSet[str] = frozenset({"license", "cipher_keys"})

# Stream children whose wildcard objects inherit from stream:_all_{org}.
STREAM_CHILDREN: List[str] = ["logs", "metrics", "traces", "index", "metadata"]

# Folder types that own a per-org "default" folder.
DEFAULT_FOLDER_TYPES: List[str] = ["dfolder", "afolder"]


def get(key: str) -> Optional[Resource]:
    """Get resource by key."""
    return _ALL_KEYS.get(key)


def is_valid(key: str) -> bool:
    """Check if a resource type is valid."""
    return key in _ALL_KEYS


def all_visible(cloud: bool = False) -> List[Resource]:
    """Get all visible resources sorted by order."""
    resources = [
        r for r in RESOURCE_TYPES.values()
        if r.visible and not (cloud and r.key in NON_CLOUD_RESOURCE_KEYS)
    ]
    return sorted(resources, key=lambda r: r.order)


def children_of(parent_key: str) -> List[Resource]:
    """Get child resources for a parent type."""
    resources = [r for r in RESOURCE_TYPES.values() if r.parent == parent_key]
    return sorted(resources, key=lambda r: r.order)


def top_level_visible() -> List[Resource]:
    """Get top-level resources (no parent)."""
    resources = [r for r in RESOURCE_TYPES.values() if r.top_level and r.visible]
    return sorted(resources, key=lambda r: r.order)


def _check_hierarchy() -> None:
    for resource in _ALL_KEYS.values():
        if resource.parent is not None and resource.parent not in RESOURCE_TYPES:
            raise ValueError(f"Resource {resource.key} references unknown parent {resource.parent}")


_check_hierarchy()
