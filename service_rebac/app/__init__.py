"""
ReBAC Service package.

Relationship-based authorization core backed by an OpenFGA-compatible
tuple store. It provides:

- app.main: Service wiring, bootstrap and shutdown.
- app.resources: Static resource type catalog and hierarchy.
- app.tuples: Tuple wire models and the object string codec.
- app.store: Tuple store gateway, default model and bootstrap tuples.
- app.permissions: Permission types and the hot-path permission checker.
- app.roles: Custom role management.
- app.groups: Group management and user -> group -> role resolution.
- app.orgs: Org lifecycle tuple builders.

Guidelines:
- Every user/object string is built by app.tuples.codec.
- Only app.store talks to the network.
- Permission checks fail closed; administrative calls propagate backend errors.
"""
