"""
Tuple store package.

- client: Async HTTP gateway (bootstrap, check, read, write, list-objects).
- schema: Default authorization model and first-run tuples.
"""
