"""
Resource catalog package.

The catalog decides which object type prefixes are acceptable input for
checks, role grants and the generated authorization model.
"""
