"""
Permissions package.

- models: Permission enum and its relation encodings.
- checker: Allow/deny decisions and permitted-object listing.
"""
