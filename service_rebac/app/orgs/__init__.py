"""
Org lifecycle tuple builders and their applier.
"""
