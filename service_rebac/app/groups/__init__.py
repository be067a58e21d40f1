"""
Group management.
"""
