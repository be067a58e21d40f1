"""
Custom role management.
"""
