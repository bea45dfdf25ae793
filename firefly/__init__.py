"""
Firefly III integration.

This package contains:
- client: REST client for the category catalog and category assignment
"""
