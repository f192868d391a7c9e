# tests/unit/__init__.py
"""
Unit tests for follow-target mission components.

Unit tests validate individual functions and classes in isolation,
with no external dependencies (no network, no real vehicle).
"""
