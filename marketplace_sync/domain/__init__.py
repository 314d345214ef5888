"""
Domain layer for the marketplace adapter.

Canonical, platform-agnostic records handed to callers by the adapters.
"""
