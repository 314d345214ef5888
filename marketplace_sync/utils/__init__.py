"""Shared utilities: errors, retries, rate limiting, identifiers."""
