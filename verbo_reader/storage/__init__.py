"""Persistence: SQLite schema, guest local state, remote store and storage tiers."""
