"""Persistence layer: SQLite schema and per-entity repositories."""
