"""Command ingestion, search and status aggregation."""
