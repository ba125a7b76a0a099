"""Persistence: JSON serialization and the schedule store."""
