"""Collaborator ingest: validation, schedule client, pollers."""
