"""Engine services and the collaborator ingest layer."""
