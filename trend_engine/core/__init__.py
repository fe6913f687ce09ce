"""Configuration, logging, metrics, persistence and scheduling."""
