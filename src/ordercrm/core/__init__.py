"""Core utilities: configuration, logging and exceptions."""
