"""Quest tracker service."""
