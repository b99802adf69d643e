"""Framework-agnostic maze model and solver engines."""
