"""Qt-driven session controller for stepping solver engines."""
