"""Exceptions raised by the maze model and solver engines."""


class MazeLabError(Exception):
    """Base class for all maze lab errors."""


class MalformedGrid(MazeLabError, ValueError):
    """Raised when a grid is missing its start or end cell."""


class InvalidParameter(MazeLabError, ValueError):
    """Raised when an engine or generator receives out-of-contract input."""
