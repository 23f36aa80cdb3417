"""Base exception for the Conductor package."""


class ConductorError(Exception):
    """Base class for all errors raised by Conductor."""
    pass
