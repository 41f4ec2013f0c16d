"""
Exception hierarchy for the Meteoblue integration.

Pure module: no HA or network dependencies so every layer can raise and
catch these without import cycles.
"""


class MeteoblueError(Exception):
    """Base class for all Meteoblue integration errors."""


class ConfigurationError(MeteoblueError):
    """The configuration does not allow a forecast cycle (no packages, no API key)."""


class FetchFailure(MeteoblueError):
    """The provider could not be reached or returned an unusable response."""


class AuthenticationError(FetchFailure):
    """The provider rejected the API key."""


class DataShapeError(MeteoblueError):
    """A provider frame is missing the time array for a granularity."""


class InvalidCommand(MeteoblueError):
    """An engagement command carried something other than a boolean."""
