from __future__ import annotations


class HandZoneError(Exception):
    """Base class for handzone errors."""


class ModelLoadError(HandZoneError):
    """One or both detection models could not be acquired."""


class InvalidInputError(HandZoneError, ValueError):
    """A detection call was made without a frame or without model handles."""
