"""Service-layer exceptions."""


class SaveLoadError(Exception):
    """Raised when a persisted record cannot be turned back into state."""
