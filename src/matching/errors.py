"""Resolution error taxonomy."""


class ResolutionError(Exception):
    """Base resolution error."""


class RecordValidationError(ResolutionError):
    """Record payload from the store does not match the expected shape."""


class ContextError(ResolutionError):
    """Disambiguation context echoed back by the caller is unusable."""
