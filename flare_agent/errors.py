class FlareError(Exception):
    """Base class for all flare-related errors."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}

class CollaboratorError(FlareError):
    """Raised when an agent subsystem cannot produce its snapshot."""
    pass
