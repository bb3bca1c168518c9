"""
Custom exceptions for Ariadne.
"""


class AriadneError(Exception):
    """Base exception for Ariadne."""
    pass


class MalformedInputError(AriadneError):
    """Exception raised when an incoming record fails the input boundary."""

    def __init__(self, message: str, record_id: str = ""):
        super().__init__(message)
        self.record_id = record_id


class AmbiguousMatchError(AriadneError):
    """Exception raised when a match rests only on a key shared by several entities."""

    def __init__(self, message: str, key: str = "", candidates=None):
        super().__init__(message)
        self.key = key
        self.candidates = list(candidates or [])


class ConflictingIdentityError(AriadneError):
    """Exception raised when a merge would give one entity two identities."""

    def __init__(self, message: str, entity_id: str = ""):
        super().__init__(message)
        self.entity_id = entity_id


class SourceFetchError(AriadneError):
    """Exception raised when an external source cannot be read."""
    pass


class ConfigurationError(AriadneError):
    """Exception raised when configuration is invalid."""
    pass


class APIError(AriadneError):
    """Exception raised when API calls fail."""
    pass


class NetworkError(SourceFetchError, ConnectionError):
    """Exception raised when network operations fail."""
    pass
