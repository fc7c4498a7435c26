class RegistryError(Exception):
    """Base exception for all registry-related errors."""


class DocumentNotFoundError(RegistryError):
    """Raised when a document id is not tracked by the registry."""


class DuplicateIdentityError(RegistryError):
    """Raised when a document id collides with one already tracked.

    Identity generation is collision-resistant, so this signals a broken
    contract rather than a recoverable condition.
    """


class InvalidTransitionError(RegistryError):
    """Raised when a scan phase would move backwards or leave a terminal phase."""
