"""
Custom exceptions for the governance engine.
"""


class GovernanceError(Exception):
    """Base exception for governance engine errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFoundError(GovernanceError):
    """Raised when an entity cannot be resolved in its store."""
    pass


class AlreadyExistsError(GovernanceError):
    """Raised when an entity with the same ID or name is already present."""
    pass


class InvalidStateError(GovernanceError):
    """Raised when an operation is attempted outside a legal status transition."""
    pass


class ValidationError(GovernanceError):
    """Raised when a required field is empty or malformed."""
    pass
