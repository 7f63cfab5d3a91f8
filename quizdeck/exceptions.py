from typing import Optional


class QuizdeckError(Exception):
    """Base exception for quizdeck errors outside the storage layer."""

    pass


class InvalidSelectionArgumentError(QuizdeckError, ValueError):
    """Raised when a quiz selection is requested with out-of-domain inputs."""

    pass


class SnapshotError(QuizdeckError):
    """Raised when a deck snapshot cannot be written or restored."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class DatabaseError(Exception):
    """Base exception for database-related errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class DatabaseConnectionError(DatabaseError):
    """Raised for errors connecting to the database."""

    pass


class SchemaInitializationError(DatabaseError):
    """Raised for errors during schema setup."""

    pass


class DeckOperationError(DatabaseError):
    """Raised for errors while saving, loading or deleting deck snapshots."""

    pass


class DeckNotFoundError(DatabaseError):
    """Raised when a specified deck is not found."""

    pass


class DeckAlreadyExistsError(DatabaseError):
    """Raised when saving a deck under a name that is already taken."""

    pass
