"""Database-specific exceptions for ARKA-ED."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class RecordNotFoundError(DatabaseError):
    """Raised when a required record is not found."""

    pass


class ConcurrentUpdateError(DatabaseError):
    """Raised when a row changed between read and conditional write."""

    def __init__(self, user_id: str, expected_version: int):
        super().__init__(
            f"Progress for user {user_id} changed concurrently (expected version {expected_version})"
        )
        self.user_id = user_id
        self.expected_version = expected_version


class ConnectionError(DatabaseError):
    """Raised when database connection fails."""

    pass
