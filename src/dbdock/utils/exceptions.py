"""Custom exceptions for dbdock."""

from typing import List, Sequence


class DBDockError(Exception):
    """Base exception for dbdock errors."""

    pass


class UnknownProviderError(DBDockError):
    """Exception raised when a database engine id has no registered provider."""

    def __init__(self, provider_id: str) -> None:
        """
        Initialize UnknownProviderError.

        Args:
            provider_id: Engine id that was looked up
        """
        self.provider_id = provider_id
        super().__init__(f"Unknown database provider: {provider_id}")


class InvalidConfigError(DBDockError):
    """Exception raised when a configuration is submitted despite failing validation."""

    def __init__(self, errors: Sequence[str]) -> None:
        """
        Initialize InvalidConfigError.

        Args:
            errors: Every violated rule, in validation order
        """
        self.errors: List[str] = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))


class ConflictError(DBDockError):
    """Exception raised when a port or name is already taken by another database."""

    def __init__(self, field: str, value: str | int, owner: str | None = None) -> None:
        """
        Initialize ConflictError.

        Args:
            field: Conflicting attribute ("port" or "name")
            value: Value that is already in use
            owner: Name of the database holding the value, when known
        """
        self.field = field
        self.value = value
        self.owner = owner
        if field == "port":
            message = f"Port {value} is already in use"
        else:
            message = f"A database named '{value}' already exists"
        if owner and field == "port":
            message += f" by '{owner}'"
        super().__init__(message)


class RuntimeUnavailableError(DBDockError):
    """Exception raised when the Docker daemon cannot be reached."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """
        Initialize RuntimeUnavailableError.

        Args:
            message: Error message
            original_error: Original exception from the Docker SDK
        """
        self.original_error = original_error
        super().__init__(message)


class OperationError(DBDockError):
    """Exception raised when a create/update/start/stop/remove call fails."""

    def __init__(
        self,
        operation: str,
        container_id: str | None,
        details: str,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize OperationError.

        Args:
            operation: Operation that failed (create, update, start, stop, remove)
            container_id: Database id the operation targeted, if any
            details: Human readable failure reason
            original_error: Underlying exception
        """
        self.operation = operation
        self.container_id = container_id
        self.details = details
        self.original_error = original_error
        target = f" {container_id}" if container_id else ""
        super().__init__(f"Failed to {operation} database{target}: {details}")


class InvalidTransitionError(OperationError):
    """Exception raised when an operation is not allowed from the current status."""

    def __init__(self, operation: str, container_id: str, status: str) -> None:
        """
        Initialize InvalidTransitionError.

        Args:
            operation: Requested operation
            container_id: Database id
            status: Current status of the database
        """
        self.status = status
        super().__init__(operation, container_id, f"not allowed while {status}")


class ContainerNotFoundError(DBDockError):
    """Exception raised when a database id is not tracked."""

    def __init__(self, identifier: str) -> None:
        """
        Initialize ContainerNotFoundError.

        Args:
            identifier: Database id or name that was not found
        """
        self.identifier = identifier
        super().__init__(f"Database not found: {identifier}")
