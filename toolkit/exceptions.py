"""
Custom exceptions for the repository toolkit.
"""

class RepositoryError(Exception):
    """Base exception for repository-related errors."""
    pass

class TransactionError(RepositoryError):
    """Base exception for transaction state violations."""
    pass

class TransactionAlreadyActiveError(TransactionError):
    """Raised when starting a transaction while one is already open."""

    def __init__(self, message: str = "Attempting to start a transaction while already in a transaction"):
        super().__init__(message)

class NoActiveTransactionError(TransactionError):
    """Raised when committing or rolling back outside of a transaction."""

    def __init__(self, action: str = "commit"):
        self.action = action
        super().__init__(f"Attempting to {action} outside of a transaction")

class UnknownModelError(RepositoryError):
    """Raised when a model identifier cannot be resolved to a mapped class."""
    pass

class UnknownColumnError(RepositoryError):
    """Raised when a finder references a column the model does not map."""

    def __init__(self, model_name: str, column: str):
        self.model_name = model_name
        self.column = column
        super().__init__(f"{model_name} has no column named '{column}'")

class FinderArgumentError(RepositoryError, TypeError):
    """Raised when get_by/get_one_by receive a malformed argument shape."""
    pass
