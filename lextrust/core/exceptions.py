"""Custom exception hierarchy."""


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an external API call fails."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class StorageUploadError(APIClientError):
    """Document bytes could not be written to object storage."""
    pass


class VectorStoreError(APIClientError):
    """Upload or attach to the vector store failed."""
    pass


class JobValidationError(ValidationError):
    """A learning job cannot be dispatched.

    ``reason`` is the machine-readable string written to the job row
    (``missing_org``, ``payload_invalid``, ``question_missing``).
    """
    def __init__(self, reason: str, message: str = None):
        super().__init__(message or reason)
        self.reason = reason
