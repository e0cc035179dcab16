"""Custom exception classes for the RAG engine."""

from typing import Any, Dict, Optional


class RAGEngineException(Exception):
    """Base exception for all RAG engine errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "status_code": self.status_code,
                "details": self.details,
            }
        }


class NotFoundError(RAGEngineException):
    """Exception raised when a resource is missing or not owned by the caller."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found or not permitted"
        if resource_id:
            message += f" (id: {resource_id})"
        error_details = details or {}
        error_details["resource"] = resource
        if resource_id:
            error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            status_code=404,
            code="NOT_FOUND",
            details=error_details,
        )


class ConfigurationMissingError(RAGEngineException):
    """Exception raised when required provider settings are absent."""

    def __init__(
        self,
        message: str = "LLM provider is not configured",
        missing: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if missing:
            error_details["missing"] = missing
        super().__init__(
            message=message,
            status_code=400,
            code="CONFIGURATION_MISSING",
            details=error_details,
        )


class DimensionMismatchError(RAGEngineException):
    """Exception raised when vectors do not match the expected shape or count."""

    def __init__(
        self,
        message: str = "Embedding dimension mismatch",
        expected: Optional[int] = None,
        actual: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if expected is not None:
            error_details["expected"] = expected
        if actual is not None:
            error_details["actual"] = actual
        super().__init__(
            message=message,
            status_code=502,
            code="DIMENSION_MISMATCH",
            details=error_details,
        )


class EmbeddingError(RAGEngineException):
    """Exception raised when the provider returns an unusable response."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if model:
            error_details["model"] = model
        super().__init__(
            message=message,
            status_code=502,
            code="EMBEDDING_ERROR",
            details=error_details,
        )


class ChunkingError(RAGEngineException):
    """Exception raised for invalid chunking parameters."""

    def __init__(
        self,
        message: str = "Text chunking failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=422,
            code="CHUNKING_ERROR",
            details=details,
        )


class DatabaseError(RAGEngineException):
    """Exception raised for database operation errors."""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            code="DATABASE_ERROR",
            details=details,
        )


class TransactionError(DatabaseError):
    """Exception raised when the atomic embedding replacement fails."""

    def __init__(
        self,
        message: str = "Embedding replacement transaction failed",
        document_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if document_id:
            error_details["document_id"] = document_id
        super().__init__(message=message, details=error_details)
        self.code = "TRANSACTION_ERROR"


class EncryptionError(RAGEngineException):
    """Exception raised when a secret cannot be encrypted or decrypted."""

    def __init__(
        self,
        message: str = "Encryption operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            code="ENCRYPTION_ERROR",
            details=details,
        )
