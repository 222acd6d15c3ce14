"""Custom exceptions for application-specific error handling."""

from __future__ import annotations

from typing import Optional, Dict, Any


class VoluntreeException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the response envelope."""
        return {
            "statusCode": self.status_code,
            "data": None,
            "message": self.message,
            "success": False,
            "errorCode": self.error_code,
            "details": self.details,
        }


class ValidationError(VoluntreeException):
    """Raised when input is malformed or missing."""

    def __init__(self, message: str = "validation_error", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, status_code=400)


class InvalidOperationError(VoluntreeException):
    """Raised when a well-formed request asks for a forbidden transition."""

    def __init__(self, message: str = "invalid_operation", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="INVALID_OPERATION", details=details, status_code=400)


class NotFoundError(VoluntreeException):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "not_found", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="NOT_FOUND", details=details, status_code=404)


class ConflictError(VoluntreeException):
    """Raised when a request conflicts with current state."""

    def __init__(self, message: str = "conflict", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="CONFLICT", details=details, status_code=409)


class InternalError(VoluntreeException):
    """Raised when the store, signer or blob store fails unexpectedly."""

    def __init__(self, message: str = "internal_error", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="INTERNAL_ERROR", details=details, status_code=500)


class InvalidConfigurationError(VoluntreeException):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else {}
        super().__init__(message, error_code="INVALID_CONFIG", details=details, status_code=500)


# ===== AUTHENTICATION EXCEPTIONS =====


class AuthenticationException(VoluntreeException):
    """Base exception for authentication errors."""

    def __init__(
        self,
        message: str = "not_authenticated",
        *,
        error_code: str = "NOT_AUTHENTICATED",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, details=details, status_code=401)


class InvalidCredentialError(AuthenticationException):
    """Raised on a bad password or a bad, superseded or unknown token."""

    def __init__(self, message: str = "invalid_credential", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="INVALID_CREDENTIAL", details=details)


class ExpiredCredentialError(AuthenticationException):
    """Raised when a token has expired; clients should re-authenticate."""

    def __init__(self, message: str = "credential_expired", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="EXPIRED_CREDENTIAL", details=details)
