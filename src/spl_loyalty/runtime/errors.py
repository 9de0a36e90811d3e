"""
Service Error Model

This module provides the error handling framework for the loyalty token service.
Every failure leaving the service is a ServiceError carrying a message and an
HTTP-like status code, so callers can map it straight onto a response.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from http import HTTPStatus


class ServiceError(Exception):
    """
    Base class for all service errors.

    Provides a message, an HTTP-like status code and optional details.
    """

    status: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a service error.

        Args:
            message: Error message
            status: HTTP-like status code (defaults to the class status)
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = int(status)
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{int(self.status)}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "message": self.message,
            "status": int(self.status),
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ServiceError':
        """Create error from dictionary representation."""
        message = data.get("message", "Unknown error")
        status = data.get("status", HTTPStatus.INTERNAL_SERVER_ERROR)
        return cls(message, status, data.get("details"))


class ValidationError(ServiceError):
    """Invalid parameters supplied by the caller."""

    status = HTTPStatus.BAD_REQUEST


class InvalidSecretKeyError(ValidationError):
    """A caller-supplied secret key could not be decoded into a keypair."""

    def __init__(self, operation: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(f"Invalid secret key provided for {operation}",
                         details={"operation": operation, **(details or {})}, cause=cause)
        self.operation = operation

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InvalidSecretKeyError':
        details = dict(data.get("details") or {})
        return cls(details.pop("operation", "unknown operation"), details)


class InvalidAddressError(ValidationError):
    """A caller-supplied address is not a valid public key."""

    def __init__(self, address: str, cause: Optional[Exception] = None):
        super().__init__(f"Invalid address: {address}", details={"address": address}, cause=cause)
        self.address = address

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InvalidAddressError':
        return cls((data.get("details") or {}).get("address", ""))


class CredentialError(ServiceError):
    """The custodial credential could not be read or created."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR


class AccountNotFoundError(ServiceError):
    """Account does not exist on the ledger."""

    status = HTTPStatus.NOT_FOUND

    def __init__(self, message: str = "Account not found",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, details=details, cause=cause)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AccountNotFoundError':
        return cls(data.get("message", "Account not found"), data.get("details"))


class LedgerError(ServiceError):
    """Failure reported by the ledger SDK or its RPC transport."""

    status = HTTPStatus.BAD_GATEWAY


def wrap_ledger_error(error: Exception, message: str) -> ServiceError:
    """
    Translate an arbitrary exception into a ServiceError.

    ServiceErrors pass through unchanged so that a specific status chosen
    deeper in the call stack is not flattened into a generic one.

    Args:
        error: Exception raised by the SDK or by service code
        message: Context prefix for the new error message

    Returns:
        ServiceError instance
    """
    if isinstance(error, ServiceError):
        return error
    return LedgerError(f"{message}: {error}", details={"type": type(error).__name__}, cause=error)


__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidSecretKeyError",
    "InvalidAddressError",
    "CredentialError",
    "AccountNotFoundError",
    "LedgerError",
    "wrap_ledger_error",
]
