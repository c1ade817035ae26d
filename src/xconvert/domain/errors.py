# src/xconvert/domain/errors.py
"""
Domain Errors - Business Logic Exceptions

This module defines domain-specific exceptions that represent
business rule violations and domain errors. The HTTP layer maps
each one to a status code.
"""
from typing import List, Optional


class DomainError(Exception):
    """Base exception for domain errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when input does not satisfy a request contract."""
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [message])


class NotFoundError(DomainError):
    """Raised when a rate, conversion or job does not exist."""
    status_code = 404


class UnsupportedOperationError(DomainError):
    """Raised for operations an entity does not allow (e.g. patching a conversion)."""
    status_code = 405


class RateUnavailableError(DomainError):
    """Raised when no provider could price a currency pair."""
    status_code = 502


class StoreUnavailableError(DomainError):
    """Raised when the backing store cannot be reached."""
    status_code = 503


class QueueUnavailableError(DomainError):
    """Raised when the message broker cannot be reached or refuses an operation."""
    status_code = 503
