# src/xconvert/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation
- Logging configuration
"""

from xconvert.shared.validators import (
    CURRENCY_CODE_PATTERN,
    extract_client_ip,
    extract_user_agent,
    has_max_decimal_places,
    validate_amqp_url,
    validate_currency_code,
    validate_database_url,
)

__all__ = [
    "CURRENCY_CODE_PATTERN",
    "validate_currency_code",
    "has_max_decimal_places",
    "validate_database_url",
    "validate_amqp_url",
    "extract_client_ip",
    "extract_user_agent",
]
