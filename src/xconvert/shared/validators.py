# src/xconvert/shared/validators.py
"""
Input Validation Utilities - Request and Configuration Validation

This module provides small validation helpers shared by the settings, the
request contracts and the CSV importer: currency codes, amount precision,
connection URLs and requester metadata extraction.

Files that USE this module:
- xconvert.config.settings (uses URL validators in Settings field validators)
- xconvert.application.contracts (currency code and amount precision checks)
- xconvert.application.csv_import_service (row validation)
- xconvert.application.convert_service (requester IP / user agent)

Files that this module USES:
- None (pure utility functions)
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional, Union

CURRENCY_CODE_PATTERN = r"^[A-Z]{3}$"
_CURRENCY_CODE_RE = re.compile(CURRENCY_CODE_PATTERN)

UNKNOWN = "unknown"


def validate_currency_code(code: Optional[str]) -> bool:
    """
    Validate an ISO-4217 style currency code.

    Args:
        code: Currency code to validate (must already be upper case)

    Returns:
        True if the code is exactly three upper-case ASCII letters
    """
    if not code or not isinstance(code, str):
        return False
    return bool(_CURRENCY_CODE_RE.match(code))


def has_max_decimal_places(value: Union[int, float, str, Decimal], places: int = 2) -> bool:
    """
    Check that a number has no more than `places` decimal digits.

    Floats are read through their shortest repr, so 100.75 counts as two places.

    Args:
        value: Number to check
        places: Maximum number of digits after the decimal point

    Returns:
        True if the value fits, False if it has more digits or is not a number
    """
    try:
        exponent = Decimal(str(value)).normalize().as_tuple().exponent
    except (InvalidOperation, ValueError):
        return False
    if not isinstance(exponent, int):
        # NaN / Infinity
        return False
    return exponent >= -places


def validate_database_url(url: str) -> bool:
    """
    Validate a SQLAlchemy database URL.

    Args:
        url: URL such as sqlite:///./data/xconvert.db or postgresql://...

    Returns:
        True if the URL has a dialect scheme, False otherwise
    """
    if not url:
        return False
    return bool(re.match(r"^[a-z][a-z0-9+]*://", url))


def validate_amqp_url(url: str) -> bool:
    """
    Validate a RabbitMQ connection URL.

    Args:
        url: URL to validate

    Returns:
        True if valid, False otherwise
    """
    if not url:
        return False
    return url.startswith("amqp://") or url.startswith("amqps://")


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup that also works on plain dicts."""
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    if value is None:
        for key, val in headers.items():
            if key.lower() == name.lower():
                return val
    return value


def extract_client_ip(headers: Optional[Mapping[str, str]]) -> str:
    """
    Get the requester IP from proxy headers.

    Uses the first entry of X-Forwarded-For, then X-Real-IP, else "unknown".

    Args:
        headers: Request headers (any mapping)

    Returns:
        Client IP address or "unknown"
    """
    if not headers:
        return UNKNOWN

    forwarded = _header(headers, "X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = _header(headers, "X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNKNOWN


def extract_user_agent(headers: Optional[Mapping[str, str]]) -> str:
    """
    Get the requester user agent.

    Args:
        headers: Request headers (any mapping)

    Returns:
        User-Agent header value or "unknown"
    """
    if not headers:
        return UNKNOWN
    agent = _header(headers, "User-Agent")
    return agent.strip() if agent and agent.strip() else UNKNOWN
