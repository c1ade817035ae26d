# src/xconvert/application/contracts.py
"""
Request Contracts - Input Validation at the Service Boundary

One pydantic model per operation input. Services call parse() with the raw
payload (JSON body, query parameters or a CSV row) and get back a validated
model or a domain ValidationError listing every violated constraint.

Files that USE this module:
- xconvert.application.rates_service (CreateRateRequest, UpdateRateRequest, RateQuery)
- xconvert.application.convert_service (ConvertRequest, ConversionQuery, StatsQuery)
- xconvert.application.csv_import_service (CreateRateRequest per row)
- xconvert.application.report_service (ReportRequest, MonthlyReportQuery)
- xconvert.application.queue_service (QueueMessageRequest)

Files that this module USES:
- xconvert.domain.errors (ValidationError)
- xconvert.domain.models (RATE_SOURCES)
- xconvert.shared.validators (currency code and decimal place checks)
"""
from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Dict, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from xconvert.domain.errors import ValidationError
from xconvert.domain.models import RATE_SOURCES
from xconvert.shared.validators import has_max_decimal_places, validate_currency_code

M = TypeVar("M", bound=BaseModel)

CURRENCY_CODE_MESSAGE = "Currency code must be 3 uppercase letters (e.g., USD, EUR, BTC)"
SOURCE_MESSAGE = "Source must be one of: " + ", ".join(RATE_SOURCES)


def _describe(error: Dict[str, Any]) -> str:
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "__root__")
    msg = str(error.get("msg", "invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{field}: {msg}" if field else msg


def parse(model: Type[M], data: Optional[Dict[str, Any]]) -> M:
    """
    Validate a raw payload against a contract.

    Args:
        model: Contract class
        data: Raw mapping (None is treated as empty)

    Returns:
        Validated model instance

    Raises:
        ValidationError: With one entry per violated constraint
    """
    try:
        return model.model_validate(data or {})
    except PydanticValidationError as e:
        errors = [_describe(err) for err in e.errors()]
        raise ValidationError(f"Validation error: {errors[0]}", errors) from e


def _currency(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not validate_currency_code(value):
        raise ValueError(CURRENCY_CODE_MESSAGE)
    return value


def _source(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if value not in RATE_SOURCES:
        raise ValueError(SOURCE_MESSAGE)
    return value


def _positive_rate(value: Optional[float]) -> Optional[float]:
    if value is not None and value <= 0:
        raise ValueError("Rate must be positive")
    return value


def _as_utc_datetime(value: Any) -> Any:
    # Plain dates mean midnight UTC
    if isinstance(value, str) and len(value) == 10:
        try:
            value = date.fromisoformat(value)
        except ValueError:
            return value
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return value


class Contract(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)


# ============================================================================
# RATES
# ============================================================================

class CreateRateRequest(Contract):
    from_currency: str = Field(alias="fromCurrency")
    to_currency: str = Field(alias="toCurrency")
    rate: float = Field(allow_inf_nan=False)
    source: str

    @field_validator("from_currency", "to_currency")
    @classmethod
    def check_codes(cls, v):
        return _currency(v)

    @field_validator("rate")
    @classmethod
    def check_rate(cls, v):
        return _positive_rate(v)

    @field_validator("source")
    @classmethod
    def check_source(cls, v):
        return _source(v)


class UpdateRateRequest(Contract):
    rate: Optional[float] = Field(default=None, allow_inf_nan=False)
    source: Optional[str] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")

    @field_validator("rate")
    @classmethod
    def check_rate(cls, v):
        return _positive_rate(v)

    @field_validator("source")
    @classmethod
    def check_source(cls, v):
        return _source(v)


class RateQuery(Contract):
    from_currency: Optional[str] = Field(default=None, alias="fromCurrency")
    to_currency: Optional[str] = Field(default=None, alias="toCurrency")
    source: Optional[str] = None
    limit: int = Field(default=50, ge=1, le=100)
    skip: int = Field(default=0, ge=0)

    @field_validator("from_currency", "to_currency")
    @classmethod
    def check_codes(cls, v):
        return _currency(v)

    @field_validator("source")
    @classmethod
    def check_source(cls, v):
        return _source(v)


# ============================================================================
# CONVERSIONS
# ============================================================================

class ConvertRequest(Contract):
    from_currency: str = Field(alias="from")
    to_currency: str = Field(alias="to")
    amount: float = Field(allow_inf_nan=False)

    @field_validator("from_currency", "to_currency")
    @classmethod
    def check_codes(cls, v):
        return _currency(v)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v):
        if v <= 0:
            raise ValueError("Amount must be positive")
        if not has_max_decimal_places(v, 2):
            raise ValueError("Amount can have up to 2 decimal places")
        return v


class StatsQuery(Contract):
    from_currency: Optional[str] = Field(default=None, alias="fromCurrency")
    to_currency: Optional[str] = Field(default=None, alias="toCurrency")
    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")

    @field_validator("from_currency", "to_currency")
    @classmethod
    def check_codes(cls, v):
        return _currency(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _as_utc_datetime(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date:
            start = self.start_date if self.start_date.tzinfo else self.start_date.replace(tzinfo=timezone.utc)
            end = self.end_date if self.end_date.tzinfo else self.end_date.replace(tzinfo=timezone.utc)
            if end < start:
                raise ValueError("endDate must be greater than or equal to startDate")
        return self


class ConversionQuery(StatsQuery):
    limit: int = Field(default=50, ge=1, le=100)
    skip: int = Field(default=0, ge=0)


class PopularPairsQuery(Contract):
    limit: int = Field(default=10, ge=1, le=100)


# ============================================================================
# REPORTS
# ============================================================================

class ReportRequest(Contract):
    report_date: Optional[date] = Field(default=None, alias="date")
    format: Literal["pdf", "csv"] = "pdf"


class MonthlyReportQuery(Contract):
    year: Optional[int] = Field(default=None, ge=1970, le=9999)
    month: Optional[int] = Field(default=None, ge=1, le=12)


# ============================================================================
# QUEUE
# ============================================================================

class QueueMessageRequest(Contract):
    message: Any
    type: str = "custom"

    @field_validator("message")
    @classmethod
    def check_message(cls, v):
        if v in (None, "", {}, []):
            raise ValueError("Message is required")
        return v
