# src/xconvert/application/csv_import_service.py
"""
CSV Import Service - Bulk Rate Upload

Parses an uploaded CSV of rates (header fromCurrency,toCurrency,rate,source),
validates every row the same way a single rate create is validated, and
upserts the valid rows through the rate service. Bad rows are collected with
their row number and raw data; they never abort the import.

Files that USE this module:
- xconvert.adapters.http.api (csv routes)
- tests.test_csv_import (unit tests)

Files that this module USES:
- xconvert.application.contracts (CreateRateRequest row validation)
- xconvert.application.rates_service (RatesService.create)
"""
from __future__ import annotations

import csv
import io
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from xconvert.application.contracts import CreateRateRequest, parse
from xconvert.domain.errors import ValidationError
from xconvert.domain.models import RateSource

log = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
REQUIRED_COLUMNS = ("fromCurrency", "toCurrency", "rate")

CSV_TEMPLATE = """fromCurrency,toCurrency,rate,source
USD,EUR,0.85,manual
EUR,USD,1.18,manual
USD,MXN,18.50,manual
BTC,USD,45000,coingecko
ETH,USD,3000,coingecko
EUR,JPY,160.50,openexchangerates
USD,JPY,150.25,openexchangerates"""

RowError = Dict[str, Any]


def check_upload(filename: Optional[str], content_type: Optional[str], size: int) -> None:
    """
    Reject uploads that are not CSV or are too large.

    Raises:
        ValidationError: If the upload is missing, not CSV or over 5 MB
    """
    if not filename and size == 0:
        raise ValidationError("No CSV file uploaded")
    is_csv = (content_type or "").split(";")[0].strip() == "text/csv" or (filename or "").lower().endswith(".csv")
    if not is_csv:
        raise ValidationError("Only CSV files are allowed")
    if size > MAX_UPLOAD_BYTES:
        raise ValidationError("CSV file exceeds the 5 MB limit")


def _text(content: Union[bytes, str]) -> str:
    if isinstance(content, bytes):
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValidationError("CSV file must be UTF-8 encoded") from e
    return content


def process_row(row: Dict[str, Optional[str]], row_number: int) -> CreateRateRequest:
    """
    Normalize and validate one data row.

    Codes are upper-cased and the source lower-cased, defaulting to manual.

    Raises:
        ValidationError: With a message naming the row
    """
    values = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    missing = [col for col in REQUIRED_COLUMNS if not values.get(col)]
    if missing:
        raise ValidationError(
            f"Row {row_number}: missing required fields ({', '.join(REQUIRED_COLUMNS)})"
        )

    payload = {
        "fromCurrency": values["fromCurrency"].upper(),
        "toCurrency": values["toCurrency"].upper(),
        "rate": values["rate"],
        "source": (values.get("source") or RateSource.MANUAL.value).lower(),
    }
    try:
        return parse(CreateRateRequest, payload)
    except ValidationError as e:
        raise ValidationError(f"Row {row_number}: {'; '.join(e.errors)}", e.errors) from e


class CSVImportService:
    def __init__(self, rates_service):
        """
        Args:
            rates_service: RatesService that stores each valid row
        """
        self.rates_service = rates_service

    def _scan(self, content: Union[bytes, str]) -> Tuple[int, List[CreateRateRequest], List[RowError]]:
        reader = csv.DictReader(io.StringIO(_text(content)))
        valid: List[CreateRateRequest] = []
        errors: List[RowError] = []
        total = 0
        for total, row in enumerate(reader, start=1):
            try:
                valid.append(process_row(row, total))
            except ValidationError as e:
                errors.append({
                    "row": total,
                    "error": e.message,
                    "data": {k: v for k, v in row.items() if k is not None},
                })
        return total, valid, errors

    def import_csv(self, content: Union[bytes, str]) -> Dict[str, Any]:
        """
        Import rates from CSV content.

        Returns:
            {success, totalRows, processedRows, savedRates, errors, summary}

        Raises:
            ValidationError: If the content cannot be decoded
            StoreUnavailableError: If the store cannot be reached
        """
        total, valid, errors = self._scan(content)

        saved = 0
        for req in valid:
            self.rates_service.create(req.model_dump(by_alias=True))
            saved += 1

        log.info("CSV import: %d rows, %d valid, %d saved, %d errors", total, len(valid), saved, len(errors))
        return {
            "success": True,
            "totalRows": total,
            "processedRows": len(valid),
            "savedRates": saved,
            "errors": errors,
            "summary": {
                "total": total,
                "processed": len(valid),
                "saved": saved,
                "errors": len(errors),
            },
        }

    def validate_csv(self, content: Union[bytes, str]) -> Dict[str, Any]:
        """Dry run: report row errors without storing anything."""
        total, valid, errors = self._scan(content)
        return {
            "valid": not errors,
            "totalRows": total,
            "validRows": len(valid),
            "errors": errors,
        }

    def template(self) -> str:
        return CSV_TEMPLATE
