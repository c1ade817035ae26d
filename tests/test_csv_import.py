# tests/test_csv_import.py
"""
CSV Import Tests - Bulk Rate Upload

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- xconvert.application.csv_import_service (CSVImportService, check_upload, process_row)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from xconvert.application.csv_import_service import (
    CSV_TEMPLATE,
    MAX_UPLOAD_BYTES,
    CSVImportService,
    check_upload,
    process_row,
)
from xconvert.domain.errors import StoreUnavailableError, ValidationError
from xconvert.application.rates_service import RatesService

GOOD_AND_BAD = (
    "fromCurrency,toCurrency,rate,source\n"
    "USD,EUR,0.85,manual\n"
    "eur,usd,1.18,\n"
    "USD,JPY,150.25,OpenExchangeRates\n"
    "BTC,USD,45000,coingecko\n"
    "ETH,USD,3000,coingecko\n"
    "USD,GBP,-1,manual\n"
)


@pytest.fixture
def importer(rates_service):
    return CSVImportService(rates_service)


class TestProcessRow:
    def test_normalizes_codes_and_source(self):
        req = process_row({"fromCurrency": " usd ", "toCurrency": "eur", "rate": "0.85", "source": ""}, 1)
        assert req.from_currency == "USD"
        assert req.to_currency == "EUR"
        assert req.rate == 0.85
        assert req.source == "manual"

    def test_missing_fields(self):
        with pytest.raises(ValidationError, match="Row 3: missing required fields"):
            process_row({"fromCurrency": "USD", "toCurrency": "", "rate": "1"}, 3)

    def test_invalid_value_names_row(self):
        with pytest.raises(ValidationError, match="Row 7: rate: Rate must be positive"):
            process_row({"fromCurrency": "USD", "toCurrency": "EUR", "rate": "0"}, 7)

    def test_non_numeric_rate(self):
        with pytest.raises(ValidationError, match="Row 2"):
            process_row({"fromCurrency": "USD", "toCurrency": "EUR", "rate": "abc"}, 2)

    @pytest.mark.parametrize("value", ["NaN", "nan", "inf", "Infinity"])
    def test_non_finite_rate(self, value):
        with pytest.raises(ValidationError, match="Row 4: rate: Input should be a finite number"):
            process_row({"fromCurrency": "USD", "toCurrency": "EUR", "rate": value}, 4)


class TestImportCsv:
    def test_valid_rows_saved_bad_rows_reported(self, importer, rates_service):
        result = importer.import_csv(GOOD_AND_BAD.encode("utf-8"))

        assert result["success"] is True
        assert result["totalRows"] == 6
        assert result["processedRows"] == 5
        assert result["savedRates"] == 5
        assert len(result["errors"]) == 1
        assert result["errors"][0]["row"] == 6
        assert result["errors"][0]["data"]["toCurrency"] == "GBP"
        assert result["summary"] == {"total": 6, "processed": 5, "saved": 5, "errors": 1}
        assert rates_service.find().total == 5
        assert rates_service.find({"fromCurrency": "EUR"}).data[0].source == "manual"

    def test_non_finite_rows_are_row_errors(self, importer, rates_service):
        content = (
            "fromCurrency,toCurrency,rate,source\n"
            "USD,EUR,0.85,manual\n"
            "USD,GBP,nan,manual\n"
            "USD,JPY,Infinity,manual\n"
            "BTC,USD,45000,coingecko\n"
        )

        result = importer.import_csv(content)

        assert result["savedRates"] == 2
        assert [e["row"] for e in result["errors"]] == [2, 3]
        assert rates_service.find().total == 2

    def test_reimport_updates_instead_of_duplicating(self, importer, rates_service):
        importer.import_csv(GOOD_AND_BAD)
        importer.import_csv(GOOD_AND_BAD)
        assert rates_service.find().total == 5

    def test_bom_is_ignored(self, importer):
        result = importer.import_csv("\ufefffromCurrency,toCurrency,rate\nUSD,EUR,0.85\n".encode("utf-8"))
        assert result["savedRates"] == 1

    def test_header_only(self, importer):
        result = importer.import_csv("fromCurrency,toCurrency,rate,source\n")
        assert result["totalRows"] == 0
        assert result["errors"] == []

    def test_not_utf8(self, importer):
        with pytest.raises(ValidationError, match="UTF-8"):
            importer.import_csv(b"fromCurrency,toCurrency,rate\n\xff\xfe,USD,1\n")

    def test_store_unavailable(self, offline_db, router):
        importer = CSVImportService(RatesService(offline_db, router))
        with pytest.raises(StoreUnavailableError):
            importer.import_csv(GOOD_AND_BAD)


class TestValidateCsv:
    def test_dry_run_stores_nothing(self, importer, rates_service):
        result = importer.validate_csv(GOOD_AND_BAD)

        assert result["valid"] is False
        assert result["totalRows"] == 6
        assert result["validRows"] == 5
        assert rates_service.find().total == 0

    def test_template_is_valid(self, importer):
        assert importer.template() == CSV_TEMPLATE
        result = importer.validate_csv(importer.template())
        assert result["valid"] is True
        assert result["validRows"] == 7


class TestCheckUpload:
    def test_accepts_csv(self):
        check_upload("rates.csv", "text/csv", 100)
        check_upload("rates.txt", "text/csv; charset=utf-8", 100)
        check_upload("RATES.CSV", "application/octet-stream", 100)

    def test_rejects_other_types(self):
        with pytest.raises(ValidationError, match="Only CSV files are allowed"):
            check_upload("rates.xlsx", "application/vnd.ms-excel", 100)

    def test_rejects_large_files(self):
        with pytest.raises(ValidationError, match="5 MB"):
            check_upload("rates.csv", "text/csv", MAX_UPLOAD_BYTES + 1)

    def test_rejects_missing_file(self):
        with pytest.raises(ValidationError, match="No CSV file uploaded"):
            check_upload(None, None, 0)
