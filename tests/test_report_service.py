# tests/test_report_service.py
"""
Report Service Tests - Daily/Monthly Aggregation and Rendering

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- xconvert.application.report_service (ReportService and helpers)
- xconvert.adapters.persistence (ConversionRepository for seeding the log)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from datetime import date, datetime, timezone

from xconvert.adapters.persistence.repositories import ConversionRepository
from xconvert.application.report_service import (
    ReportService,
    day_bounds,
    month_bounds,
    report_filename,
)
from xconvert.domain.errors import ValidationError
from xconvert.domain.models import Conversion


def _log(db, when, from_currency="USD", to_currency="EUR", amount=100.0, rate=0.85):
    with db.session() as session:
        ConversionRepository(session).add(Conversion(
            id=None,
            from_currency=from_currency,
            to_currency=to_currency,
            original_amount=amount,
            converted_amount=round(amount * rate, 2),
            rate=rate,
            rate_source="manual",
            conversion_date=when,
        ))


@pytest.fixture
def seeded(db):
    utc = timezone.utc
    _log(db, datetime(2024, 3, 14, 23, 59, 59, tzinfo=utc), amount=10)
    _log(db, datetime(2024, 3, 15, 0, 0, 0, tzinfo=utc), amount=100)
    _log(db, datetime(2024, 3, 15, 12, 30, tzinfo=utc), amount=200)
    _log(db, datetime(2024, 3, 15, 23, 59, 59, 999999, tzinfo=utc), "BTC", "USD", amount=0.5, rate=45000)
    _log(db, datetime(2024, 3, 16, 0, 0, 0, tzinfo=utc), amount=1000)
    return db


class TestHelpers:
    def test_day_bounds(self):
        start, end = day_bounds(date(2024, 3, 15))
        assert start == datetime(2024, 3, 15, tzinfo=timezone.utc)
        assert end == datetime(2024, 3, 15, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_month_bounds_leap_year(self):
        start, end = month_bounds(2024, 2)
        assert start.day == 1
        assert end.day == 29

    def test_report_filename(self):
        assert report_filename(date(2024, 3, 15)) == "conversion_report_2024-03-15.pdf"
        assert report_filename(date(2024, 3, 15), "csv") == "conversion_report_2024-03-15.csv"


class TestDailyReport:
    def test_covers_exactly_one_utc_day(self, report_service, seeded):
        report = report_service.daily_report("2024-03-15")

        assert report.date == date(2024, 3, 15)
        assert report.conversions == 3
        assert report.statistics.total_conversions == 3
        assert report.statistics.total_original_amount == pytest.approx(300.5)
        assert report.unique_pairs == [{"from": "BTC", "to": "USD"}, {"from": "USD", "to": "EUR"}]
        assert report.popular_pairs[0].from_currency == "USD"
        assert report.popular_pairs[0].conversion_count == 2
        assert report.demo is False

    def test_accepts_date_object(self, report_service, seeded):
        assert report_service.daily_report(date(2024, 3, 16)).conversions == 1

    def test_empty_day(self, report_service, db):
        report = report_service.daily_report(date(2020, 1, 1))
        assert report.conversions == 0
        assert report.popular_pairs == []
        assert report.to_json()["statistics"]["totalConversions"] == 0

    def test_malformed_date(self, report_service):
        with pytest.raises(ValidationError):
            report_service.daily_report("15/03/2024")

    def test_demo_mode(self, offline_db):
        report = ReportService(offline_db).daily_report("2024-03-15")
        assert report.demo is True
        assert report.to_json()["demo"] is True
        assert report.conversions == 0

    def test_to_json_shape(self, report_service, seeded):
        body = report_service.daily_report("2024-03-15").to_json()
        assert body["date"] == "2024-03-15"
        assert body["statistics"]["uniqueCurrencyPairs"] == [
            {"from": "BTC", "to": "USD"},
            {"from": "USD", "to": "EUR"},
        ]
        assert "demo" not in body


class TestMonthlyReport:
    def test_groups_by_day(self, report_service, seeded):
        report = report_service.monthly_report({"year": 2024, "month": 3})

        assert report.month_name == "March"
        assert [(d.day, d.conversions) for d in report.daily_stats] == [(14, 1), (15, 3), (16, 1)]
        assert report.daily_stats[1].amount == pytest.approx(300.5)
        assert report.top_pairs[0].conversion_count == 4

    def test_other_month_is_empty(self, report_service, seeded):
        report = report_service.monthly_report({"year": "2024", "month": "4"})
        assert report.daily_stats == []
        assert report.to_json()["monthName"] == "April"

    @pytest.mark.parametrize("query", [{"month": 13}, {"month": 0}, {"year": 1800}])
    def test_invalid_query(self, report_service, query):
        with pytest.raises(ValidationError):
            report_service.monthly_report(query)

    def test_demo_mode(self, offline_db):
        report = ReportService(offline_db).monthly_report({"year": 2024, "month": 3})
        assert report.demo is True


class TestDocuments:
    def test_pdf_document(self, report_service, seeded):
        doc = report_service.create_document({"date": "2024-03-15"})

        assert doc["filename"] == "conversion_report_2024-03-15.pdf"
        assert doc["mediaType"] == "application/pdf"
        assert doc["content"].startswith(b"%PDF")

    def test_pdf_for_empty_day(self, report_service, db):
        doc = report_service.create_document({"date": "2020-01-01"})
        assert doc["content"].startswith(b"%PDF")

    def test_csv_document(self, report_service, seeded):
        doc = report_service.create_document({"date": "2024-03-15", "format": "csv"})

        assert doc["filename"] == "conversion_report_2024-03-15.csv"
        assert doc["mediaType"] == "text/csv"
        lines = doc["content"].splitlines()
        assert lines[0] == "Date,2024-03-15"
        assert "Total Conversions,3" in lines
        assert "USD,EUR,2,$300.00" in lines

    def test_unknown_format(self, report_service):
        with pytest.raises(ValidationError):
            report_service.create_document({"format": "xlsx"})

    def test_write_document(self, report_service, seeded, tmp_path):
        report = report_service.daily_report("2024-03-15")

        path = report_service.write_document(report, tmp_path / "reports")

        assert path.name == "conversion_report_2024-03-15.pdf"
        assert path.read_bytes().startswith(b"%PDF")
