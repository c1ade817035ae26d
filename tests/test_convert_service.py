# tests/test_convert_service.py
"""
Convert Service Tests - Conversions, the Conversion Log and Statistics

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- xconvert.application.convert_service (ConvertService, convert_amount)
- xconvert.application.rates_service (RatesService for the degraded path)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from xconvert.application.convert_service import ConvertService, convert_amount
from xconvert.application.rates_service import RatesService
from xconvert.domain.errors import (
    NotFoundError,
    RateUnavailableError,
    UnsupportedOperationError,
    ValidationError,
)


class TestConvertAmount:
    @pytest.mark.parametrize("amount,rate,expected", [
        (100, 0.85, 85.0),
        (100.75, 0.85, 85.64),
        (1.005, 1, 1.01),
        (0.01, 0.5, 0.01),
        (2, 45000.123, 90000.25),
    ])
    def test_rounds_half_up_to_cents(self, amount, rate, expected):
        assert convert_amount(amount, rate) == expected


class TestConvert:
    def test_convert_with_stored_rate(self, convert_service, notifier, usd_eur):
        conversion = convert_service.convert(
            {"from": "USD", "to": "EUR", "amount": 100},
            headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "User-Agent": "pytest"},
        )

        assert conversion.id is not None
        assert conversion.converted_amount == 85.0
        assert conversion.rate == 0.85
        assert conversion.rate_source == "manual"
        assert conversion.user_ip == "203.0.113.7"
        assert conversion.user_agent == "pytest"
        notifier.conversion_performed.assert_called_once_with(conversion, persisted=True)

    def test_convert_rounding(self, convert_service, usd_eur):
        conversion = convert_service.convert({"from": "USD", "to": "EUR", "amount": 100.75})
        assert conversion.converted_amount == 85.64
        assert conversion.user_ip == "unknown"
        assert conversion.user_agent == "unknown"

    def test_convert_fetches_missing_rate(self, convert_service, router):
        router.try_rate.return_value = 0.79

        conversion = convert_service.convert({"from": "USD", "to": "GBP", "amount": 10})

        assert conversion.converted_amount == 7.9
        assert conversion.rate_source == "openexchangerates"

    def test_convert_rate_unavailable(self, convert_service, notifier):
        with pytest.raises(RateUnavailableError):
            convert_service.convert({"from": "USD", "to": "XAU", "amount": 10})
        notifier.conversion_performed.assert_not_called()

    @pytest.mark.parametrize("payload", [
        {"from": "USD", "to": "EUR", "amount": 10.123},
        {"from": "usd", "to": "EUR", "amount": 10},
        {"from": "USD", "to": "EUR", "amount": 0},
        {"from": "USD", "to": "EUR", "amount": -5},
        {"from": "USD", "to": "EUR", "amount": "NaN"},
        {"from": "USD", "to": "EUR", "amount": "Infinity"},
        {"from": "USD", "amount": 10},
        {},
    ])
    def test_convert_rejects_invalid_payload(self, convert_service, payload):
        with pytest.raises(ValidationError):
            convert_service.convert(payload)

    def test_amount_precision_message(self, convert_service):
        with pytest.raises(ValidationError) as exc_info:
            convert_service.convert({"from": "USD", "to": "EUR", "amount": 10.123})
        assert "up to 2 decimal places" in str(exc_info.value)


class TestDegradedMode:
    def _service(self, offline_db, router, notifier):
        rates = RatesService(offline_db, router, notifier)
        return ConvertService(offline_db, rates, notifier, demo_rate=0.85)

    def test_uses_external_rate_without_persisting(self, offline_db, router, notifier):
        router.try_rate.return_value = 0.9
        service = self._service(offline_db, router, notifier)

        conversion = service.convert({"from": "USD", "to": "EUR", "amount": 100})

        assert conversion.id is None
        assert conversion.rate_source == "external"
        assert conversion.converted_amount == 90.0
        notifier.conversion_performed.assert_called_once_with(conversion, persisted=False)

    def test_falls_back_to_demo_rate(self, offline_db, router, notifier):
        service = self._service(offline_db, router, notifier)

        conversion = service.convert({"from": "USD", "to": "EUR", "amount": 100})

        assert conversion.rate == 0.85
        assert conversion.rate_source == "demo"
        assert conversion.converted_amount == 85.0

    def test_reads_return_empty_results(self, offline_db, router, notifier):
        service = self._service(offline_db, router, notifier)

        page = service.find()
        assert page.total == 0
        assert page.message
        assert service.stats().total_conversions == 0
        assert service.popular_pairs() == []


class TestConversionLog:
    def _seed(self, convert_service, router):
        router.try_rate.side_effect = lambda f, t: {("USD", "EUR"): 0.85, ("USD", "GBP"): 0.79,
                                                    ("EUR", "USD"): 1.18}.get((f, t))
        for payload in (
            {"from": "USD", "to": "EUR", "amount": 100},
            {"from": "USD", "to": "GBP", "amount": 50},
            {"from": "EUR", "to": "USD", "amount": 20},
            {"from": "USD", "to": "EUR", "amount": 200},
        ):
            convert_service.convert(payload)

    def test_find_newest_first_with_filter(self, convert_service, router):
        self._seed(convert_service, router)

        page = convert_service.find({"fromCurrency": "USD"})

        assert page.total == 3
        assert [c.original_amount for c in page.data] == [200, 50, 100]

    def test_find_paging(self, convert_service, router):
        self._seed(convert_service, router)

        page = convert_service.find({"limit": 2, "skip": 1})

        assert page.total == 2
        assert [c.original_amount for c in page.data] == [20, 50]

    def test_find_rejects_inverted_range(self, convert_service):
        with pytest.raises(ValidationError, match="endDate"):
            convert_service.find({"startDate": "2024-02-01", "endDate": "2024-01-01"})

    def test_find_by_future_range_is_empty(self, convert_service, router):
        self._seed(convert_service, router)
        assert convert_service.find({"startDate": "2999-01-01"}).total == 0

    def test_get_and_remove(self, convert_service, usd_eur):
        conversion = convert_service.convert({"from": "USD", "to": "EUR", "amount": 1})

        assert convert_service.get(conversion.id).converted_amount == 0.85
        assert convert_service.remove(conversion.id) == {"message": "Conversion deleted successfully"}
        with pytest.raises(NotFoundError, match="Conversion not found"):
            convert_service.get(conversion.id)
        with pytest.raises(NotFoundError):
            convert_service.remove(conversion.id)

    def test_patch_not_allowed(self, convert_service):
        with pytest.raises(UnsupportedOperationError):
            convert_service.patch(1, {"amount": 5})

    def test_stats(self, convert_service, router):
        self._seed(convert_service, router)

        stats = convert_service.stats({"fromCurrency": "USD", "toCurrency": "EUR"})

        assert stats.total_conversions == 2
        assert stats.total_original_amount == pytest.approx(300)
        assert stats.total_converted_amount == pytest.approx(255)
        assert stats.average_rate == pytest.approx(0.85)
        assert stats.min_rate == stats.max_rate == pytest.approx(0.85)

    def test_stats_empty(self, convert_service):
        assert convert_service.stats().to_json()["totalConversions"] == 0

    def test_popular_pairs(self, convert_service, router):
        self._seed(convert_service, router)

        pairs = convert_service.popular_pairs()

        assert [(p.from_currency, p.to_currency, p.conversion_count) for p in pairs] == [
            ("USD", "EUR", 2),
            ("USD", "GBP", 1),
            ("EUR", "USD", 1),
        ]
        assert pairs[0].total_amount == pytest.approx(300)
        assert len(convert_service.popular_pairs({"limit": 1})) == 1
