from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from portfolio_sync.infrastructure.coinbase.client import CoinbaseClient
from portfolio_sync.services.pricing import PriceService
from tests.fakes import mock_response, routed_session


def _service(session):
    return PriceService(CoinbaseClient(api_key="key", api_secret="secret", session=session), max_workers=4)


@pytest.mark.parametrize("symbol", ["USD", "USDC", "USDT", "DAI", "BUSD"])
def test_fixed_value_assets_skip_the_network(symbol):
    session = Mock()

    quotes = _service(session).fetch_prices([symbol])

    assert quotes[symbol].price == Decimal("1.0")
    assert quotes[symbol].change_24h == 0
    assert session.request.call_count == 0


def test_spot_price_overrides_exchange_rate():
    session = routed_session({
        "/exchange-rates?currency=ETH": mock_response({"data": {"rates": {"USD": "2990"}}}),
        "/prices/ETH-USD/spot": mock_response({"data": {"amount": "3000"}}),
    })

    quotes = _service(session).fetch_prices(["ETH"])

    assert quotes["ETH"].price == Decimal("3000")
    assert quotes["ETH"].change_24h == 0


def test_exchange_rate_kept_when_spot_fails():
    session = routed_session({
        "/exchange-rates?currency=SOL": mock_response({"data": {"rates": {"USD": "150.25"}}}),
        "/prices/SOL-USD/spot": requests.exceptions.ConnectionError("spot down"),
    })

    quotes = _service(session).fetch_prices(["SOL"])

    assert quotes["SOL"].price == Decimal("150.25")


def test_exchange_rate_kept_when_spot_has_no_amount():
    session = routed_session({
        "/exchange-rates?currency=SOL": mock_response({"data": {"rates": {"USD": "150"}}}),
        "/prices/SOL-USD/spot": mock_response({"errors": [{"id": "not_found"}]}, status_code=404),
    })

    assert _service(session).fetch_prices(["SOL"])["SOL"].price == Decimal("150")


def test_price_is_zero_when_nothing_is_available():
    session = routed_session({
        "/exchange-rates?currency=XYZ": mock_response({"errors": []}, status_code=400),
        "/prices/XYZ-USD/spot": mock_response({"errors": []}, status_code=404),
    })

    assert _service(session).fetch_prices(["XYZ"])["XYZ"].price == 0


def test_failed_symbol_degrades_without_affecting_others():
    session = routed_session({
        "/exchange-rates?currency=BAD": requests.exceptions.ConnectionError("boom"),
        "/exchange-rates?currency=ETH": mock_response({"data": {"rates": {"USD": "3000"}}}),
        "/prices/ETH-USD/spot": mock_response({"data": {"amount": "3000"}}),
    })

    quotes = _service(session).fetch_prices(["BAD", "ETH", "USDC"])

    assert quotes["BAD"].price == 0
    assert quotes["BAD"].change_24h == 0
    assert quotes["ETH"].price == Decimal("3000")
    assert quotes["USDC"].price == Decimal("1.0")


def test_non_json_exchange_rate_degrades_to_zero():
    session = routed_session({
        "/exchange-rates?currency=ETH": mock_response(ValueError("not json"), text="<html>"),
    })

    quotes = _service(session).fetch_prices(["ETH"])

    assert quotes["ETH"].price == 0
    # the spot call is skipped once the exchange-rate call has failed
    assert session.request.call_count == 1


def test_duplicate_symbols_are_harmless():
    session = routed_session({
        "/exchange-rates?currency=ETH": mock_response({"data": {"rates": {"USD": "3000"}}}),
        "/prices/ETH-USD/spot": mock_response({"data": {}}),
    })

    quotes = _service(session).fetch_prices(["ETH", "ETH"])

    assert list(quotes) == ["ETH"]
    assert session.request.call_count == 4


def test_empty_symbol_list():
    assert _service(Mock()).fetch_prices([]) == {}
