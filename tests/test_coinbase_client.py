import hashlib
import hmac
from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from portfolio_sync.core.exceptions import ExternalAPIError, InvalidResponseError
from portfolio_sync.infrastructure.coinbase.client import CoinbaseClient
from portfolio_sync.infrastructure.coinbase.mapper import CoinbaseMapper
from tests.fakes import account, mock_response


def _client(session):
    return CoinbaseClient(api_key="key", api_secret="secret", session=session)


def test_signature_is_hex_hmac_over_timestamp_method_path_body():
    client = _client(Mock())
    expected = hmac.new(b"secret", b"1700000000GET/accounts", hashlib.sha256).hexdigest()
    assert client._generate_signature("1700000000", "GET", "/accounts") == expected


def test_accounts_request_is_signed(monkeypatch):
    monkeypatch.setattr("portfolio_sync.infrastructure.coinbase.client.time.time", lambda: 1700000000.9)
    session = Mock()
    session.request.return_value = mock_response({"data": []})

    _client(session).get_balances()

    session.request.assert_called_once()
    args, kwargs = session.request.call_args
    assert args == ("GET", "https://api.coinbase.com/v2/accounts")
    headers = kwargs["headers"]
    assert headers["CB-ACCESS-KEY"] == "key"
    assert headers["CB-ACCESS-TIMESTAMP"] == "1700000000"
    assert headers["CB-VERSION"] == "2025-01-01"
    assert headers["User-Agent"] == "Notion-Portfolio-Sync/1.0"
    expected = hmac.new(b"secret", b"1700000000GET/accounts", hashlib.sha256).hexdigest()
    assert headers["CB-ACCESS-SIGN"] == expected


@pytest.mark.parametrize(
    "code, amount, kept",
    [
        ("ETH", "0", False),
        ("ETH", "-0.5", False),
        ("ETH", "0.0001", True),
        ("USD", "0", False),
        ("USD", "1", False),
        ("USD", "1.000001", True),
        ("USDC", "1", True),
        ("BTC", "not-a-number", False),
    ],
)
def test_balance_filter_boundaries(code, amount, kept):
    session = Mock()
    session.request.return_value = mock_response({"data": [account(code, amount)]})

    balances = _client(session).get_balances()

    assert (len(balances) == 1) is kept


def test_balances_are_mapped():
    session = Mock()
    session.request.return_value = mock_response({"data": [account("ETH", "2.5", "abc-123")]})

    [balance] = _client(session).get_balances()

    assert balance.asset == "ETH"
    assert balance.currency == "ETH"
    assert balance.balance == Decimal("2.5")
    assert balance.account_id == "abc-123"


def test_non_success_status_raises_external_api_error():
    session = Mock()
    session.request.return_value = mock_response({"errors": []}, status_code=401, text="invalid signature")

    with pytest.raises(ExternalAPIError) as exc_info:
        _client(session).get_balances()

    assert exc_info.value.status == 401
    assert exc_info.value.body == "invalid signature"
    assert "401" in str(exc_info.value)


def test_missing_data_array_raises_invalid_response():
    session = Mock()
    session.request.return_value = mock_response({"pagination": {}})

    with pytest.raises(InvalidResponseError):
        _client(session).get_balances()


def test_connection_error_is_wrapped():
    session = Mock()
    session.request.side_effect = requests.exceptions.ConnectionError("boom")

    with pytest.raises(ExternalAPIError) as exc_info:
        _client(session).get_accounts()

    assert exc_info.value.status is None


def test_public_endpoints_use_expected_paths():
    session = Mock()
    session.request.return_value = mock_response({"data": {}})
    client = _client(session)

    client.get_exchange_rates("ETH")
    client.get_spot_price("ETH")

    urls = [call.args[1] for call in session.request.call_args_list]
    assert urls == [
        "https://api.coinbase.com/v2/exchange-rates?currency=ETH",
        "https://api.coinbase.com/v2/prices/ETH-USD/spot",
    ]
    for call in session.request.call_args_list:
        assert "CB-ACCESS-SIGN" not in call.kwargs["headers"]


def test_mapper_reads_rates_and_spot():
    assert CoinbaseMapper.usd_rate({"data": {"rates": {"USD": "3000.5"}}}) == Decimal("3000.5")
    assert CoinbaseMapper.usd_rate({"data": {}}) is None
    assert CoinbaseMapper.spot_amount({"data": {"amount": "3010"}}) == Decimal("3010")
    assert CoinbaseMapper.spot_amount({"errors": [{"id": "not_found"}]}) is None
