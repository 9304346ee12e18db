import time
import hmac
import hashlib
import requests
from typing import Any, Dict, List, Optional
from portfolio_sync.config.logging import logger
from portfolio_sync.core.exceptions import ExternalAPIError, InvalidResponseError
from portfolio_sync.core.models import Balance
from .mapper import CoinbaseMapper, HOME_FIAT

COINBASE_BASE_URL = "https://api.coinbase.com/v2"
COINBASE_API_VERSION = "2025-01-01"
USER_AGENT = "Notion-Portfolio-Sync/1.0"


class CoinbaseClient:
    """
    Coinbase v2 API 客戶端。
    負責處理簽章與請求，並將資料交給 Mapper 轉換。
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = COINBASE_BASE_URL
        self.session = session or requests.Session()
        self.timeout = timeout

    def _generate_signature(self, timestamp: str, method: str, path: str, body: str = "") -> str:
        message = timestamp + method + path + body
        hash = hmac.new(
            bytes(self.api_secret, "utf-8"),
            message.encode("utf-8"),
            hashlib.sha256
        )
        return hash.hexdigest()

    def _auth_headers(self, method: str, path: str, body: str = "") -> Dict[str, str]:
        timestamp = str(int(time.time()))
        signature = self._generate_signature(timestamp, method, path, body)
        return {
            "CB-ACCESS-KEY": self.api_key,
            "CB-ACCESS-TIMESTAMP": timestamp,
            "CB-ACCESS-SIGN": signature,
            "CB-VERSION": COINBASE_API_VERSION,
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    def _request(self, method: str, path: str, signed: bool = False) -> requests.Response:
        headers = self._auth_headers(method, path) if signed else {"User-Agent": USER_AGENT}
        url = f"{self.base_url}{path}"
        try:
            return self.session.request(method, url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Coinbase Connection Error: {e}")
            raise ExternalAPIError(f"Failed to connect to Coinbase: {e}", service="coinbase")

    def _public_json(self, path: str) -> Dict[str, Any]:
        """公開端點：不檢查狀態碼，只要求回應是 JSON 物件"""
        response = self._request("GET", path)
        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Non-JSON response from Coinbase {path}: {e}")
        if not isinstance(data, dict):
            raise InvalidResponseError(f"Unexpected response shape from Coinbase {path}")
        return data

    def get_accounts(self) -> List[Dict[str, Any]]:
        """獲取所有帳戶的原始資料 (需簽章)"""
        path = "/accounts"
        response = self._request("GET", path, signed=True)

        if not response.ok:
            raise ExternalAPIError(
                f"Coinbase API Error: {response.status_code} - {response.text}",
                service="coinbase",
                status=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError:
            raise InvalidResponseError("Invalid response from Coinbase API")

        accounts = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(accounts, list):
            raise InvalidResponseError("Invalid response from Coinbase API")
        return accounts

    def get_balances(self) -> List[Balance]:
        """獲取帳戶餘額，過濾掉零餘額與小額美元後轉為 Balance 清單"""
        try:
            accounts = self.get_accounts()
        except Exception as e:
            logger.error(f"Error fetching Coinbase balances: {e}")
            raise

        balances = CoinbaseMapper.to_balances(accounts)
        logger.debug(f"Kept {len(balances)} of {len(accounts)} Coinbase accounts")
        return balances

    def get_exchange_rates(self, symbol: str) -> Dict[str, Any]:
        return self._public_json(f"/exchange-rates?currency={symbol}")

    def get_spot_price(self, symbol: str, fiat: str = HOME_FIAT) -> Dict[str, Any]:
        return self._public_json(f"/prices/{symbol}-{fiat}/spot")
