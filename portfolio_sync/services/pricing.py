from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Dict, Iterable
from portfolio_sync.config.logging import logger
from portfolio_sync.core.exceptions import PriceLookupError
from portfolio_sync.core.models import PriceQuote
from portfolio_sync.infrastructure.coinbase.client import CoinbaseClient
from portfolio_sync.infrastructure.coinbase.mapper import CoinbaseMapper, HOME_FIAT

# 美元與穩定幣固定為 1 美元，不查價
FIXED_VALUE_ASSETS = frozenset({HOME_FIAT, "USDC", "USDT", "DAI", "BUSD"})

ZERO = Decimal("0")


class PriceService:
    """
    查詢各幣種的美元報價。
    每個幣種獨立並行查詢；單一幣種失敗只會讓該幣種報價為 0，不會中斷整體流程。
    """

    def __init__(self, coinbase: CoinbaseClient, max_workers: int = 8):
        self.coinbase = coinbase
        self.max_workers = max_workers

    def _lookup(self, symbol: str) -> PriceQuote:
        try:
            rates = self.coinbase.get_exchange_rates(symbol)
            price = CoinbaseMapper.usd_rate(rates)
        except Exception as e:
            raise PriceLookupError(f"Exchange rate lookup failed for {symbol}: {e}") from e

        # 24h 漲跌目前沒有可靠來源，固定為 0
        change_24h = ZERO

        try:
            spot = CoinbaseMapper.spot_amount(self.coinbase.get_spot_price(symbol))
            if spot is not None:
                price = spot
        except Exception as e:
            logger.info(f"Could not fetch detailed price for {symbol}: {e}")

        return PriceQuote(symbol=symbol, price=price if price is not None else ZERO, change_24h=change_24h)

    def get_quote(self, symbol: str) -> PriceQuote:
        """取得單一幣種報價，永不拋出例外"""
        if symbol in FIXED_VALUE_ASSETS:
            return PriceQuote(symbol=symbol, price=Decimal("1.0"), change_24h=ZERO)

        try:
            return self._lookup(symbol)
        except PriceLookupError as e:
            logger.warning(f"Error fetching price for {symbol}: {e}")
            return PriceQuote(symbol=symbol, price=ZERO, change_24h=ZERO)

    def fetch_prices(self, symbols: Iterable[str]) -> Dict[str, PriceQuote]:
        """
        並行查詢所有幣種，等待全部完成後回傳 {symbol: PriceQuote}。
        重複的幣種會重複查詢，結果以最後一筆為準。
        """
        symbols = list(symbols)
        if not symbols:
            return {}

        workers = max(1, min(self.max_workers, len(symbols)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            quotes = list(executor.map(self.get_quote, symbols))

        return {quote.symbol: quote for quote in quotes}
