import time
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Dict, List, Optional
from portfolio_sync.config.logging import logger
from portfolio_sync.config.settings import Settings
from portfolio_sync.core.models import Balance, PriceQuote, SyncResult
from portfolio_sync.infrastructure.coinbase.client import CoinbaseClient
from portfolio_sync.infrastructure.notion.client import NotionClient
from portfolio_sync.services.pricing import PriceService
from portfolio_sync.services.reconciler import PortfolioReconciler, RowIndex

ZERO = Decimal("0")


def portfolio_value(balances: List[Balance], prices: Dict[str, PriceQuote]) -> Decimal:
    """Σ 餘額 × 報價；沒有報價的幣種以 0 計"""
    total = ZERO
    for balance in balances:
        quote = prices.get(balance.asset)
        total += balance.balance * (quote.price if quote else ZERO)
    return total


class SyncService:
    """
    負責協調 Coinbase 與 Notion 之間的持倉同步流程。
    Client 可由外部注入 (測試用)；未注入時在驗證設定之後才建立。
    """

    def __init__(
        self,
        settings: Settings,
        coinbase: Optional[CoinbaseClient] = None,
        notion: Optional[NotionClient] = None,
    ):
        self.settings = settings
        self._coinbase = coinbase
        self._notion = notion

    def _build_clients(self):
        timeout = self.settings.HTTP_TIMEOUT_SECONDS
        if self._coinbase is None:
            self._coinbase = CoinbaseClient(
                api_key=self.settings.COINBASE_API_KEY,
                api_secret=self.settings.COINBASE_API_SECRET,
                timeout=timeout,
            )
        if self._notion is None:
            self._notion = NotionClient(
                token=self.settings.NOTION_API_KEY,
                database_id=self.settings.NOTION_DATABASE_ID,
                timeout=timeout,
            )
        return self._coinbase, self._notion

    def _write_all(self, reconciler: PortfolioReconciler, index: RowIndex,
                   balances: List[Balance], prices: Dict[str, PriceQuote]) -> None:
        def write(balance: Balance) -> None:
            quote = prices.get(balance.asset) or PriceQuote(symbol=balance.asset, price=ZERO)
            reconciler.reconcile(balance.asset, balance.balance, quote.price, quote.change_24h, index=index)
            value = balance.balance * quote.price
            logger.info(f"Updated {balance.asset}: {balance.balance} @ ${quote.price} = ${value:.2f}")

        workers = max(1, min(self.settings.MAX_WORKERS, len(balances)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(write, balance) for balance in balances]
        # 全部完成後才檢查結果，第一個錯誤往上拋
        for future in futures:
            future.result()

    def _sync(self, started: float) -> SyncResult:
        # 1. 驗證設定 (在任何網路請求之前)
        self.settings.require_credentials()
        coinbase, notion = self._build_clients()

        # 2. 從 Coinbase 取得餘額
        logger.info("Fetching portfolio balances...")
        balances = coinbase.get_balances()
        logger.info(f"Found {len(balances)} assets with balances")

        if not balances:
            logger.warning("No balances found - check API permissions")
            return SyncResult(
                success=True,
                message="No balances to sync",
                assets=0,
                duration_ms=_elapsed_ms(started),
            )

        # 3. 查詢報價 (不重複的幣種)
        logger.info("Fetching current prices...")
        symbols = list(dict.fromkeys(b.asset for b in balances))
        prices = PriceService(coinbase, max_workers=self.settings.MAX_WORKERS).fetch_prices(symbols)

        # 4. 寫入 Notion
        logger.info("Updating Notion database...")
        reconciler = PortfolioReconciler(notion)
        index = reconciler.load_index()
        logger.info(f"Notion database has {len(index)} existing assets")
        self._write_all(reconciler, index, balances, prices)

        total_value = portfolio_value(balances, prices)
        duration = _elapsed_ms(started)
        logger.info(f"Portfolio sync completed in {duration}ms")
        logger.info(f"Total Portfolio Value: ${total_value:,.2f}")

        return SyncResult(
            success=True,
            message="Sync completed successfully",
            assets=len(balances),
            total_value=total_value,
            duration_ms=duration,
        )

    def run(self) -> SyncResult:
        """執行一次完整的同步；任何錯誤都轉為 success=False 的結果，不會拋出"""
        started = time.monotonic()
        logger.info("Starting Coinbase to Notion sync...")
        try:
            return self._sync(started)
        except Exception as e:
            logger.error(f"Sync failed: {e}", exc_info=True)
            return SyncResult(success=False, error=str(e), duration_ms=_elapsed_ms(started))


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
