import threading
from decimal import Decimal
from typing import Any, Dict, List, Optional
from portfolio_sync.config.logging import logger
from portfolio_sync.infrastructure.notion.client import NotionClient
from portfolio_sync.infrastructure.notion.mapper import NotionMapper


class RowIndex:
    """
    Asset 名稱到 Notion page ID 的對照表。
    每次同步只查詢一次資料庫，之後在記憶體中決定要建立或更新；
    同一幣種的寫入以鎖串行化，避免並行時重複建立。
    """

    def __init__(self, pages: List[Dict[str, Any]]):
        self._page_ids: Dict[str, str] = {}
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        for page in pages:
            asset = NotionMapper.page_asset(page)
            # 與線性掃描相同：重複的列以第一筆為準
            if asset is not None and asset not in self._page_ids:
                self._page_ids[asset] = page["id"]

    def __len__(self) -> int:
        return len(self._page_ids)

    def get(self, asset: str) -> Optional[str]:
        return self._page_ids.get(asset)

    def record(self, asset: str, page_id: str) -> None:
        self._page_ids[asset] = page_id

    def lock_for(self, asset: str) -> threading.Lock:
        with self._guard:
            if asset not in self._locks:
                self._locks[asset] = threading.Lock()
            return self._locks[asset]


class PortfolioReconciler:
    """
    將單一幣種的持倉寫入 Notion：找到同名列就更新，否則新增。
    """

    def __init__(self, notion: NotionClient):
        self.notion = notion

    def load_index(self) -> RowIndex:
        """查詢資料庫所有列並建立索引"""
        return RowIndex(self.notion.query_all_pages())

    def reconcile(
        self,
        asset: str,
        balance: Decimal,
        price: Decimal,
        change_24h: Decimal,
        index: Optional[RowIndex] = None,
    ) -> Dict[str, Any]:
        """
        Upsert 一列並回傳 Notion 的頁面資料。
        未提供 index 時會重新查詢整個資料庫。
        """
        if index is None:
            index = self.load_index()

        properties = NotionMapper.holding_to_props(asset, balance, price, change_24h)

        try:
            with index.lock_for(asset):
                page_id = index.get(asset)
                if page_id:
                    return self.notion.update_page(asset, page_id, properties)

                page = self.notion.create_page(asset, properties)
                index.record(asset, page["id"])
                return page
        except Exception as e:
            logger.error(f"Error upserting {asset} entry: {e}")
            raise
