from decimal import Decimal
from typing import Any, Dict, Optional

STATUS_ACTIVE = "Active"
STATUS_ZERO_BALANCE = "Zero Balance"


class NotionMapper:
    """
    負責將持倉資料轉換為 Notion API 所需的 JSON 格式 (Properties)，
    以及從 Notion 頁面中取回識別欄位。
    """

    @staticmethod
    def holding_to_props(asset: str, balance: Decimal, price: Decimal, change_24h: Decimal) -> Dict[str, Any]:
        """
        將單一幣種的持倉轉為 Notion Database Properties。
        注意：欄位名稱必須與 Notion Database 一致。
        24h Change 欄位是百分比格式，Notion 以小數儲存，因此除以 100。
        """
        return {
            "Asset": {"title": [{"text": {"content": asset}}]},
            "Balance": {"number": float(balance)},
            "Current Price": {"number": float(price)},
            "24h Change": {"number": float(Decimal(change_24h) / 100)},
            "Status": {"select": {"name": STATUS_ACTIVE if balance > 0 else STATUS_ZERO_BALANCE}},
        }

    @staticmethod
    def page_asset(page: Dict[str, Any]) -> Optional[str]:
        """取出頁面 Asset 標題的第一段文字"""
        title = page.get("properties", {}).get("Asset", {}).get("title", [])
        if not title:
            return None
        first = title[0]
        if "plain_text" in first:
            return first["plain_text"]
        return first.get("text", {}).get("content")
