from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Balance:
    """
    核心持倉模型 (Domain Model)。
    代表交易所帳戶中某一幣種的可用餘額。
    每次同步都從交易所重新取得，不在本地保存。
    """
    asset: str             # 幣種代號 (e.g., "ETH")
    balance: Decimal       # 數量
    currency: str          # 與 asset 相同
    account_id: str        # 交易所端的帳戶 ID


@dataclass(frozen=True)
class PriceQuote:
    """
    報價模型。
    price 以美元計價；change_24h 為百分比 (e.g., 5 代表 5%)。
    """
    symbol: str
    price: Decimal
    change_24h: Decimal = Decimal("0")


@dataclass(frozen=True)
class SyncResult:
    """
    單次同步的結果。
    只回傳給呼叫端，不會保存。
    """
    success: bool
    duration_ms: int
    message: Optional[str] = None
    error: Optional[str] = None
    assets: Optional[int] = None
    total_value: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        """轉為 HTTP 回應使用的 JSON 結構 (camelCase，未設定的欄位省略)"""
        data: Dict[str, Any] = {"success": self.success}
        if self.message is not None:
            data["message"] = self.message
        if self.error is not None:
            data["error"] = self.error
        if self.assets is not None:
            data["assets"] = self.assets
        if self.total_value is not None:
            data["totalValue"] = float(self.total_value)
        data["duration"] = self.duration_ms
        return data
