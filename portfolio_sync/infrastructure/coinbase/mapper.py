from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from portfolio_sync.core.models import Balance

HOME_FIAT = "USD"


def parse_decimal(value: Any) -> Optional[Decimal]:
    """解析 API 回傳的數字字串；無法解析時回傳 None"""
    if value is None:
        return None
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


class CoinbaseMapper:
    """
    負責將 Coinbase API 的原始 JSON 資料轉換為核心 Domain Models。
    """

    @staticmethod
    def is_significant(currency: str, amount: Decimal) -> bool:
        """
        餘額大於 0 才保留；美元現金另需大於 1 元。
        """
        return amount > 0 and (currency != HOME_FIAT or amount > 1)

    @staticmethod
    def to_balance(raw: Dict[str, Any]) -> Optional[Balance]:
        """
        將 /accounts 的單一帳戶紀錄轉為 Balance 物件。
        金額無法解析或不符門檻時回傳 None。
        """
        currency = (raw.get("currency") or {}).get("code", "")
        amount = parse_decimal((raw.get("balance") or {}).get("amount"))
        if amount is None or not CoinbaseMapper.is_significant(currency, amount):
            return None

        return Balance(
            asset=currency,
            balance=amount,
            currency=currency,
            account_id=str(raw.get("id", "")),
        )

    @staticmethod
    def to_balances(accounts: List[Dict[str, Any]]) -> List[Balance]:
        balances = []
        for account in accounts:
            balance = CoinbaseMapper.to_balance(account)
            if balance is not None:
                balances.append(balance)
        return balances

    @staticmethod
    def usd_rate(raw: Dict[str, Any]) -> Optional[Decimal]:
        """從 /exchange-rates 回應中取出 data.rates.USD"""
        data = raw.get("data") or {}
        rates = data.get("rates") or {}
        return parse_decimal(rates.get(HOME_FIAT))

    @staticmethod
    def spot_amount(raw: Dict[str, Any]) -> Optional[Decimal]:
        """從 /prices/{pair}/spot 回應中取出 data.amount"""
        data = raw.get("data") or {}
        return parse_decimal(data.get("amount"))
