from typing import Optional


class AppError(Exception):
    """所有應用程式自定義錯誤的基類"""
    pass


class ConfigurationError(AppError):
    """設定錯誤 (如缺少環境變數)"""
    pass


class ExternalAPIError(AppError):
    """
    外部服務錯誤 (Coinbase 或 Notion 回傳非 2xx，或連線失敗)。
    連線失敗時 status 為 None。
    """

    def __init__(self, message: str, service: str = "", status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.service = service
        self.status = status
        self.body = body


class InvalidResponseError(AppError):
    """外部服務回傳成功，但內容格式不符預期"""
    pass


class PriceLookupError(AppError):
    """單一幣種報價失敗；只在 PriceService 內部使用，會被降級為零報價"""
    pass
