from pydantic_settings import BaseSettings
from typing import List, Optional

from portfolio_sync.core.exceptions import ConfigurationError

DEFAULT_NOTION_DATABASE_ID = "1fbf49fa-9eb9-816d-a3f2-cd2f893a541d"


class Settings(BaseSettings):
    """
    應用程式全域設定。
    自動從環境變數 (.env) 讀取並驗證型別。
    憑證欄位皆為選填，缺少時不在 import 階段報錯，
    而是在同步開始前由 require_credentials() 檢查。
    """
    # Notion 設定
    NOTION_API_KEY: Optional[str] = None
    NOTION_DATABASE_ID: str = DEFAULT_NOTION_DATABASE_ID

    # Coinbase 設定
    COINBASE_API_KEY: Optional[str] = None
    COINBASE_API_SECRET: Optional[str] = None

    # 網路行為
    HTTP_TIMEOUT_SECONDS: Optional[float] = None  # 預設不設逾時，交給託管平台
    MAX_WORKERS: int = 8

    # Discord 設定 (Optional)
    DISCORD_WEBHOOK_URL: Optional[str] = None

    # 應用程式行為
    LOG_LEVEL: str = "INFO"
    SYNC_INTERVAL_SECONDS: int = 3600

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    def missing_credentials(self) -> List[str]:
        required = {
            "NOTION_API_KEY": self.NOTION_API_KEY,
            "COINBASE_API_KEY": self.COINBASE_API_KEY,
            "COINBASE_API_SECRET": self.COINBASE_API_SECRET,
        }
        return [name for name, value in required.items() if not value]

    def require_credentials(self) -> None:
        """缺少任何一項憑證即拋出 ConfigurationError (不會發出任何網路請求)"""
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


def load_settings() -> Settings:
    return Settings()

