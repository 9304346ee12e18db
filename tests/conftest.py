import pytest

from portfolio_sync.config.settings import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        NOTION_API_KEY="secret_notion",
        NOTION_DATABASE_ID="db-1",
        COINBASE_API_KEY="cb-key",
        COINBASE_API_SECRET="cb-secret",
        MAX_WORKERS=4,
    )
