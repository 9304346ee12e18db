import httpx
import requests
from typing import Any, Dict, List, Optional
from notion_client import Client
from notion_client.errors import HTTPResponseError, RequestTimeoutError
from portfolio_sync.config.logging import logger
from portfolio_sync.core.exceptions import ExternalAPIError, InvalidResponseError

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"


def _error_details(e: HTTPResponseError):
    status = getattr(e, "status", None)
    body = getattr(e, "body", None) or str(e)
    return status, body


def _build_pages_client(token: str, timeout: Optional[float]) -> Client:
    """建立 notion_client；未設定逾時時關閉其預設的 60 秒逾時"""
    options: Dict[str, Any] = {"auth": token, "notion_version": NOTION_VERSION}
    if timeout is not None:
        options["timeout_ms"] = int(timeout * 1000)
    client = Client(**options)
    if timeout is None:
        client.client.timeout = httpx.Timeout(None)
    return client


class NotionClient:
    """
    Notion API 封裝客戶端。
    查詢資料庫走直接的 HTTP 請求 (可處理分頁並取得原始錯誤內容)，
    建立與更新頁面則透過 notion_client。
    """

    def __init__(
        self,
        token: str,
        database_id: str,
        session: Optional[requests.Session] = None,
        client: Optional[Client] = None,
        timeout: Optional[float] = None,
    ):
        self.token = token
        self.database_id = database_id
        self.session = session or requests.Session()
        self.client = client or _build_pages_client(token, timeout)
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Notion-Version": NOTION_VERSION,
        }

    def _query_database(self, **kwargs) -> Dict[str, Any]:
        url = f"{NOTION_API_URL}/databases/{self.database_id}/query"
        try:
            response = self.session.request(
                "POST", url, headers=self._headers(), json=kwargs, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Notion Connection Error: {e}")
            raise ExternalAPIError(f"Failed to connect to Notion: {e}", service="notion")

        if not response.ok:
            raise ExternalAPIError(
                f"Notion API Error: {response.status_code} - {response.text}",
                service="notion",
                status=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError:
            raise InvalidResponseError("Invalid response from Notion API")

    def query_all_pages(self) -> List[Dict[str, Any]]:
        """
        查詢資料庫中的所有頁面 (空 filter)，自動處理分頁。
        """
        all_results: List[Dict[str, Any]] = []
        start_cursor = None

        while True:
            params: Dict[str, Any] = {}
            if start_cursor:
                params["start_cursor"] = start_cursor
            response = self._query_database(**params)

            all_results.extend(response.get("results", []))
            start_cursor = response.get("next_cursor")
            if not response.get("has_more") or not start_cursor:
                break

        logger.debug(f"Retrieved {len(all_results)} pages from Notion database {self.database_id}")
        return all_results

    def create_page(self, asset: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """在資料庫下新增一列"""
        try:
            return self.client.pages.create(
                parent={"database_id": self.database_id},
                properties=properties,
            )
        except HTTPResponseError as e:
            status, body = _error_details(e)
            raise ExternalAPIError(
                f"Failed to create {asset}: {status} - {body}",
                service="notion",
                status=status,
                body=body,
            )
        except (httpx.HTTPError, RequestTimeoutError) as e:
            logger.error(f"Notion Connection Error: {e}")
            raise ExternalAPIError(f"Failed to create {asset}: {e}", service="notion")

    def update_page(self, asset: str, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """就地更新既有的一列 (PATCH)"""
        try:
            return self.client.pages.update(page_id=page_id, properties=properties)
        except HTTPResponseError as e:
            status, body = _error_details(e)
            raise ExternalAPIError(
                f"Failed to update {asset}: {status} - {body}",
                service="notion",
                status=status,
                body=body,
            )
        except (httpx.HTTPError, RequestTimeoutError) as e:
            logger.error(f"Notion Connection Error: {e}")
            raise ExternalAPIError(f"Failed to update {asset}: {e}", service="notion")
