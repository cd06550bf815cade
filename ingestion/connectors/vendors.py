"""
Per-vendor HTTP connectors.

Each class only knows its endpoint shape, auth header and envelope.
Offset-based APIs receive the cursor offset directly; page-number APIs
derive the page from ``offset // limit``.
"""

from typing import Any, Dict, Optional, Tuple

import httpx

from ingestion.connectors.base import HTTPConnector, records_from
from models.base import SourceSystem
from schemas.pipeline import Page


class GaroonConnector(HTTPConnector):
    """Cybozu Garoon workflow API (offset/limit, ``hasNext`` flag)"""

    source = SourceSystem.GAROON

    def __init__(self, endpoint: str, auth_token: str, **kwargs):
        super().__init__(endpoint, **kwargs)
        self.auth_token = auth_token

    def build_request(self, offset: int, limit: int) -> Tuple[str, Dict[str, Any]]:
        return self.base_url, {"offset": offset, "limit": limit}

    def build_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Cybozu-Authorization": self.auth_token,
        }

    def parse_page(self, data: Any, offset: int, limit: int) -> Page:
        records = records_from(data, "requests", "employees")
        has_next = bool(data.get("hasNext", False)) if isinstance(data, dict) else False
        return Page(records=records, has_next=has_next)


class PagedBearerConnector(HTTPConnector):
    """
    Bearer-token API paged by page number.

    These APIs return a bare list and signal continuation only by
    returning a full page.
    """

    path: str = ""
    page_param: str = "page"
    size_param: str = "limit"

    def __init__(self, base_url: str, token: str, **kwargs):
        super().__init__(base_url, **kwargs)
        self.token = token

    def build_request(self, offset: int, limit: int) -> Tuple[str, Dict[str, Any]]:
        page = offset // limit + 1
        return f"{self.base_url}{self.path}", {self.page_param: page, self.size_param: limit}

    def build_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
        }

    def parse_page(self, data: Any, offset: int, limit: int) -> Page:
        records = records_from(data, "data", "results")
        return Page(records=records, has_next=len(records) == limit)


class SmartHRConnector(PagedBearerConnector):
    source = SourceSystem.SMARTHR
    path = "/v1/crews"
    size_param = "per_page"


class JobCanConnector(PagedBearerConnector):
    source = SourceSystem.JOBCAN
    path = "/employees"


class PCACloudConnector(PagedBearerConnector):
    source = SourceSystem.PCA
    path = "/employees"


class GoogleSheetsConnector(HTTPConnector):
    """
    Google Sheets values API.

    The whole range is returned on every call; the first row holds the
    headers and the cursor offset counts data rows.
    """

    source = SourceSystem.SHEETS_HR

    def __init__(
        self,
        api_base: str,
        spreadsheet_id: str,
        sheet_range: str,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs
    ):
        super().__init__(api_base, client=client, **kwargs)
        self.spreadsheet_id = spreadsheet_id
        self.sheet_range = sheet_range
        self.api_key = api_key

    def build_request(self, offset: int, limit: int) -> Tuple[str, Dict[str, Any]]:
        url = f"{self.base_url}/{self.spreadsheet_id}/values/{self.sheet_range}"
        return url, {"key": self.api_key}

    def build_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def parse_page(self, data: Any, offset: int, limit: int) -> Page:
        rows = data.get("values", []) if isinstance(data, dict) else []
        if not rows:
            return Page(records=[], has_next=False)

        headers = [str(h).strip().lower().replace(" ", "_") for h in rows[0]]
        body = rows[1:]
        window = body[offset:offset + limit]

        records = [
            {header: (row[i] if i < len(row) else None) for i, header in enumerate(headers)}
            for row in window
        ]
        return Page(records=records, has_next=offset + limit < len(body))
