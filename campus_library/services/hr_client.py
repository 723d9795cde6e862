import logging
from typing import Any, Dict, List, Optional
import httpx
from campus_library.config import settings

logger = logging.getLogger(__name__)

HrRecord = Dict[str, Dict[str, Any]]


class HrSourceError(Exception):
    """The HR record source could not be reached or answered with an error."""


def get_value(record: HrRecord, *field_codes: str) -> Optional[str]:
    """First non-empty value among the given field codes of an HR record."""
    for code in field_codes:
        value = (record.get(code) or {}).get("value")
        if value:
            return str(value).strip()
    return None


class HrClient:
    """Reads student records from the university HR system's REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        app_id: Optional[str] = None,
        page_size: Optional[int] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url or settings.hr_api_base_url
        self.api_token = api_token or settings.hr_api_token
        self.app_id = app_id or settings.hr_app_id
        self.page_size = page_size or settings.hr_page_size
        self.transport = transport
        if not (self.base_url and self.api_token and self.app_id):
            raise HrSourceError("HR source is not configured: set HR_API_BASE_URL, HR_API_TOKEN and HR_APP_ID.")

    def fetch_all_records(self) -> List[HrRecord]:
        """Page through every record with limit/offset queries."""
        records: List[HrRecord] = []
        offset = 0
        headers = {"X-Cybozu-API-Token": self.api_token, "Accept": "application/json"}
        try:
            with httpx.Client(base_url=self.base_url, headers=headers, timeout=30, transport=self.transport) as client:
                while True:
                    response = client.get(
                        "/k/v1/records.json",
                        params={"app": self.app_id, "query": f"limit {self.page_size} offset {offset}"},
                    )
                    response.raise_for_status()
                    page = response.json().get("records", [])
                    records.extend(page)
                    if len(page) < self.page_size:
                        break
                    offset += self.page_size
        except httpx.HTTPError as e:
            raise HrSourceError(f"Fetching HR records failed: {e}") from e

        logger.info(f"Fetched {len(records)} records from the HR source")
        return records
