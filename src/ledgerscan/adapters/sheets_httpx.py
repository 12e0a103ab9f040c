from __future__ import annotations
import asyncio, httpx
from typing import Any, Sequence
from urllib.parse import quote

from google.auth.transport.requests import Request
from google.oauth2 import service_account

from ..errors import UploadError
from ..ports.sheets import Cell, SheetsClient

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"


class GoogleSheetsClient(SheetsClient):
    """
    Sheets v4 `values.update` over httpx; the bearer token comes from
    google-auth credentials and is refreshed when expired.
    """
    def __init__(self, credentials: Any, timeout_s: int = 30,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.credentials = credentials
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(timeout_s), transport=transport)

    @classmethod
    def from_service_account_file(cls, path: str, **kwargs: Any) -> "GoogleSheetsClient":
        try:
            creds = service_account.Credentials.from_service_account_file(path, scopes=SHEETS_SCOPES)
        except (OSError, ValueError) as e:
            raise UploadError(f"cannot load service account credentials from {path}: {e}") from e
        return cls(creds, **kwargs)

    async def aclose(self) -> None:
        await self.client.aclose()

    def _bearer(self) -> str:
        if not self.credentials.valid:
            self.credentials.refresh(Request())
        return self.credentials.token

    async def update_values(
        self,
        spreadsheet_id: str,
        range_a1: str,
        rows: Sequence[Sequence[Cell]],
    ) -> int:
        try:
            token = await asyncio.to_thread(self._bearer)
        except Exception as e:
            raise UploadError(f"credential refresh failed: {type(e).__name__}: {e}") from e
        url = f"{SHEETS_API}/{spreadsheet_id}/values/{quote(range_a1, safe='')}"
        body = {"majorDimension": "ROWS", "values": [list(r) for r in rows]}
        try:
            r = await self.client.put(
                url,
                params={"valueInputOption": "USER_ENTERED"},
                json=body,
                headers={"Authorization": f"Bearer {token}"},
            )
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPStatusError as e:
            raise UploadError(f"values.update failed with HTTP {e.response.status_code}: {e.response.text}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise UploadError(f"values.update failed: {type(e).__name__}: {e}") from e
        return int(data.get("updatedCells", 0))
