"""Google Sheets client for the ticket counter cell and the audit log."""

import asyncio
import json
from typing import Any, Optional
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from src.utils.errors import ConfigurationError, SheetsError

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class SheetsClient:
    """Reads and writes value ranges of one spreadsheet.

    The Google client is synchronous; calls run in a worker thread so the
    handler's event loop is not blocked.
    """

    def __init__(self, spreadsheet_id: str, credentials_json: str, service: Optional[Any] = None):
        self.spreadsheet_id = spreadsheet_id
        self._credentials_json = credentials_json
        self._service = service

    def _get_service(self):
        if self._service is None:
            try:
                info = json.loads(self._credentials_json)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"GOOGLE_SHEETS_CREDENTIALS is not valid JSON: {e}")
            credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service

    def _execute(self, request, range_name: str) -> dict:
        try:
            return request.execute()
        except HttpError as e:
            raise SheetsError(
                f"Sheets API error on {range_name}: {e.resp.status}",
                status_code=e.resp.status,
                url=getattr(e, "uri", None),
                body=e.content.decode("utf-8", errors="replace") if isinstance(e.content, bytes) else str(e.content),
            ) from e

    def _get_values_sync(self, range_name: str) -> list[list[Any]]:
        request = self._get_service().spreadsheets().values().get(
            spreadsheetId=self.spreadsheet_id,
            range=range_name,
        )
        return self._execute(request, range_name).get("values", [])

    def _update_values_sync(self, range_name: str, values: list[list[Any]], input_option: str) -> dict:
        request = self._get_service().spreadsheets().values().update(
            spreadsheetId=self.spreadsheet_id,
            range=range_name,
            valueInputOption=input_option,
            body={"values": values},
        )
        return self._execute(request, range_name)

    def _append_values_sync(self, range_name: str, values: list[list[Any]], input_option: str) -> dict:
        request = self._get_service().spreadsheets().values().append(
            spreadsheetId=self.spreadsheet_id,
            range=range_name,
            valueInputOption=input_option,
            insertDataOption="INSERT_ROWS",
            body={"values": values},
        )
        return self._execute(request, range_name)

    async def get_values(self, range_name: str) -> list[list[Any]]:
        """Cell values of a range; [] for an empty range."""
        return await asyncio.to_thread(self._get_values_sync, range_name)

    async def update_values(self, range_name: str, values: list[list[Any]], input_option: str = "RAW") -> dict:
        return await asyncio.to_thread(self._update_values_sync, range_name, values, input_option)

    async def append_row(self, range_name: str, row: list[Any], input_option: str = "RAW") -> dict:
        return await asyncio.to_thread(self._append_values_sync, range_name, [row], input_option)
