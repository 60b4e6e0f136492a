"""Google Sheets v4 / Drive v3 REST client."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from croplog.config import Settings, get_settings
from croplog.schemas.sheets import SheetInfo, SpreadsheetFileMetadata, SpreadsheetInfo
from croplog.services.errors import SourceNotFoundError, UpstreamSheetsError

logger = structlog.get_logger("croplog.sheets")

DEFAULT_COLUMNS = "A:ZZ"
SPREADSHEET_MIME_QUERY = "mimeType='application/vnd.google-apps.spreadsheet'"
DRIVE_FILE_FIELDS = "files(id,name,modifiedTime,owners(displayName,emailAddress)),nextPageToken"


def build_range(sheet_name: str | None, cell_range: str | None = None) -> str:
	"""A1 range for the values API; tab names are always quoted."""
	columns = cell_range or DEFAULT_COLUMNS
	if not sheet_name:
		return columns
	escaped = sheet_name.replace("'", "''")
	return f"'{escaped}'!{columns}"


def field_range_key(sheet_name: str) -> str:
	"""Snapshot key for a field tab."""
	return f"{sheet_name}!{DEFAULT_COLUMNS}"


def _error_message(response: httpx.Response) -> str:
	try:
		payload = response.json()
	except ValueError:
		payload = {}
	error = payload.get("error") if isinstance(payload, dict) else None
	if isinstance(error, dict) and error.get("message"):
		return str(error["message"])
	return f"Google API error: {response.status_code}"


def _is_missing_tab(response: httpx.Response, message: str) -> bool:
	if response.status_code == 404:
		return True
	return response.status_code == 400 and "unable to parse range" in message.lower()


class GoogleSheetsClient:
	def __init__(
		self,
		access_token: str,
		settings: Settings | None = None,
		transport: httpx.AsyncBaseTransport | None = None,
	):
		self.access_token = access_token
		self.settings = settings or get_settings()
		self._transport = transport

	def _client(self) -> httpx.AsyncClient:
		return httpx.AsyncClient(
			timeout=self.settings.google_timeout_seconds,
			transport=self._transport,
			headers={
				"Authorization": f"Bearer {self.access_token}",
				"Content-Type": "application/json",
			},
		)

	async def _get_json(self, url: str, params: dict[str, str] | None = None) -> tuple[httpx.Response, Any]:
		try:
			async with self._client() as client:
				response = await client.get(url, params=params)
		except httpx.HTTPError as exc:
			raise UpstreamSheetsError(f"Google API request failed: {exc}") from exc

		if response.is_success:
			try:
				return response, response.json()
			except ValueError as exc:
				raise UpstreamSheetsError("Google API returned invalid JSON", response.status_code) from exc
		return response, None

	async def fetch_grid(
		self,
		spreadsheet_id: str,
		sheet_name: str | None,
		cell_range: str | None = None,
	) -> list[list[str]]:
		a1_range = build_range(sheet_name, cell_range)
		url = f"{self.settings.google_sheets_api_base}/{spreadsheet_id}/values/{quote(a1_range, safe='')}"
		response, payload = await self._get_json(url)
		if payload is None:
			message = _error_message(response)
			if sheet_name and _is_missing_tab(response, message):
				logger.info("sheet_tab_missing", spreadsheet_id=spreadsheet_id, sheet_name=sheet_name)
				raise SourceNotFoundError(spreadsheet_id, sheet_name)
			raise UpstreamSheetsError(message, response.status_code)

		values = payload.get("values") or []
		return [["" if cell is None else str(cell) for cell in row] for row in values]

	async def get_spreadsheet_metadata(self, spreadsheet_id: str) -> dict[str, Any]:
		url = f"{self.settings.google_sheets_api_base}/{spreadsheet_id}"
		response, payload = await self._get_json(url, params={"fields": "properties,sheets.properties"})
		if payload is None:
			raise UpstreamSheetsError(_error_message(response), response.status_code)
		return payload

	async def get_spreadsheet_title(self, spreadsheet_id: str) -> str:
		metadata = await self.get_spreadsheet_metadata(spreadsheet_id)
		return str((metadata.get("properties") or {}).get("title") or "Untitled")

	async def list_sheets(self, spreadsheet_id: str) -> list[SheetInfo]:
		metadata = await self.get_spreadsheet_metadata(spreadsheet_id)
		return self.sheets_from_metadata(metadata)

	@staticmethod
	def sheets_from_metadata(metadata: dict[str, Any]) -> list[SheetInfo]:
		sheets: list[SheetInfo] = []
		for sheet in metadata.get("sheets") or []:
			props = sheet.get("properties") or {}
			sheets.append(
				SheetInfo(
					sheet_id=int(props.get("sheetId") or 0),
					title=str(props.get("title") or "Untitled"),
					index=int(props.get("index") or 0),
				)
			)
		return sheets

	async def list_spreadsheets(self) -> list[SpreadsheetInfo]:
		url = f"{self.settings.google_drive_api_base}/files"
		spreadsheets: list[SpreadsheetInfo] = []
		page_token: str | None = None

		while True:
			params = {
				"q": SPREADSHEET_MIME_QUERY,
				"fields": DRIVE_FILE_FIELDS,
				"orderBy": "modifiedTime desc",
				"pageSize": "100",
			}
			if page_token:
				params["pageToken"] = page_token
			response, payload = await self._get_json(url, params=params)
			if payload is None:
				raise UpstreamSheetsError(_error_message(response), response.status_code)

			for item in payload.get("files") or []:
				if not item.get("id") or not item.get("name"):
					continue
				owner = (item.get("owners") or [{}])[0]
				spreadsheets.append(
					SpreadsheetInfo(
						id=item["id"],
						name=item["name"],
						modified_time=item.get("modifiedTime") or "",
						owner_name=owner.get("displayName") or "Unknown",
						owner_email=owner.get("emailAddress") or "",
					)
				)

			page_token = payload.get("nextPageToken")
			if not page_token:
				break

		return spreadsheets

	async def get_file_metadata(self, spreadsheet_id: str) -> SpreadsheetFileMetadata:
		url = f"{self.settings.google_drive_api_base}/files/{spreadsheet_id}"
		response, payload = await self._get_json(url, params={"fields": "modifiedTime,name"})
		if payload is None:
			raise UpstreamSheetsError(_error_message(response), response.status_code)
		return SpreadsheetFileMetadata(modified_time=payload.get("modifiedTime"), name=payload.get("name"))
