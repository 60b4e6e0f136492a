"""Spreadsheet browsing and sync routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.auth.dependencies import get_google_access_token, require_admin, require_approved
from croplog.database import get_db
from croplog.schemas.sheets import (
	FieldPurgeResult,
	SheetGridRead,
	SheetSyncReceipt,
	SheetSyncRequest,
	SheetTabsRead,
	SpreadsheetFileMetadata,
	SpreadsheetListRead,
	WorkspaceSyncReceipt,
)
from croplog.services.errors import SourceNotFoundError, UpstreamSheetsError
from croplog.services.sheets_client import GoogleSheetsClient, build_range
from croplog.services.sync_service import SyncService

router = APIRouter(prefix="/sheets", tags=["sheets"])


def get_sheets_client(access_token: str = Depends(get_google_access_token)) -> GoogleSheetsClient:
	return GoogleSheetsClient(access_token)


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, SourceNotFoundError):
		return HTTPException(
			status_code=status.HTTP_404_NOT_FOUND,
			detail={"code": exc.code, "error": "Sheet not found", "message": str(exc)},
		)
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, UpstreamSheetsError):
		return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="sheet sync failure")


@router.get("/spreadsheets", response_model=SpreadsheetListRead)
async def list_spreadsheets(
	_user: object = Depends(require_approved),
	client: GoogleSheetsClient = Depends(get_sheets_client),
) -> SpreadsheetListRead:
	try:
		return SpreadsheetListRead(spreadsheets=await client.list_spreadsheets())
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{spreadsheet_id}/tabs", response_model=SheetTabsRead)
async def list_tabs(
	spreadsheet_id: str,
	_user: object = Depends(require_approved),
	client: GoogleSheetsClient = Depends(get_sheets_client),
) -> SheetTabsRead:
	try:
		metadata = await client.get_spreadsheet_metadata(spreadsheet_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SheetTabsRead(
		spreadsheet_id=spreadsheet_id,
		spreadsheet_name=str((metadata.get("properties") or {}).get("title") or "Untitled"),
		sheets=client.sheets_from_metadata(metadata),
	)


@router.get("/{spreadsheet_id}/metadata", response_model=SpreadsheetFileMetadata)
async def get_metadata(
	spreadsheet_id: str,
	_user: object = Depends(require_approved),
	client: GoogleSheetsClient = Depends(get_sheets_client),
) -> SpreadsheetFileMetadata:
	try:
		return await client.get_file_metadata(spreadsheet_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{spreadsheet_id}/grid", response_model=SheetGridRead)
async def get_grid(
	spreadsheet_id: str,
	sheet: str | None = Query(default=None),
	cell_range: str | None = Query(default=None, alias="range"),
	_user: object = Depends(require_approved),
	client: GoogleSheetsClient = Depends(get_sheets_client),
) -> SheetGridRead:
	try:
		values = await client.fetch_grid(spreadsheet_id, sheet, cell_range)
		title = await client.get_spreadsheet_title(spreadsheet_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SheetGridRead(
		spreadsheet_id=spreadsheet_id,
		spreadsheet_name=title,
		sheet_name=sheet or "",
		range=build_range(sheet, cell_range),
		values=values,
	)


@router.post("/sync", response_model=WorkspaceSyncReceipt)
async def sync_workspace(
	db: AsyncSession = Depends(get_db),
	_admin: object = Depends(require_admin),
	client: GoogleSheetsClient = Depends(get_sheets_client),
) -> WorkspaceSyncReceipt:
	service = SyncService(db)
	try:
		return await service.sync_workspace(client)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{spreadsheet_id}/sync", response_model=SheetSyncReceipt)
async def sync_sheet(
	spreadsheet_id: str,
	payload: SheetSyncRequest,
	db: AsyncSession = Depends(get_db),
	_admin: object = Depends(require_admin),
	client: GoogleSheetsClient = Depends(get_sheets_client),
) -> SheetSyncReceipt:
	service = SyncService(db)
	try:
		return await service.sync_sheet(spreadsheet_id, payload.sheet_name, client)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.delete("/{spreadsheet_id}/fields/{field_name}", response_model=FieldPurgeResult)
async def delete_field(
	spreadsheet_id: str,
	field_name: str,
	db: AsyncSession = Depends(get_db),
	_admin: object = Depends(require_admin),
) -> FieldPurgeResult:
	service = SyncService(db)
	try:
		return await service.delete_sheet_by_field(spreadsheet_id, field_name)
	except Exception as exc:
		raise _map_error(exc) from exc
