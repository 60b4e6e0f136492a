"""Error kinds raised by the sync pipeline and record stores.

Each class subclasses the builtin that the routers already map
(LookupError -> 404, ValueError -> 400), so the per-router ``_map_error``
helpers keep working unchanged.
"""

from __future__ import annotations

SHEET_NOT_FOUND_CODE = "SHEET_NOT_FOUND"


class SourceNotFoundError(LookupError):
	"""The requested sheet tab no longer exists upstream (renamed or removed)."""

	code = SHEET_NOT_FOUND_CODE

	def __init__(self, spreadsheet_id: str, sheet_name: str):
		self.spreadsheet_id = spreadsheet_id
		self.sheet_name = sheet_name
		super().__init__(f"Sheet '{sheet_name}' not found in spreadsheet {spreadsheet_id}")


class SyncValidationError(ValueError):
	pass


class RecordNotFoundError(LookupError):
	pass


class UpstreamSheetsError(RuntimeError):
	def __init__(self, message: str, status_code: int | None = None):
		self.status_code = status_code
		super().__init__(message)
