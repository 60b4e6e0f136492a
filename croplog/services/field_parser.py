"""Field sheet row parsing.

A field tab holds one bed per row under a single header row, with the
positional columns ``bed | crop:variety | trays | rows | planted | notes``.
Sheets are maintained by hand, so every function here tolerates ragged rows,
blank spacer rows and free-text notes instead of raising.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any, NamedTuple

from croplog.models.enums import LocationEnum
from croplog.schemas.sheets import ParsedPlanting, ReplantedFrom

MULTI_CROP_DELIMITER = " / "
_CROP_COLUMN = 1
_TRAYS_COLUMN = 2

# "<crop>[: <variety>] replaced with|by <new crop>"; the crop is taken from the
# clause (after the last , ; or .) that leads into the verb.
_REPLACED_WITH_ORIGIN = re.compile(
	r"^(?:.*[,;.])?\s*(?P<crop>[^:,;.]+?)(?:\s*:\s*(?P<variety>[^,;.]+?))?\s+replaced\s+(?:with|by)\b",
	re.IGNORECASE,
)
_REPLACED = re.compile(r"\breplaced\s+(?:with|by)\b", re.IGNORECASE)
_REPLANTED = re.compile(r"\breplanted\s+with\b", re.IGNORECASE)

_HIGH_TUNNEL_TOKENS = ("high tunnel", "ht")
_GREENHOUSE_TOKENS = ("greenhouse", "gh")


class FieldRow(NamedTuple):
	bed: str
	crop_variety: str
	trays: str
	rows: str
	planted_date: str
	notes: str

	@classmethod
	def from_cells(cls, cells: Sequence[Any] | None) -> "FieldRow":
		"""Pad short rows with "", drop extra cells, and trim every value."""
		values = [_cell_text(cell) for cell in list(cells or [])[: len(cls._fields)]]
		values.extend([""] * (len(cls._fields) - len(values)))
		return cls(*values)

	@property
	def is_blank(self) -> bool:
		return not self.bed and not self.crop_variety


def _cell_text(cell: Any) -> str:
	return _raw_cell_text(cell).strip()


def _raw_cell_text(cell: Any) -> str:
	if cell is None:
		return ""
	return str(cell)


def _raw_column(cells: Sequence[Any] | None, index: int) -> str:
	values = list(cells or [])
	return _raw_cell_text(values[index]) if index < len(values) else ""


def classify_location(name: str) -> LocationEnum:
	"""Classify a field (or qualifier location token) by case-insensitive substring."""
	lowered = (name or "").lower()
	if any(token in lowered for token in _HIGH_TUNNEL_TOKENS):
		return LocationEnum.high_tunnel
	if any(token in lowered for token in _GREENHOUSE_TOKENS):
		return LocationEnum.greenhouse
	return LocationEnum.open_field


def split_crop_variety(cell: str) -> tuple[str, str]:
	if ":" not in cell:
		return cell.strip(), ""
	parts = cell.split(":")
	return parts[0].strip(), parts[1].strip()


def detect_replanting(notes: str) -> ReplantedFrom | None:
	if not notes:
		return None

	origin = _REPLACED_WITH_ORIGIN.match(notes)
	if origin is not None:
		return ReplantedFrom(
			crop=origin.group("crop").strip(),
			variety=(origin.group("variety") or "").strip(),
			date="",
			notes=notes,
		)
	if _REPLACED.search(notes) or _REPLANTED.search(notes):
		return ReplantedFrom(crop="", variety="", date="", notes=notes)
	return None


def _split_multi_crop(crop_cell: str, trays_cell: str) -> list[tuple[str, str]]:
	"""Pair each crop entry of a multi-crop cell with its trays token.

	Both cells are split untrimmed: a hand-edited "Kale / " still holds the
	delimiter and yields an empty second entry.
	"""
	entries = [entry.strip() for entry in crop_cell.split(MULTI_CROP_DELIMITER)]
	tray_tokens = [token.strip() for token in trays_cell.split(MULTI_CROP_DELIMITER)]
	if MULTI_CROP_DELIMITER in trays_cell and len(tray_tokens) == len(entries):
		return list(zip(entries, tray_tokens, strict=True))
	return [(entry, tray_tokens[0]) for entry in entries]


def parse_field_rows(grid: Sequence[Sequence[Any]] | None, field_name: str) -> list[ParsedPlanting]:
	"""Turn one field tab's raw grid into planting records.

	Row 0 is the header and is always skipped.  Rows with an empty bed and an
	empty crop cell are spacer rows and are dropped, as is any entry whose
	crop resolves to an empty string.
	"""
	if not grid:
		return []

	location = classify_location(field_name)
	records: list[ParsedPlanting] = []

	for cells in grid[1:]:
		row = FieldRow.from_cells(cells)
		if row.is_blank:
			continue

		raw_crop = _raw_column(cells, _CROP_COLUMN)
		if MULTI_CROP_DELIMITER in raw_crop:
			raw_trays = _raw_column(cells, _TRAYS_COLUMN)
			for entry, trays in _split_multi_crop(raw_crop, raw_trays):
				crop, variety = split_crop_variety(entry)
				if not crop:
					continue
				records.append(
					ParsedPlanting(
						field=field_name,
						bed=row.bed,
						crop=crop,
						variety=variety,
						tray_count=trays,
						row_count=row.rows,
						planted_date=row.planted_date,
						notes=row.notes,
						location=location,
					)
				)
			continue

		crop, variety = split_crop_variety(row.crop_variety)
		if not crop:
			continue
		records.append(
			ParsedPlanting(
				field=field_name,
				bed=row.bed,
				crop=crop,
				variety=variety,
				tray_count=row.trays,
				row_count=row.rows,
				planted_date=row.planted_date,
				notes=row.notes,
				location=location,
				replanted_from=detect_replanting(row.notes),
			)
		)

	return records
