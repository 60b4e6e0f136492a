"""Qualifiers sheet parsing.

Layout of the "Qualifiers" tab::

    | Arugula      | Planting quantity? | Bolting?  |
    |              | - too much         | - quickly |
    |              | - not enough       | - slowly  |
    | Cucumbers, HT| Planting quantity? | Spacing?  |
    |              | - too much         | - close   |

A non-empty column A (not starting with "-") opens a block; questions sit in
the same row and their options in the rows below, in the same column.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from croplog.schemas.qualifiers import (
	Assessment,
	QualifierDefinitionIn,
	QualifiersParseResult,
	UniversalQualifierIn,
)

OPTION_PREFIX = "- "


def _cell_text(cell: Any) -> str:
	if cell is None:
		return ""
	return str(cell).strip()


def split_name_and_location(full_name: str) -> tuple[str, str | None]:
	"""``"Cucumbers, HT"`` -> ``("Cucumbers", "HT")``; the last comma wins."""
	name, sep, location = full_name.rpartition(",")
	if not sep:
		return full_name.strip(), None
	return name.strip(), location.strip() or None


def _is_block_header(first_cell: str) -> bool:
	return bool(first_cell) and not first_cell.startswith("-")


def _flush_block(
	crop_names: list[str],
	questions: dict[int, Assessment],
	out: list[QualifierDefinitionIn],
) -> None:
	if not crop_names or not questions:
		return
	for full_name in crop_names:
		name, location = split_name_and_location(full_name)
		if not name:
			continue
		out.append(
			QualifierDefinitionIn(
				name=name,
				location=location,
				assessments=[question.model_copy(deep=True) for question in questions.values()],
			)
		)


def _extract_universal(
	vegetables: list[QualifierDefinitionIn],
) -> list[UniversalQualifierIn]:
	if not vegetables:
		return []

	counts: dict[str, int] = {}
	first_seen: dict[str, tuple[list[str], int]] = {}
	for veg in vegetables:
		for question_name in dict.fromkeys(a.name for a in veg.assessments):
			counts[question_name] = counts.get(question_name, 0) + 1
		for idx, assessment in enumerate(veg.assessments):
			if assessment.name not in first_seen:
				first_seen[assessment.name] = (list(assessment.options), idx)

	universal_names = {name for name, count in counts.items() if count == len(vegetables)}
	universal = [
		UniversalQualifierIn(name=name, options=list(first_seen[name][0]), display_order=first_seen[name][1])
		for name in counts
		if name in universal_names
	]
	universal.sort(key=lambda item: item.display_order)

	for veg in vegetables:
		veg.assessments = [a for a in veg.assessments if a.name not in universal_names]
	return universal


def _parse_blocks(grid: Sequence[Sequence[Any]]) -> list[QualifierDefinitionIn]:
	vegetables: list[QualifierDefinitionIn] = []
	crop_names: list[str] = []
	questions: dict[int, Assessment] = {}

	for row in grid:
		if not row:
			continue
		cells = [_cell_text(cell) for cell in row]
		first_cell = cells[0]

		if _is_block_header(first_cell):
			_flush_block(crop_names, questions, vegetables)
			crop_names = [name.strip() for name in first_cell.split("/") if name.strip()]
			questions = {
				col: Assessment(name=cell, options=[])
				for col, cell in enumerate(cells[1:], start=1)
				if cell.endswith("?")
			}
			continue

		if not crop_names or not questions:
			continue
		for col, cell in enumerate(cells[1:], start=1):
			question = questions.get(col)
			if question is None or not cell:
				continue
			option = cell[len(OPTION_PREFIX):].strip() if cell.startswith(OPTION_PREFIX) else cell
			if option and not option.endswith("?"):
				question.options.append(option)

	_flush_block(crop_names, questions, vegetables)

	return [veg for veg in vegetables if veg.assessments and any(a.options for a in veg.assessments)]


def parse_qualifiers_sheet(grid: Sequence[Sequence[Any]] | None) -> QualifiersParseResult:
	"""Parse the Qualifiers tab into per-crop definitions plus universal questions.

	Questions asked of every surviving crop are pulled out into
	``universal_qualifiers`` (ordered by their position in the first crop
	that asks them) and removed from each crop's own list.  Blocks without
	any question that has options are discarded.
	"""
	if not grid:
		return QualifiersParseResult()

	vegetables = _parse_blocks(grid)
	universal = _extract_universal(vegetables)
	return QualifiersParseResult(vegetables=vegetables, universal_qualifiers=universal)


def parse_qualifiers_text(raw_text: str) -> QualifierDefinitionIn | None:
	"""Parse tab-separated text (one sheet row per line); returns the first crop.

	A pasted block describes a single crop, so no universal extraction happens.
	"""
	# Leading tabs are kept: an empty column A marks an option row.
	lines = [line.rstrip() for line in (raw_text or "").split("\n")]
	lines = [line for line in lines if line.strip()]
	if len(lines) < 2:
		return None
	grid = [[cell.strip() for cell in line.split("\t")] for line in lines]
	vegetables = _parse_blocks(grid)
	return vegetables[0] if vegetables else None
