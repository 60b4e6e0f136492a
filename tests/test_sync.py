from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from httpx import AsyncClient

from conftest import FakeAsyncSession
from croplog.main import app
from croplog.models.sheets import PlantingRecord, QualifierDefinition, SheetSnapshot, UniversalQualifier
from croplog.routes import sheets as sheets_routes
from croplog.schemas.qualifiers import Assessment, QualifierDefinitionIn
from croplog.schemas.sheets import SyncAction
from croplog.services.errors import SourceNotFoundError, SyncValidationError, UpstreamSheetsError
from croplog.services.settings_service import SettingsService
from croplog.services.sync_service import SyncService

FIELD_HEADER = ["Bed", "Crop", "Trays", "Rows", "Planted", "Notes"]

QUALIFIERS_GRID = [
    ["Tomatoes", "Planting quantity?", "Fruit set?"],
    ["", "- too much", "- light"],
    ["", "- not enough", "- heavy"],
    ["Cucumbers, HT", "Planting quantity?", "Vigor?"],
    ["", "- too much", "- weak"],
]


class FakeGridSource:
    def __init__(self, tabs: dict[str, Any]) -> None:
        self.tabs = tabs
        self.calls: list[str] = []

    async def fetch_grid(self, spreadsheet_id: str, sheet_name: str | None, cell_range: str | None = None) -> list[list[str]]:
        self.calls.append(sheet_name or "")
        tab = self.tabs.get(sheet_name)
        if tab is None:
            raise SourceNotFoundError(spreadsheet_id, sheet_name or "")
        if isinstance(tab, Exception):
            raise tab
        return tab


def _rows(session: FakeAsyncSession, model: type) -> list[Any]:
    return [obj for obj in session.added if isinstance(obj, model)]


@pytest.fixture
def memory_store(monkeypatch: pytest.MonkeyPatch) -> None:
    """Back SyncService's persistence helpers with the fake session's ``added`` list."""

    async def get_snapshot(self: SyncService, spreadsheet_id: str, range_key: str) -> SheetSnapshot | None:
        for row in _rows(self.db, SheetSnapshot):
            if row.spreadsheet_id == spreadsheet_id and row.range == range_key:
                return row
        return None

    async def delete_snapshot(self: SyncService, spreadsheet_id: str, range_key: str) -> int:
        doomed = [
            row
            for row in _rows(self.db, SheetSnapshot)
            if row.spreadsheet_id == spreadsheet_id and row.range == range_key
        ]
        for row in doomed:
            self.db.added.remove(row)
        return len(doomed)

    async def delete_plantings(self: SyncService, field: str) -> int:
        doomed = [row for row in _rows(self.db, PlantingRecord) if row.field == field]
        for row in doomed:
            self.db.added.remove(row)
        return len(doomed)

    async def get_qualifier(self: SyncService, name: str, location: str | None) -> QualifierDefinition | None:
        for row in _rows(self.db, QualifierDefinition):
            if row.name == name and row.location == location:
                return row
        return None

    async def list_universal(self: SyncService) -> list[UniversalQualifier]:
        return sorted(_rows(self.db, UniversalQualifier), key=lambda row: row.display_order)

    async def delete_universal(self: SyncService, row: UniversalQualifier) -> None:
        self.db.added.remove(row)

    monkeypatch.setattr(SyncService, "_get_snapshot", get_snapshot)
    monkeypatch.setattr(SyncService, "_delete_snapshot", delete_snapshot)
    monkeypatch.setattr(SyncService, "_delete_plantings_for_field", delete_plantings)
    monkeypatch.setattr(SyncService, "_get_qualifier", get_qualifier)
    monkeypatch.setattr(SyncService, "_list_universal", list_universal)
    monkeypatch.setattr(SyncService, "_delete_universal", delete_universal)


@pytest.mark.asyncio
async def test_resync_drops_removed_bed(fake_db_session: FakeAsyncSession, memory_store: None) -> None:
    service = SyncService(fake_db_session)
    source = FakeGridSource(
        {
            "Field 3": [
                FIELD_HEADER,
                ["1", "Tomato: Roma", "4", "2", "5/1", ""],
                ["2", "Pepper: Bell", "3", "1", "5/2", ""],
            ]
        }
    )

    first = await service.sync_sheet("sheet-1", "Field 3", source)
    assert first.action == SyncAction.created
    assert first.crops_count == 2

    source.tabs["Field 3"] = [FIELD_HEADER, ["2", "Pepper: Bell", "3", "1", "5/2", ""]]
    second = await service.sync_sheet("sheet-1", "Field 3", source)

    assert second.action == SyncAction.updated
    assert second.crops_count == 1
    plantings = _rows(fake_db_session, PlantingRecord)
    assert [(row.bed, row.crop) for row in plantings] == [("2", "Pepper")]
    snapshots = _rows(fake_db_session, SheetSnapshot)
    assert len(snapshots) == 1
    assert snapshots[0].range == "Field 3!A:ZZ"
    assert len(snapshots[0].parsed_data) == 1


@pytest.mark.asyncio
async def test_resync_of_emptied_tab_clears_partition(fake_db_session: FakeAsyncSession, memory_store: None) -> None:
    service = SyncService(fake_db_session)
    source = FakeGridSource({"Field 1": [FIELD_HEADER, ["1", "Kale", "1", "1", "", ""]]})
    await service.sync_sheet("sheet-1", "Field 1", source)

    source.tabs["Field 1"] = [FIELD_HEADER]
    receipt = await service.sync_sheet("sheet-1", "Field 1", source)

    assert receipt.crops_count == 0
    assert _rows(fake_db_session, PlantingRecord) == []
    assert _rows(fake_db_session, SheetSnapshot)[0].parsed_data == []


@pytest.mark.asyncio
async def test_other_fields_survive_a_field_resync(fake_db_session: FakeAsyncSession, memory_store: None) -> None:
    service = SyncService(fake_db_session)
    source = FakeGridSource(
        {
            "Field 1": [FIELD_HEADER, ["1", "Kale", "1", "1", "", ""]],
            "HT 1": [FIELD_HEADER, ["1", "Tomato", "1", "1", "", ""]],
        }
    )
    await service.sync_sheet("sheet-1", "Field 1", source)
    await service.sync_sheet("sheet-1", "HT 1", source)
    await service.sync_sheet("sheet-1", "HT 1", source)

    fields = sorted(row.field for row in _rows(fake_db_session, PlantingRecord))
    assert fields == ["Field 1", "HT 1"]


@pytest.mark.asyncio
async def test_qualifiers_sync_and_universal_removal(fake_db_session: FakeAsyncSession, memory_store: None) -> None:
    service = SyncService(fake_db_session)
    source = FakeGridSource({"Qualifiers": QUALIFIERS_GRID})

    receipt = await service.sync_sheet("sheet-1", "Qualifiers", source)
    assert receipt.qualifiers_count == 2
    assert receipt.universal_count == 1
    assert [row.name for row in _rows(fake_db_session, UniversalQualifier)] == ["Planting quantity?"]
    assert _rows(fake_db_session, SheetSnapshot)[0].parsed_data is None

    source.tabs["Qualifiers"] = [
        ["Tomatoes", "Planting quantity?", "Fruit set?"],
        ["", "- too much", "- light"],
        ["Cucumbers, HT", "Vigor?"],
        ["", "- weak"],
    ]
    await service.sync_sheet("sheet-1", "Qualifiers", source)

    assert _rows(fake_db_session, UniversalQualifier) == []
    qualifiers = {(row.name, row.location): row for row in _rows(fake_db_session, QualifierDefinition)}
    assert set(qualifiers) == {("Tomatoes", None), ("Cucumbers", "HT")}
    assert [a["name"] for a in qualifiers[("Tomatoes", None)].assessments] == ["Planting quantity?", "Fruit set?"]


@pytest.mark.asyncio
async def test_qualifier_upsert_keeps_location_variants_apart(
    fake_db_session: FakeAsyncSession, memory_store: None
) -> None:
    service = SyncService(fake_db_session)
    assessment = Assessment(name="Vigor?", options=["weak"])
    result = await service.sync_qualifiers(
        [
            QualifierDefinitionIn(name="Cucumbers", location=None, assessments=[assessment]),
            QualifierDefinitionIn(name="Cucumbers", location="HT", assessments=[assessment]),
        ]
    )
    assert [item.action for item in result.results] == [SyncAction.created, SyncAction.created]

    again = await service.sync_qualifiers(
        [QualifierDefinitionIn(name="Cucumbers", location="HT", assessments=[assessment])]
    )
    assert again.results[0].action == SyncAction.updated
    assert len(_rows(fake_db_session, QualifierDefinition)) == 2


@pytest.mark.asyncio
async def test_missing_sheet_name_is_rejected_before_fetch(fake_db_session: FakeAsyncSession) -> None:
    service = SyncService(fake_db_session)
    source = FakeGridSource({})

    with pytest.raises(SyncValidationError):
        await service.sync_sheet("sheet-1", "  ", source)
    with pytest.raises(SyncValidationError):
        await service.sync_sheet_data("sheet-1", "", [])

    assert source.calls == []
    assert fake_db_session.added == []


@pytest.mark.asyncio
async def test_delete_sheet_by_field(fake_db_session: FakeAsyncSession, memory_store: None) -> None:
    service = SyncService(fake_db_session)
    await service.sync_sheet(
        "sheet-1", "Old Field", FakeGridSource({"Old Field": [FIELD_HEADER, ["1", "Kale", "", "", "", ""]]})
    )

    result = await service.delete_sheet_by_field("sheet-1", "Old Field")

    assert result.snapshots_deleted == 1
    assert result.crops_deleted == 1
    assert fake_db_session.added == []


@pytest.mark.asyncio
async def test_workspace_sync_purges_missing_tabs_and_reports_failures(
    fake_db_session: FakeAsyncSession,
    memory_store: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    workspace = SimpleNamespace(spreadsheet_id="sheet-1", sheet_names=["Field 1", "Old Field", "Broken"])
    removed_calls: list[list[str]] = []

    async def get(self: SettingsService) -> SimpleNamespace:
        return workspace

    async def remove_sheet_names(self: SettingsService, removed: list[str]) -> SimpleNamespace:
        removed_calls.append(list(removed))
        return workspace

    monkeypatch.setattr(SettingsService, "get", get)
    monkeypatch.setattr(SettingsService, "remove_sheet_names", remove_sheet_names)

    service = SyncService(fake_db_session)
    await service.sync_sheet(
        "sheet-1", "Old Field", FakeGridSource({"Old Field": [FIELD_HEADER, ["1", "Kale", "", "", "", ""]]})
    )

    source = FakeGridSource(
        {
            "Qualifiers": QUALIFIERS_GRID,
            "Field 1": [FIELD_HEADER, ["1", "Tomato", "2", "1", "", ""]],
            "Broken": UpstreamSheetsError("quota exceeded", 429),
        }
    )
    receipt = await service.sync_workspace(source)

    assert source.calls == ["Qualifiers", "Field 1", "Old Field", "Broken"]
    assert receipt.status == "partial"
    assert receipt.synced_count == 2
    assert receipt.failed_count == 1
    assert receipt.removed_sheets == ["Old Field"]
    assert removed_calls == [["Old Field"]]
    assert {sheet.sheet_name: sheet.status for sheet in receipt.sheets} == {
        "Qualifiers": "ok",
        "Field 1": "ok",
        "Old Field": "removed",
        "Broken": "failed",
    }
    assert [row.field for row in _rows(fake_db_session, PlantingRecord)] == ["Field 1"]
    assert fake_db_session.savepoints == 5


@pytest.mark.asyncio
async def test_workspace_sync_requires_configuration(
    fake_db_session: FakeAsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def get(self: SettingsService) -> None:
        return None

    monkeypatch.setattr(SettingsService, "get", get)

    with pytest.raises(SyncValidationError):
        await SyncService(fake_db_session).sync_workspace(FakeGridSource({}))


@pytest.mark.asyncio
async def test_sync_endpoint_reports_missing_tab(client: AsyncClient, memory_store: None) -> None:
    app.dependency_overrides[sheets_routes.get_sheets_client] = lambda: FakeGridSource({})

    response = await client.post("/api/v1/sheets/sheet-1/sync", json={"sheet_name": "Gone"})

    assert response.status_code == 404
    detail = response.json()["detail"]
    assert detail["code"] == "SHEET_NOT_FOUND"
    assert detail["error"] == "Sheet not found"


@pytest.mark.asyncio
async def test_sync_endpoint_returns_receipt(client: AsyncClient, memory_store: None) -> None:
    source = FakeGridSource({"Field 3": [FIELD_HEADER, ["1", "Tomato: Roma", "4", "2", "5/1", ""]]})
    app.dependency_overrides[sheets_routes.get_sheets_client] = lambda: source

    response = await client.post("/api/v1/sheets/sheet-1/sync", json={"sheet_name": "Field 3"})

    assert response.status_code == 200
    body = response.json()
    assert body["action"] == "created"
    assert body["crops_count"] == 1
    assert body["row_count"] == 2


@pytest.mark.asyncio
async def test_sync_endpoint_requires_google_token(client: AsyncClient) -> None:
    response = await client.post("/api/v1/sheets/sheet-1/sync", json={"sheet_name": "Field 3"})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "Google account not connected"
