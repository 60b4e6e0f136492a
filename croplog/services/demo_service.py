"""Demonstration data set: a few fields, qualifiers and six weeks of quality logs."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import structlog
from redis.asyncio import Redis
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from croplog.models.quality import QualityLog
from croplog.models.sheets import PlantingRecord, QualifierDefinition, UniversalQualifier
from croplog.schemas.settings import DemoClearResult, DemoSeedResult
from croplog.services.analytics_service import invalidate_analytics_cache
from croplog.services.field_parser import classify_location

logger = structlog.get_logger("croplog.demo")

# field, bed, crop, variety, trays, rows, planted date
DEMO_PLANTINGS: tuple[tuple[str, str, str, str, str, str, str], ...] = (
	("Field 3", "1", "Tomato", "Roma", "4", "2", "5/12/2025"),
	("Field 3", "2", "Tomato", "Cherry", "3", "2", "5/15/2025"),
	("Field 3", "3", "Pepper", "Bell", "5", "3", "5/20/2025"),
	("Field 3", "4", "Pepper", "Jalapeño", "2", "1", "5/22/2025"),
	("Field 3", "5", "Lettuce", "Romaine", "6", "4", "6/1/2025"),
	("Field 3", "6", "Squash", "Zucchini", "3", "2", "6/5/2025"),
	("HT 1", "1", "Tomato", "Roma", "6", "3", "5/10/2025"),
	("HT 1", "2", "Tomato", "Cherry", "4", "2", "5/10/2025"),
	("HT 1", "3", "Cucumber", "Mini Me", "3", "2", "5/18/2025"),
	("HT 1", "4", "Cucumber", "Tasty Green", "2", "1", "5/18/2025"),
	("HT 1", "5", "Basil", "Genovese", "2", "1", "6/2/2025"),
	("HT 2", "1", "Tomato", "Roma", "5", "3", "5/14/2025"),
	("HT 2", "2", "Lettuce", "Butterhead", "4", "2", "6/8/2025"),
	("HT 2", "3", "Pepper", "Bell", "3", "2", "5/25/2025"),
	("HT 2", "4", "Cucumber", "Mini Me", "2", "1", "7/1/2025"),
)

REPLANT_NOTE = "Tomato: Roma replaced with Cucumber: Mini Me"
# index into DEMO_PLANTINGS -> replanted_from
DEMO_REPLANTS: dict[int, dict[str, str]] = {
	14: {"crop": "Tomato", "variety": "Roma", "date": "5/14/2025", "notes": REPLANT_NOTE},
}

FRUIT_SET = ["None", "Light", "Moderate", "Heavy"]

DEMO_QUALIFIERS: tuple[dict, ...] = (
	{
		"name": "Tomato",
		"location": "HT",
		"assessments": [
			{"name": "Fruit set?", "options": FRUIT_SET},
			{"name": "Disease pressure?", "options": ["None", "Low", "Moderate", "High"]},
			{"name": "Pruning status?", "options": ["Up to date", "Behind", "Not started"]},
		],
	},
	{
		"name": "Tomato",
		"location": "field",
		"assessments": [
			{"name": "Fruit set?", "options": FRUIT_SET},
			{"name": "Staking status?", "options": ["Good", "Needs attention", "Fallen"]},
		],
	},
	{
		"name": "Cucumber",
		"location": None,
		"assessments": [
			{"name": "Vine vigor?", "options": ["Weak", "Moderate", "Strong"]},
			{"name": "Fruit quality?", "options": ["Poor", "Fair", "Good", "Excellent"]},
		],
	},
	{
		"name": "Pepper",
		"location": None,
		"assessments": [
			{"name": "Fruit set?", "options": FRUIT_SET},
			{"name": "Plant size?", "options": ["Small", "Medium", "Large"]},
		],
	},
	{
		"name": "Lettuce",
		"location": None,
		"assessments": [
			{"name": "Head formation?", "options": ["None", "Starting", "Formed", "Bolting"]},
			{"name": "Pest damage?", "options": ["None", "Minor", "Moderate", "Severe"]},
		],
	},
)

DEMO_UNIVERSAL: tuple[tuple[str, list[str], int], ...] = (
	("Planting quantity?", ["Too little", "On target", "Too much"], 1),
	("Overall health?", ["Poor", "Fair", "Good", "Excellent"], 2),
)

PLANTING_ANSWERS = ["Too little", "On target", "On target", "Too much", "On target", "On target"]
HEALTH_ANSWERS = ["Good", "Good", "Excellent", "Fair", "Good", "Excellent", "Good", "Poor"]

# (planting index, week offset, extra responses)
DEMO_LOG_ENTRIES: tuple[tuple[int, int, list[tuple[str, str]]], ...] = (
	(0, 0, [("Fruit set?", "Light")]),
	(6, 0, [("Fruit set?", "Moderate"), ("Pruning status?", "Up to date")]),
	(8, 0, [("Vine vigor?", "Strong")]),
	(1, 1, [("Fruit set?", "Light")]),
	(2, 1, [("Fruit set?", "None"), ("Plant size?", "Medium")]),
	(7, 1, [("Fruit set?", "Moderate")]),
	(0, 2, [("Fruit set?", "Moderate")]),
	(4, 2, [("Head formation?", "Starting"), ("Pest damage?", "Minor")]),
	(11, 2, [("Fruit set?", "Heavy"), ("Pruning status?", "Behind")]),
	(6, 3, [("Fruit set?", "Heavy"), ("Disease pressure?", "Low")]),
	(8, 3, [("Vine vigor?", "Moderate"), ("Fruit quality?", "Good")]),
	(3, 3, [("Fruit set?", "Light"), ("Plant size?", "Large")]),
	(10, 3, [("Vine vigor?", "Strong")]),
	(1, 4, [("Fruit set?", "Heavy")]),
	(5, 4, []),
	(12, 4, [("Head formation?", "Formed"), ("Pest damage?", "None")]),
	(13, 4, [("Fruit set?", "Moderate")]),
	(0, 5, [("Fruit set?", "Heavy"), ("Staking status?", "Needs attention")]),
	(6, 5, [("Fruit set?", "Heavy"), ("Disease pressure?", "Moderate")]),
	(14, 5, [("Vine vigor?", "Strong"), ("Fruit quality?", "Excellent")]),
)

# A Monday: hourly staggering keeps every entry inside its own week.
DEMO_LOG_BASE_DATE = datetime(2025, 6, 16, 8, 0, tzinfo=UTC)


@dataclass
class DemoDataset:
	plantings: list[PlantingRecord] = field(default_factory=list)
	qualifiers: list[QualifierDefinition] = field(default_factory=list)
	universal: list[UniversalQualifier] = field(default_factory=list)
	logs: list[QualityLog] = field(default_factory=list)


def build_demo_dataset(now: datetime | None = None) -> DemoDataset:
	now = now or datetime.now(UTC)
	dataset = DemoDataset()

	for idx, (field_name, bed, crop, variety, trays, rows, planted) in enumerate(DEMO_PLANTINGS):
		replant = DEMO_REPLANTS.get(idx)
		dataset.plantings.append(
			PlantingRecord(
				id=uuid.uuid4(),
				field=field_name,
				bed=bed,
				crop=crop,
				variety=variety,
				tray_count=trays,
				row_count=rows,
				planted_date=planted,
				notes=replant["notes"] if replant else "",
				location=classify_location(field_name),
				replanted_from=dict(replant) if replant else None,
				last_synced=now,
			)
		)

	for definition in DEMO_QUALIFIERS:
		dataset.qualifiers.append(
			QualifierDefinition(
				id=uuid.uuid4(),
				name=definition["name"],
				location=definition["location"],
				assessments=[
					{"name": item["name"], "options": list(item["options"])} for item in definition["assessments"]
				],
				last_synced=now,
			)
		)

	for name, options, order in DEMO_UNIVERSAL:
		dataset.universal.append(
			UniversalQualifier(id=uuid.uuid4(), name=name, options=list(options), display_order=order, last_synced=now)
		)

	for idx, (planting_idx, week_offset, extra) in enumerate(DEMO_LOG_ENTRIES):
		planting = dataset.plantings[planting_idx]
		# Staggered by an hour so entries within a week keep a stable order.
		assessed = DEMO_LOG_BASE_DATE + timedelta(weeks=week_offset, hours=idx)
		responses = [
			{"question": "Planting quantity?", "answer": PLANTING_ANSWERS[idx % len(PLANTING_ANSWERS)]},
			{"question": "Overall health?", "answer": HEALTH_ANSWERS[idx % len(HEALTH_ANSWERS)]},
			*({"question": question, "answer": answer} for question, answer in extra),
		]
		dataset.logs.append(
			QualityLog(
				id=uuid.uuid4(),
				planting_record_id=planting.id,
				crop=planting.crop,
				variety=planting.variety,
				field=planting.field,
				bed=planting.bed,
				date_planted=planting.planted_date,
				tray_count=planting.tray_count,
				row_count=planting.row_count,
				planting_notes=planting.notes,
				assessment_date=assessed,
				responses=responses,
				created_at=assessed,
			)
		)

	return dataset


class DemoService:
	def __init__(self, db: AsyncSession, redis_client: Redis | None = None):
		self.db = db
		self.redis_client = redis_client

	async def seed(self) -> DemoSeedResult:
		dataset = build_demo_dataset()
		self.db.add_all(dataset.plantings)
		self.db.add_all(dataset.qualifiers)
		self.db.add_all(dataset.universal)
		# Logs reference plantings by FK; flush the parents first.
		await self.db.flush()
		self.db.add_all(dataset.logs)
		await self.db.flush()
		await invalidate_analytics_cache(self.redis_client)
		logger.info("demo_seeded", plantings=len(dataset.plantings), logs=len(dataset.logs))
		return DemoSeedResult(
			crops=len(dataset.plantings),
			qualifiers=len(dataset.qualifiers),
			universal_qualifiers=len(dataset.universal),
			quality_logs=len(dataset.logs),
		)

	async def clear(self) -> DemoClearResult:
		deleted: dict[str, int] = {}
		for name, model in (
			("quality_logs", QualityLog),
			("crops", PlantingRecord),
			("qualifiers", QualifierDefinition),
			("universal_qualifiers", UniversalQualifier),
		):
			result = await self.db.execute(delete(model))
			deleted[name] = int(result.rowcount or 0)
		await invalidate_analytics_cache(self.redis_client)
		logger.info("demo_cleared", **deleted)
		return DemoClearResult(deleted=deleted)
