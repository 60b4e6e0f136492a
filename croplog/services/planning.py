"""Planting-quantity keyword tables and classifiers.

The tables are plain data so the matching rules can be read and tested
without going through the aggregator.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from croplog.schemas.analytics import PlanningBucket

PLANNING_QUESTION_PHRASES: tuple[str, ...] = (
	"planting quantity",
	"quantity planted",
	"quantity?",
	"planted too",
)

# Evaluated in order; the first bucket with a matching keyword wins.
PLANNING_ANSWER_KEYWORDS: tuple[tuple[PlanningBucket, tuple[str, ...]], ...] = (
	(PlanningBucket.under, ("not enough", "too little", "under")),
	(PlanningBucket.over, ("too much", "too many", "over", "excess")),
	(PlanningBucket.on_target, ("just right", "perfect", "ideal", "right amount", "on target")),
)


def is_planning_question(question: str) -> bool:
	lowered = (question or "").lower()
	return any(phrase in lowered for phrase in PLANNING_QUESTION_PHRASES)


def classify_planning_answer(answer: str) -> PlanningBucket:
	lowered = (answer or "").lower()
	for bucket, keywords in PLANNING_ANSWER_KEYWORDS:
		if any(keyword in lowered for keyword in keywords):
			return bucket
	return PlanningBucket.unknown


def _field(response: Any, name: str) -> str:
	if isinstance(response, Mapping):
		return str(response.get(name) or "")
	return str(getattr(response, name, "") or "")


def planning_signal(responses: Iterable[Any] | None) -> PlanningBucket | None:
	"""Bucket of the first planting-quantity response, or None when the log has none."""
	for response in responses or []:
		if is_planning_question(_field(response, "question")):
			return classify_planning_answer(_field(response, "answer"))
	return None
