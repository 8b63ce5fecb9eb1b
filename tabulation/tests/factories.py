"""
Builders for test events, segments, participants and scores.
"""
from types import SimpleNamespace
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tabulation.data_access.sql_store import SQLAlchemyStore
from tabulation.orm import Category, Event, Judge, Participant, Score, Segment


def segment_spec(
    name: str,
    order: int,
    weight: float,
    categories: List[tuple],
    scoring_mode: str = "normalized",
    status: str = "draft",
    advancement_type: str = "all",
    advancement_value: Optional[float] = None,
) -> Dict:
    """categories: (name, weight) or (name, weight, [judge index, ...])."""
    return {
        "name": name,
        "order": order,
        "weight": weight,
        "categories": categories,
        "scoring_mode": scoring_mode,
        "status": status,
        "advancement_type": advancement_type,
        "advancement_value": advancement_value,
    }


DEFAULT_PARTICIPANTS = [
    (1, "Andres", "male"),
    (2, "Bruno", "male"),
    (3, "Carlo", "male"),
    (1, "Dana", "female"),
    (2, "Elisa", "female"),
    (3, "Fiona", "female"),
]


async def seed_event(
    db: AsyncSession,
    segments: Optional[List[Dict]] = None,
    participants: Optional[List[tuple]] = None,
    judge_names: Optional[List[str]] = None,
    status: str = "draft",
) -> SimpleNamespace:
    """
    Insert an event with judges, segments, categories and participants.

    Returns a namespace with the ORM rows: event, judges (list), segments
    (list, in the given order), categories (dict keyed by category name) and
    participants (list).
    """
    if segments is None:
        segments = [
            segment_spec("Preliminary", 1, 0.6, [("Beauty", 0.5), ("Wit", 0.5)]),
            segment_spec("Final", 2, 0.4, [("Q&A", 1.0)]),
        ]
    if participants is None:
        participants = DEFAULT_PARTICIPANTS
    if judge_names is None:
        judge_names = ["Judge Ana", "Judge Ben"]

    judges = [Judge(name=name) for name in judge_names]
    db.add_all(judges)

    segment_rows = []
    categories: Dict[str, Category] = {}
    for spec in segments:
        segment = Segment(
            name=spec["name"],
            order=spec["order"],
            weight=spec["weight"],
            scoring_mode=spec["scoring_mode"],
            status=spec["status"],
            advancement_type=spec["advancement_type"],
            advancement_value=spec["advancement_value"],
        )
        for entry in spec["categories"]:
            category_judges = judges if len(entry) == 2 else [judges[i] for i in entry[2]]
            category = Category(name=entry[0], weight=entry[1], active_judges=list(category_judges))
            segment.categories.append(category)
            categories[entry[0]] = category
        segment_rows.append(segment)

    participant_rows = [
        Participant(number=number, name=name, gender=gender)
        for number, name, gender in participants
    ]

    event = Event(
        name="Mr and Ms Campus",
        status=status,
        segments=segment_rows,
        participants=participant_rows,
        judges=list(judges),
    )
    db.add(event)
    await db.commit()

    return SimpleNamespace(
        event=event,
        judges=judges,
        segments=segment_rows,
        categories=categories,
        participants=participant_rows,
    )


async def add_scores(db: AsyncSession, segment: Segment, category: Category, values: Dict) -> None:
    """values: {(participant, judge): value}"""
    for (participant, judge), value in values.items():
        db.add(Score(
            value=value,
            participant_id=participant.id,
            category_id=category.id,
            judge_id=judge.id,
            segment_id=segment.id,
            event_id=segment.event_id,
        ))
    await db.commit()


class FailingStore(SQLAlchemyStore):
    """Fails the n-th participant status write and records every attempt."""

    def __init__(self, db, fail_on_call):
        super().__init__(db)
        self.fail_on_call = fail_on_call
        self.participant_calls = []
        self.segment_calls = []

    async def set_participant_status(self, participant_id, status, eliminated_at_segment_id=None):
        self.participant_calls.append(participant_id)
        if len(self.participant_calls) == self.fail_on_call:
            raise RuntimeError("storage unavailable")
        await super().set_participant_status(participant_id, status, eliminated_at_segment_id)

    async def set_segment_status(self, segment_id, status, expected_status=None):
        self.segment_calls.append((segment_id, status))
        return await super().set_segment_status(segment_id, status, expected_status)
