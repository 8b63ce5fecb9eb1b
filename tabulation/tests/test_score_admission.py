"""
Tests for score creation and update.
"""
import pytest

from tabulation.exceptions import NotFoundError, ValidationError
from tabulation.services.score_admission_service import ScoreSubmission, create_score, update_score
from tabulation.tests.factories import segment_spec


def submission(seeded, value, participant=0, category="Beauty", judge=0, segment=0):
    return ScoreSubmission(
        value=value,
        participant_id=seeded.participants[participant].id,
        category_id=seeded.categories[category].id,
        judge_id=seeded.judges[judge].id,
        segment_id=seeded.segments[segment].id,
    )


class TestCreateScore:

    @pytest.mark.asyncio
    async def test_creates_score_with_event_from_segment(self, store, event_factory):
        seeded = await event_factory(status="active")

        score = await create_score(store, submission(seeded, 88.5))

        assert score.id is not None
        assert score.value == 88.5
        assert score.event_id == seeded.event.id
        assert await store.find_score(score.id) == score

    @pytest.mark.asyncio
    async def test_duplicate_tuple_rejected(self, store, event_factory):
        seeded = await event_factory(status="active")
        await create_score(store, submission(seeded, 80))

        with pytest.raises(ValidationError, match="Score already exists for this category."):
            await create_score(store, submission(seeded, 90))

    @pytest.mark.asyncio
    async def test_same_participant_other_judge_is_allowed(self, store, event_factory):
        seeded = await event_factory(status="active")
        await create_score(store, submission(seeded, 80))

        second = await create_score(store, submission(seeded, 90, judge=1))

        assert second.judge_id == seeded.judges[1].id

    @pytest.mark.asyncio
    async def test_out_of_range_rejected(self, store, event_factory):
        seeded = await event_factory(status="active")

        with pytest.raises(ValidationError, match="Allowed range: 0 to 100"):
            await create_score(store, submission(seeded, 100.5))

    @pytest.mark.asyncio
    async def test_raw_category_cap(self, store, event_factory):
        seeded = await event_factory(segments=[
            segment_spec(
                "Talent", 1, 1.0, [("Skill", 0.4), ("Stage Presence", 0.6)],
                scoring_mode="raw_category"
            ),
        ])

        score = await create_score(store, submission(seeded, 40, category="Skill"))
        assert score.value == 40

        with pytest.raises(ValidationError, match="Allowed range: 0 to 40"):
            await create_score(store, submission(seeded, 41, participant=1, category="Skill"))

    @pytest.mark.asyncio
    async def test_segment_with_bad_category_weights_refuses_scores(self, store, event_factory):
        seeded = await event_factory(segments=[
            segment_spec("Talent", 1, 1.0, [("Skill", 0.4), ("Stage Presence", 0.5)]),
        ])

        with pytest.raises(ValidationError, match="Total category weight for segment #1 must be 1.0"):
            await create_score(store, submission(seeded, 30, category="Skill"))

    @pytest.mark.asyncio
    async def test_category_from_other_segment_rejected(self, store, event_factory):
        seeded = await event_factory(status="active")

        with pytest.raises(ValidationError, match="Category does not belong to this segment."):
            await create_score(store, submission(seeded, 80, category="Q&A", segment=0))

    @pytest.mark.asyncio
    async def test_unknown_participant(self, store, event_factory):
        seeded = await event_factory(status="active")
        bad = submission(seeded, 80)
        bad.participant_id = 9999

        with pytest.raises(NotFoundError):
            await create_score(store, bad)

    @pytest.mark.asyncio
    async def test_unknown_segment(self, store, event_factory):
        seeded = await event_factory(status="active")
        bad = submission(seeded, 80)
        bad.segment_id = 9999

        with pytest.raises(NotFoundError):
            await create_score(store, bad)


class TestUpdateScore:

    @pytest.mark.asyncio
    async def test_updates_value(self, store, event_factory):
        seeded = await event_factory(status="active")
        created = await create_score(store, submission(seeded, 70))

        updated = await update_score(store, created.id, submission(seeded, 75.25))

        assert updated.id == created.id
        assert updated.value == 75.25
        assert (await store.find_score(created.id)).value == 75.25

    @pytest.mark.asyncio
    async def test_tuple_must_match_score(self, store, event_factory):
        seeded = await event_factory(status="active")
        created = await create_score(store, submission(seeded, 70))

        with pytest.raises(ValidationError, match="Score does not exist for this category and participant."):
            await update_score(store, created.id, submission(seeded, 75, participant=1))

    @pytest.mark.asyncio
    async def test_cannot_update_through_another_scores_tuple(self, store, event_factory):
        seeded = await event_factory(status="active")
        first = await create_score(store, submission(seeded, 70))
        await create_score(store, submission(seeded, 60, participant=1))

        with pytest.raises(ValidationError, match="Score does not exist"):
            await update_score(store, first.id, submission(seeded, 75, participant=1))

    @pytest.mark.asyncio
    async def test_update_is_range_checked(self, store, event_factory):
        seeded = await event_factory(status="active")
        created = await create_score(store, submission(seeded, 70))

        with pytest.raises(ValidationError, match="Allowed range"):
            await update_score(store, created.id, submission(seeded, -5))

        assert (await store.find_score(created.id)).value == 70

    @pytest.mark.asyncio
    async def test_unknown_score(self, store, event_factory):
        seeded = await event_factory(status="active")

        with pytest.raises(NotFoundError):
            await update_score(store, 4242, submission(seeded, 70))
