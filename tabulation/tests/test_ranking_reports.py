"""
Tests for the category, segment and final ranking reports.
"""
import pytest

from tabulation.exceptions import NotFoundError
from tabulation.services.lock_orchestrator import LockOrchestrator
from tabulation.services.ranking_report_service import RankingReportService
from tabulation.tests.factories import segment_spec


@pytest.fixture
def pageant(event_factory, score_writer):
    """
    Default event with scores:

    Preliminary (0.6)  Beauty: Andres 90/80, Bruno 70/70, Carlo 90/80, Dana 95/-
                       Wit:    Andres 80/80, Bruno 90/90, Carlo 80/80
    Final (0.4)        Q&A:    Andres 80/80, Bruno 100/100, Carlo 70/70
    """
    async def build():
        seeded = await event_factory(status="active")
        andres, bruno, carlo, dana = seeded.participants[:4]
        ana, ben = seeded.judges
        preliminary, final = seeded.segments
        await score_writer(preliminary, seeded.categories["Beauty"], {
            (andres, ana): 90, (andres, ben): 80,
            (bruno, ana): 70, (bruno, ben): 70,
            (carlo, ana): 90, (carlo, ben): 80,
            (dana, ana): 95,
        })
        await score_writer(preliminary, seeded.categories["Wit"], {
            (andres, ana): 80, (andres, ben): 80,
            (bruno, ana): 90, (bruno, ben): 90,
            (carlo, ana): 80, (carlo, ben): 80,
        })
        await score_writer(final, seeded.categories["Q&A"], {
            (andres, ana): 80, (andres, ben): 80,
            (bruno, ana): 100, (bruno, ben): 100,
            (carlo, ana): 70, (carlo, ben): 70,
        })
        return seeded
    return build


def names(rows):
    return [row["name"] for row in rows]


def ranks(rows):
    return [row["rank"] for row in rows]


class TestCategoryRanking:

    @pytest.mark.asyncio
    async def test_ranks_by_category_average_with_judge_cells(self, store, pageant):
        seeded = await pageant()
        report = await RankingReportService(store).category_ranking(
            seeded.event.id, seeded.segments[0].id, seeded.categories["Beauty"].id
        )

        male = report["results"]["male"]
        assert names(male) == ["Andres", "Carlo", "Bruno"]
        assert ranks(male) == [1, 1, 3]
        assert male[0]["averaged_score"] == 85.0
        assert male[0]["judge_scores"] == {"Judge Ana": 90.0, "Judge Ben": 80.0}

        female = report["results"]["female"]
        assert names(female) == ["Dana", "Elisa", "Fiona"]
        assert ranks(female) == [1, 2, 2]
        assert female[0]["averaged_score"] == 47.5
        assert female[0]["judge_scores"] == {"Judge Ana": 95.0, "Judge Ben": None}

        assert report["event"]["id"] == seeded.event.id
        assert report["category"]["name"] == "Beauty"

    @pytest.mark.asyncio
    async def test_category_of_other_segment_is_not_found(self, store, pageant):
        seeded = await pageant()

        with pytest.raises(NotFoundError):
            await RankingReportService(store).category_ranking(
                seeded.event.id, seeded.segments[0].id, seeded.categories["Q&A"].id
            )


class TestSegmentRanking:

    @pytest.mark.asyncio
    async def test_ranks_by_segment_total(self, store, pageant):
        seeded = await pageant()
        report = await RankingReportService(store).segment_ranking(seeded.event.id, seeded.segments[0].id)

        male = report["results"]["male"]
        assert names(male) == ["Andres", "Carlo", "Bruno"]
        assert ranks(male) == [1, 1, 3]
        assert male[0]["averaged_score"] == 165.0
        assert male[0]["category_scores"] == {"Beauty": 85.0, "Wit": 80.0}
        assert [c["name"] for c in report["categories"]] == ["Beauty", "Wit"]

    @pytest.mark.asyncio
    async def test_category_without_active_judges_is_none(self, store, event_factory, score_writer):
        seeded = await event_factory(status="active", segments=[
            segment_spec("Only", 1, 1.0, [("Beauty", 0.5), ("Wit", 0.5, [])]),
        ])
        andres = seeded.participants[0]
        ana, ben = seeded.judges
        await score_writer(seeded.segments[0], seeded.categories["Beauty"], {(andres, ana): 80, (andres, ben): 60})
        # Stray score for a category nobody is judging
        await score_writer(seeded.segments[0], seeded.categories["Wit"], {(andres, ana): 100})

        report = await RankingReportService(store).segment_ranking(seeded.event.id, seeded.segments[0].id)

        row = report["results"]["male"][0]
        assert row["name"] == "Andres"
        assert row["category_scores"] == {"Beauty": 70.0, "Wit": None}
        assert row["averaged_score"] == 70.0

    @pytest.mark.asyncio
    async def test_duplicate_category_names_keep_separate_cells(self, store, event_factory, score_writer):
        seeded = await event_factory(status="active", segments=[
            segment_spec("Only", 1, 1.0, [("Poise", 0.5), ("Poise", 0.5)]),
        ])
        segment = seeded.segments[0]
        first, second = segment.categories
        andres = seeded.participants[0]
        ana, ben = seeded.judges
        await score_writer(segment, first, {(andres, ana): 90, (andres, ben): 90})
        await score_writer(segment, second, {(andres, ana): 10, (andres, ben): 10})

        report = await RankingReportService(store).segment_ranking(seeded.event.id, segment.id)

        first_label, second_label = f"Poise #{first.id}", f"Poise #{second.id}"
        row = report["results"]["male"][0]
        assert row["name"] == "Andres"
        assert row["category_scores"] == {first_label: 90.0, second_label: 10.0}
        assert {c["label"] for c in report["categories"]} == {first_label, second_label}

    @pytest.mark.asyncio
    async def test_eliminated_participant_stays_on_own_segment_board_only(self, db_session, store, pageant):
        seeded = await pageant()
        preliminary, final = seeded.segments
        carlo = seeded.participants[2]
        carlo.status = "eliminated"
        carlo.eliminated_at_segment_id = preliminary.id
        await db_session.commit()

        service = RankingReportService(store)
        prelim_report = await service.segment_ranking(seeded.event.id, preliminary.id)
        final_report = await service.segment_ranking(seeded.event.id, final.id)

        assert "Carlo" in names(prelim_report["results"]["male"])
        assert "Carlo" not in names(final_report["results"]["male"])

    @pytest.mark.asyncio
    async def test_segment_of_other_event_is_not_found(self, store, pageant, event_factory):
        seeded = await pageant()
        other = await event_factory()

        with pytest.raises(NotFoundError):
            await RankingReportService(store).segment_ranking(seeded.event.id, other.segments[0].id)


class TestFinalRanking:

    @pytest.mark.asyncio
    async def test_weighted_final_scores(self, store, pageant):
        seeded = await pageant()
        report = await RankingReportService(store).final_ranking(seeded.event.id)

        male = report["results"]["male"]
        # Andres 165*0.6 + 80*0.4, Bruno 160*0.6 + 100*0.4, Carlo 165*0.6 + 70*0.4
        assert names(male) == ["Bruno", "Andres", "Carlo"]
        assert [row["averaged_score"] for row in male] == [136.0, 131.0, 127.0]
        assert ranks(male) == [1, 2, 3]
        assert male[0]["segment_scores"] == {"Preliminary": 96.0, "Final": 40.0}

    @pytest.mark.asyncio
    async def test_includes_eliminated_participants(self, db_session, store, pageant):
        seeded = await pageant()
        carlo = seeded.participants[2]
        carlo.status = "eliminated"
        carlo.eliminated_at_segment_id = seeded.segments[0].id
        await db_session.commit()

        report = await RankingReportService(store).final_ranking(seeded.event.id)

        assert "Carlo" in names(report["results"]["male"])
        assert len(report["results"]["female"]) == 3

    @pytest.mark.asyncio
    async def test_duplicate_segment_names_keep_separate_cells(self, store, event_factory, score_writer):
        seeded = await event_factory(status="active", judge_names=["Judge Ana"], segments=[
            segment_spec("Round", 1, 0.5, [("Beauty", 1.0)]),
            segment_spec("Round", 2, 0.5, [("Q&A", 1.0)]),
        ])
        first, second = seeded.segments
        andres = seeded.participants[0]
        ana = seeded.judges[0]
        await score_writer(first, seeded.categories["Beauty"], {(andres, ana): 80})
        await score_writer(second, seeded.categories["Q&A"], {(andres, ana): 60})

        report = await RankingReportService(store).final_ranking(seeded.event.id)

        row = report["results"]["male"][0]
        assert row["segment_scores"] == {f"Round #{first.id}": 40.0, f"Round #{second.id}": 30.0}
        assert row["averaged_score"] == 70.0

    @pytest.mark.asyncio
    async def test_rerun_is_identical(self, store, pageant):
        seeded = await pageant()
        service = RankingReportService(store)

        assert await service.final_ranking(seeded.event.id) == await service.final_ranking(seeded.event.id)

    @pytest.mark.asyncio
    async def test_unknown_event(self, store):
        with pytest.raises(NotFoundError):
            await RankingReportService(store).final_ranking(404)


class TestRounding:

    @pytest.mark.asyncio
    async def test_presentation_rounding_only(self, store, event_factory, score_writer):
        seeded = await event_factory(status="active", segments=[
            segment_spec("Only", 1, 1.0, [("Beauty", 1.0)]),
        ])
        andres = seeded.participants[0]
        ana, ben = seeded.judges
        await score_writer(seeded.segments[0], seeded.categories["Beauty"], {(andres, ana): 90, (andres, ben): 81.11})

        two = await RankingReportService(store, decimal_places=2).segment_ranking(
            seeded.event.id, seeded.segments[0].id
        )
        one = await RankingReportService(store, decimal_places=1).segment_ranking(
            seeded.event.id, seeded.segments[0].id
        )

        assert two["results"]["male"][0]["averaged_score"] == 85.56
        assert two["results"]["male"][0]["raw_averaged_score"] == 85.555
        assert one["results"]["male"][0]["averaged_score"] == 85.6


class TestReportsAfterLock:

    @pytest.mark.asyncio
    async def test_reports_after_lock_that_eliminates(self, store, event_factory, score_writer):
        seeded = await event_factory(status="active", judge_names=["Judge Ana"], segments=[
            segment_spec(
                "Preliminary", 1, 0.6, [("Beauty", 1.0)],
                status="active", advancement_type="top_n", advancement_value=2
            ),
            segment_spec("Final", 2, 0.4, [("Q&A", 1.0)]),
        ])
        preliminary, final = seeded.segments
        ana = seeded.judges[0]
        await score_writer(preliminary, seeded.categories["Beauty"], {
            (participant, ana): value
            for participant, value in zip(seeded.participants, [90, 80, 70, 95, 85, 60])
        })

        await LockOrchestrator(store).lock_segment(preliminary.id)

        carlo = await store.find_participant(seeded.participants[2].id)
        assert carlo.status == "eliminated"
        assert carlo.eliminated_at_segment_order == 1

        service = RankingReportService(store)
        prelim_report = await service.segment_ranking(seeded.event.id, preliminary.id)
        final_segment_report = await service.segment_ranking(seeded.event.id, final.id)
        final_report = await service.final_ranking(seeded.event.id)

        assert names(prelim_report["results"]["male"]) == ["Andres", "Bruno", "Carlo"]
        assert names(final_segment_report["results"]["male"]) == ["Andres", "Bruno"]
        assert names(final_segment_report["results"]["female"]) == ["Dana", "Elisa"]
        assert names(final_report["results"]["female"]) == ["Dana", "Elisa", "Fiona"]
        assert final_report["results"]["male"][2]["segment_scores"] == {"Preliminary": 42.0, "Final": 0.0}
