"""Tests for the quality gate."""

import asyncio
from decimal import Decimal

import pytest

from src.assignx.lifecycle import (
    ConcurrentTransitionError,
    InvalidTransitionError,
    PreconditionFailedError,
    TransitionNotPermittedError,
)
from src.assignx.models import Project
from src.assignx.models.enums import (
    NotificationType,
    ProjectStatus,
    ReportResult,
    ReportType,
    RevisionStatus,
    Role,
)
from src.assignx.services.quality_gate import PASS_THRESHOLDS, report_result

pytestmark = pytest.mark.unit


async def _revise_and_resubmit(world, project: Project) -> Project:
    await world.lifecycle().begin_revision(project.id, world.doer)
    await world.upload(project)
    world.clock.advance(hours=6)
    return await world.lifecycle().submit_for_qc(project.id, world.doer)


class TestReportResult:
    def test_thresholds(self):
        assert PASS_THRESHOLDS == {
            ReportType.PLAGIARISM: Decimal("15"),
            ReportType.AI_DETECTION: Decimal("20"),
        }

    @pytest.mark.parametrize(
        ("report_type", "score", "expected"),
        [
            (ReportType.PLAGIARISM, Decimal("15"), ReportResult.PASS),
            (ReportType.PLAGIARISM, Decimal("15.01"), ReportResult.FAIL),
            (ReportType.AI_DETECTION, Decimal("19.5"), ReportResult.PASS),
            (ReportType.AI_DETECTION, Decimal("42"), ReportResult.FAIL),
            (ReportType.AI_DETECTION, None, ReportResult.NOT_CHECKED),
        ],
    )
    def test_report_result(self, report_type, score, expected):
        assert report_result(report_type, score) == expected


class TestRecordScores:
    async def test_scores_recorded_on_project_and_reports(self, world):
        project = await world.advance_to(ProjectStatus.QC_IN_PROGRESS)

        reports = await world.quality_gate().record_quality_scores(
            project.id,
            world.supervisor,
            plagiarism_score=Decimal("22"),
            ai_score=Decimal("3"),
            notes="Two unattributed paragraphs",
        )

        assert [(r.report_type, r.result) for r in reports] == [
            ("plagiarism", "fail"),
            ("ai_detection", "pass"),
        ]
        stored = world.project(project)
        assert stored.plagiarism_score == Decimal("22")
        assert stored.qc_notes == "Two unattributed paragraphs"

    async def test_scores_only_during_qc(self, world):
        project = await world.advance_to(ProjectStatus.IN_PROGRESS)

        with pytest.raises(InvalidTransitionError):
            await world.record_passing_scores(project)

    async def test_doer_cannot_score(self, world):
        project = await world.advance_to(ProjectStatus.QC_IN_PROGRESS)

        with pytest.raises(TransitionNotPermittedError):
            await world.quality_gate().record_quality_scores(
                project.id, world.doer, plagiarism_score=Decimal("0"), ai_score=Decimal("0")
            )


class TestApprove:
    async def test_approve_delivers(self, world):
        project = await world.advance_to(ProjectStatus.QC_IN_PROGRESS)
        await world.record_passing_scores(project)

        project = await world.quality_gate().approve_qc(project.id, world.supervisor, "Clean work")

        assert project.status == ProjectStatus.DELIVERED.value
        events = [row.event for row in world.store.history_for(project.id)][-2:]
        assert events == ["approve_qc", "deliver"]
        assert world.store.history_for(project.id)[-1].changed_by_role == Role.SYSTEM.value

    async def test_approve_requires_both_reports(self, world):
        project = await world.advance_to(ProjectStatus.QC_IN_PROGRESS)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.quality_gate().approve_qc(project.id, world.supervisor)

        assert exc_info.value.reason_code == "qc_scores_missing"
        assert world.project(project).status == ProjectStatus.QC_IN_PROGRESS.value

    async def test_unchecked_score_still_counts_as_recorded(self, world):
        project = await world.advance_to(ProjectStatus.QC_IN_PROGRESS)
        await world.quality_gate().record_quality_scores(
            project.id, world.supervisor, plagiarism_score=Decimal("2"), ai_score=None
        )

        project = await world.quality_gate().approve_qc(project.id, world.supervisor)

        assert project.status == ProjectStatus.DELIVERED.value

    async def test_approve_claims_from_submission_queue(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED_FOR_QC)
        await world.record_passing_scores(project)

        project = await world.quality_gate().approve_qc(project.id, world.supervisor)

        events = [row.event for row in world.store.history_for(project.id)][-3:]
        assert events == ["start_qc", "approve_qc", "deliver"]

    async def test_missing_scores_roll_back_the_claim(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED_FOR_QC)

        with pytest.raises(PreconditionFailedError):
            await world.quality_gate().approve_qc(project.id, world.supervisor)

        assert world.project(project).status == ProjectStatus.SUBMITTED_FOR_QC.value
        assert world.store.history_for(project.id)[-1].event == "submit_for_qc"

    async def test_scores_from_previous_submission_do_not_count(self, world):
        project = await world.advance_to(ProjectStatus.QC_IN_PROGRESS)
        await world.record_passing_scores(project)
        await world.quality_gate().reject_qc(project.id, world.supervisor, "Thesis unclear")
        project = await _revise_and_resubmit(world, project)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.quality_gate().approve_qc(project.id, world.supervisor)

        assert exc_info.value.reason_code == "qc_scores_missing"


class TestReject:
    async def test_reject_sends_back_for_revision(self, world):
        project = await world.advance_to(ProjectStatus.QC_IN_PROGRESS)

        project = await world.quality_gate().reject_qc(
            project.id, world.supervisor, "Citations missing"
        )

        assert project.status == ProjectStatus.REVISION_REQUESTED.value
        assert project.qc_notes == "Citations missing"
        (revision,) = world.store.revisions
        assert revision.feedback == "Citations missing"
        assert revision.requested_by == world.supervisor_user.id
        assert revision.status == RevisionStatus.PENDING.value

    async def test_doer_is_told_why(self, world):
        project = await world.advance_to(ProjectStatus.QC_IN_PROGRESS)

        await world.quality_gate().reject_qc(project.id, world.supervisor, "Citations missing")

        rejected = [
            n
            for n in world.store.notifications
            if n.user_id == world.doer_user.id
            and n.notification_type == NotificationType.QC_REJECTED.value
        ]
        assert len(rejected) == 1
        assert "Citations missing" in rejected[0].body

    async def test_reject_needs_a_reason(self, world):
        project = await world.advance_to(ProjectStatus.QC_IN_PROGRESS)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.quality_gate().reject_qc(project.id, world.supervisor, " ")

        assert exc_info.value.reason_code == "reason_required"
        assert world.project(project).status == ProjectStatus.QC_IN_PROGRESS.value

    async def test_cannot_reject_delivered_work(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)

        with pytest.raises(InvalidTransitionError):
            await world.quality_gate().reject_qc(project.id, world.supervisor, "Second thoughts")

    async def test_two_rejection_loops_then_delivery(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED_FOR_QC)
        gate = world.quality_gate

        await gate().reject_qc(project.id, world.supervisor, "Citations missing")
        await _revise_and_resubmit(world, project)
        await gate().reject_qc(project.id, world.supervisor, "Conclusion does not follow")
        await _revise_and_resubmit(world, project)
        await world.record_passing_scores(project)
        project = await gate().approve_qc(project.id, world.supervisor)

        assert project.status == ProjectStatus.DELIVERED.value
        history = world.store.history_for(project.id)
        rejection_notes = [row.notes for row in history if row.event == "reject_qc"]
        assert rejection_notes == ["Citations missing", "Conclusion does not follow"]
        assert [row.to_status for row in history].count("revision_requested") == 2
        revisions = world.store.revisions
        assert [r.revision_number for r in revisions] == [1, 2]
        assert all(r.status == RevisionStatus.COMPLETED.value for r in revisions)


class TestConcurrentDecisions:
    async def test_approve_and_reject_race(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED_FOR_QC)
        await world.record_passing_scores(project)
        world.store.interleave = True

        results = await asyncio.gather(
            world.quality_gate().approve_qc(project.id, world.supervisor),
            world.quality_gate().reject_qc(project.id, world.supervisor, "Too short"),
            return_exceptions=True,
        )

        winners = [r for r in results if isinstance(r, Project)]
        losers = [r for r in results if isinstance(r, Exception)]
        assert len(winners) == 1
        assert len(losers) == 1
        assert isinstance(losers[0], ConcurrentTransitionError)
        assert losers[0].reason_code == "state_changed"
        assert world.project(project).status == winners[0].status

        claims = [row for row in world.store.history_for(project.id) if row.event == "start_qc"]
        assert len(claims) == 1
