"""Tests for the auto-approval sweep."""

import asyncio
from datetime import timedelta

import pytest

from src.assignx.models.enums import ProjectStatus
from src.assignx.services import SweepResult

pytestmark = pytest.mark.unit


class TestSweep:
    async def test_silent_client_is_auto_approved(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)
        delivered_at = project.delivered_at

        world.clock.advance(hours=73)
        result = await world.auto_approval().run_sweep()

        assert result.approved == [project.id]
        stored = world.project(project)
        assert stored.status == ProjectStatus.COMPLETED.value
        assert stored.client_approved is True
        assert stored.completed_at == delivered_at + timedelta(hours=73)
        events = [row.event for row in world.store.history_for(project.id)][-2:]
        assert events == ["auto_approve", "finalize"]
        assert len(world.store.payouts_for(project.id)) == 2

    async def test_later_sweep_changes_nothing(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)
        world.clock.advance(hours=73)
        await world.auto_approval().run_sweep()
        history_length = len(world.store.history_for(project.id))

        world.clock.advance(hours=27)
        result = await world.auto_approval().run_sweep()

        assert result.scanned == 0
        assert len(world.store.history_for(project.id)) == history_length
        assert len(world.store.payouts_for(project.id)) == 2

    async def test_not_due_before_grace_period(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)

        world.clock.advance(hours=71)
        result = await world.auto_approval().run_sweep()

        assert result.scanned == 0
        assert world.project(project).status == ProjectStatus.DELIVERED.value

    async def test_grace_period_starts_at_deadline(self, world):
        project = await world.create_project(deadline=world.clock() + timedelta(days=5))
        project = await world.advance_to(ProjectStatus.DELIVERED, project)

        world.clock.advance(hours=73)
        result = await world.auto_approval().run_sweep()

        assert result.scanned == 0
        assert world.project(project).auto_approve_at == project.deadline + timedelta(hours=72)

    async def test_revision_request_stops_the_timer(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)
        world.clock.advance(hours=10)
        await world.lifecycle().request_revision(project.id, world.client, "Wrong referencing style")

        world.clock.advance(hours=63)
        result = await world.auto_approval().run_sweep()

        assert result.scanned == 0
        assert world.project(project).status == ProjectStatus.REVISION_REQUESTED.value

    async def test_one_failure_does_not_stop_the_sweep(self, world):
        broken = await world.advance_to(ProjectStatus.DELIVERED)
        healthy = await world.advance_to(ProjectStatus.DELIVERED)
        world.store.projects[broken.id]["doer_payout"] = None

        world.clock.advance(hours=73)
        result = await world.auto_approval().run_sweep()

        assert result.failed == [broken.id]
        assert result.approved == [healthy.id]
        assert world.project(broken).status == ProjectStatus.DELIVERED.value
        assert world.project(healthy).status == ProjectStatus.COMPLETED.value

    async def test_batch_limit(self, world):
        for _ in range(3):
            await world.advance_to(ProjectStatus.DELIVERED)

        world.clock.advance(hours=73)
        result = await world.auto_approval().run_sweep(limit=2)

        assert result.as_dict() == {"scanned": 2, "approved": 2, "skipped": 0, "failed": 0}


class TestAutoApprove:
    async def test_already_approved_project_is_skipped(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)
        await world.lifecycle().approve_delivery(project.id, world.client)

        approved = await world.auto_approval().auto_approve(
            project.id, world.clock() + timedelta(hours=80)
        )

        assert approved is False

    async def test_client_approval_racing_the_sweep(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)
        world.clock.advance(hours=73)
        world.store.interleave = True

        client_result, sweep_result = await asyncio.gather(
            world.lifecycle().approve_delivery(project.id, world.client, grade=4),
            world.auto_approval().auto_approve(project.id, world.clock()),
        )

        assert client_result.status == ProjectStatus.COMPLETED.value
        assert sweep_result is False
        stored = world.project(project)
        assert stored.client_grade == 4
        assert len(world.store.payouts_for(project.id)) == 2
        events = [row.event for row in world.store.history_for(project.id)]
        assert "auto_approve" not in events


def test_sweep_result_counts():
    result = SweepResult(scanned=1)
    result.skipped.append(object())  # type: ignore[arg-type]

    assert result.as_dict() == {"scanned": 1, "approved": 0, "skipped": 1, "failed": 0}
