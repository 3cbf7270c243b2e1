"""Tests for ProjectLifecycleService over in-memory storage."""

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from src.assignx.lifecycle import (
    Actor,
    InvalidTransitionError,
    PreconditionFailedError,
    ProjectNotFoundError,
    TransitionNotPermittedError,
)
from src.assignx.models import SupervisorBlacklistedDoer
from src.assignx.models.audit import AuditAction, AuditStatus
from src.assignx.models.enums import (
    ComplexityTier,
    NotificationType,
    ProjectStatus,
    RefundEligibility,
    RevisionStatus,
    Role,
    UrgencyTier,
)
from src.assignx.schemas.project import ProjectCreate, ProjectUpdate
from src.assignx.services.lifecycle_service import auto_approve_time, refund_eligibility_for
from tests.factories import UserFactory
from tests.helpers import QUOTED_PRICE

pytestmark = pytest.mark.unit


class TestHappyPath:
    async def test_project_reaches_delivered(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)

        statuses = [row.to_status for row in world.store.history_for(project.id)]
        assert statuses == [
            "draft",
            "submitted",
            "analyzing",
            "quoted",
            "payment_pending",
            "paid",
            "assigning",
            "assigned",
            "in_progress",
            "submitted_for_qc",
            "qc_in_progress",
            "qc_approved",
            "delivered",
        ]
        assert project.supervisor_id == world.supervisor_user.id
        assert project.doer_id == world.doer_user.id
        assert project.delivered_at == world.clock()
        assert project.auto_approve_at == world.clock() + timedelta(hours=72)

    async def test_history_rows_are_contiguous(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)

        history = world.store.history_for(project.id)
        for previous, row in zip(history, history[1:], strict=False):
            assert row.from_status == previous.to_status

    async def test_client_approval_completes_and_pays_out(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)

        project = await world.lifecycle().approve_delivery(
            project.id, world.client, grade=5, feedback="Exactly what I needed"
        )

        assert project.status == ProjectStatus.COMPLETED.value
        assert project.client_approved is True
        assert project.client_grade == 5
        assert project.auto_approve_at is None
        payouts = {p.recipient_role: p for p in world.store.payouts_for(project.id)}
        assert payouts[Role.DOER.value].amount == Decimal("650.00")
        assert payouts[Role.DOER.value].recipient_id == world.doer_user.id
        assert payouts[Role.SUPERVISOR.value].amount == Decimal("150.00")

    async def test_quote_records_settlement(self, world):
        project = await world.advance_to(ProjectStatus.QUOTED)

        assert project.client_quote == QUOTED_PRICE
        (quote,) = [q for q in world.store.quotes if q.project_id == project.id]
        assert quote.doer_amount == Decimal("650.00")
        assert quote.supervisor_amount == Decimal("150.00")
        assert quote.platform_amount == Decimal("200.00")
        assert world.store.history_for(project.id)[-1].extra == {
            "client_quote": "1000.00",
            "doer_payout": "650.00",
            "supervisor_commission": "150.00",
            "platform_fee": "200.00",
        }

    async def test_quote_defaults_to_configured_pricing(self, world):
        project = await world.create_project(word_count=2000)
        project = await world.advance_to(ProjectStatus.ANALYZING, project)

        project = await world.lifecycle().quote(project.id, world.supervisor, ComplexityTier.MEDIUM)

        # 2000 words at 0.50, medium complexity, no deadline
        assert project.client_quote == Decimal("1200.00")
        assert project.urgency_tier == UrgencyTier.STANDARD.value

    async def test_quote_urgency_follows_deadline(self, world):
        project = await world.create_project(deadline=world.clock() + timedelta(hours=30))
        project = await world.advance_to(ProjectStatus.ANALYZING, project)

        project = await world.lifecycle().quote(
            project.id, world.supervisor, ComplexityTier.EASY, base_rate=Decimal("100"), unit_count=1
        )

        assert project.urgency_tier == UrgencyTier.HOURS_48.value
        assert project.client_quote == Decimal("130.00")

    async def test_quote_urgency_with_offset_deadline(self, world):
        # 16:00 at UTC+1 is 30 hours after the clock's 09:00 UTC
        deadline = datetime(2026, 3, 3, 16, 0, tzinfo=timezone(timedelta(hours=1)))
        project = await world.create_project(deadline=deadline)
        project = await world.advance_to(ProjectStatus.ANALYZING, project)

        project = await world.lifecycle().quote(
            project.id, world.supervisor, ComplexityTier.EASY, base_rate=Decimal("100"), unit_count=1
        )

        assert project.urgency_tier == UrgencyTier.HOURS_48.value
        assert project.client_quote == Decimal("130.00")

    async def test_transitions_notify_other_parties(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED)
        await world.lifecycle().start_analysis(project.id, world.supervisor)

        to_client = [n for n in world.store.notifications if n.user_id == world.client_user.id]
        assert to_client[-1].title == f"Project {project.project_number} is now analyzing"
        assert not [n for n in world.store.notifications if n.user_id == world.supervisor_user.id]

    async def test_proposed_doer_is_notified(self, world):
        project = await world.advance_to(ProjectStatus.ASSIGNING)

        await world.lifecycle().propose_doer(project.id, world.supervisor, world.doer_user.id)

        offers = [
            n
            for n in world.store.notifications
            if n.notification_type == NotificationType.TASK_AVAILABLE.value
        ]
        assert [n.user_id for n in offers] == [world.doer_user.id]

    async def test_deferred_notices_wait_in_outbox(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED)
        service = world.lifecycle(defer_notices=True)

        await service.start_analysis(project.id, world.supervisor)

        assert world.store.notifications == []
        (notice,) = service.take_outbox()
        assert notice.to_status == ProjectStatus.ANALYZING
        assert world.client_user.id in notice.recipients
        assert service.take_outbox() == []

    async def test_refused_action_leaves_outbox_empty(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED)
        service = world.lifecycle(defer_notices=True)

        with pytest.raises(TransitionNotPermittedError):
            await service.start_analysis(project.id, world.doer)

        assert service.take_outbox() == []


class TestDrafts:
    async def test_create_project_numbers_sequentially(self, world):
        first = await world.create_project()
        second = await world.create_project()

        assert first.project_number == "AX-00001"
        assert second.project_number == "AX-00002"
        assert first.status == ProjectStatus.DRAFT.value

    async def test_offset_deadline_is_stored_as_utc(self, world):
        project = await world.create_project(deadline=datetime.fromisoformat("2030-01-01T00:00:00+02:00"))

        assert project.deadline == datetime(2029, 12, 31, 22, 0)
        assert project.deadline.tzinfo is None

    def test_zulu_deadline_is_normalized(self):
        data = ProjectCreate(title="Essay", deadline="2030-01-01T08:30:00Z")

        assert data.deadline == datetime(2030, 1, 1, 8, 30)

    async def test_only_clients_create_projects(self, world):
        with pytest.raises(TransitionNotPermittedError):
            await world.lifecycle().create_project(world.doer, ProjectCreate(title="Essay"))

    async def test_update_draft(self, world):
        project = await world.create_project()

        project = await world.lifecycle().update_draft(
            project.id, world.client, ProjectUpdate(title="Revised title", page_count=4)
        )

        assert project.title == "Revised title"
        assert project.page_count == 4

    async def test_submitted_project_cannot_be_edited(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED)

        with pytest.raises(InvalidTransitionError):
            await world.lifecycle().update_draft(project.id, world.client, ProjectUpdate(title="Late edit"))

    async def test_payment_cannot_be_requested_before_quote(self, world):
        project = await world.create_project()

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.lifecycle().request_payment(project.id, world.client)

        assert exc_info.value.reason_code == "settlement_missing"


class TestParties:
    async def test_other_client_cannot_act(self, world):
        project = await world.create_project()
        stranger = world.actor(world.add_user(UserFactory.client()))

        with pytest.raises(TransitionNotPermittedError) as exc_info:
            await world.lifecycle().submit(project.id, stranger)

        assert exc_info.value.reason_code == "not_a_party"
        assert world.project(project).status == ProjectStatus.DRAFT.value

    async def test_denied_action_is_audited(self, world):
        project = await world.create_project()
        stranger = world.actor(world.add_user(UserFactory.client()))

        with pytest.raises(TransitionNotPermittedError):
            await world.lifecycle().submit(project.id, stranger)

        (entry,) = world.store.audit_logs
        assert entry.action == AuditAction.TRANSITION_DENIED.value
        assert entry.status == AuditStatus.FAILURE.value
        assert entry.user_id == stranger.id
        assert entry.changes["reason_code"] == "not_a_party"

    async def test_system_actor_has_no_project_list(self, world):
        with pytest.raises(TransitionNotPermittedError):
            await world.lifecycle().list_projects(Actor.system())

    async def test_wrong_role_is_denied(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED)

        with pytest.raises(TransitionNotPermittedError):
            await world.lifecycle().start_analysis(project.id, world.doer)

    async def test_get_project_hides_foreign_projects(self, world):
        project = await world.create_project()
        stranger = world.actor(world.add_user(UserFactory.client()))

        with pytest.raises(ProjectNotFoundError):
            await world.lifecycle().get_project(project.id, stranger)

    async def test_supervisors_see_unclaimed_submissions(self, world):
        draft = await world.create_project()
        submitted = await world.advance_to(ProjectStatus.SUBMITTED)

        projects, _, has_more = await world.lifecycle().list_projects(world.supervisor)

        assert [p.id for p in projects] == [submitted.id]
        assert draft.id not in [p.id for p in projects]
        assert has_more is False

    async def test_second_supervisor_cannot_steal_claimed_project(self, world):
        project = await world.advance_to(ProjectStatus.ANALYZING)
        rival = world.actor(world.add_user(UserFactory.supervisor()))

        with pytest.raises(TransitionNotPermittedError):
            await world.lifecycle().quote(project.id, rival, ComplexityTier.EASY)

    async def test_next_actions_for_caller(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)

        actions = await world.lifecycle().get_next_actions(project.id, world.client)

        assert actions == ["approve_delivery", "cancel", "request_revision"]


class TestAssignment:
    async def test_blacklisted_doer_rejected(self, world):
        project = await world.advance_to(ProjectStatus.ASSIGNING)
        world.store.blacklist.append(
            SupervisorBlacklistedDoer(
                supervisor_id=world.supervisor_user.id, doer_id=world.doer_user.id
            )
        )

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.lifecycle().propose_doer(project.id, world.supervisor, world.doer_user.id)

        assert exc_info.value.reason_code == "doer_blacklisted"
        assert world.project(project).proposed_doer_id is None

    async def test_override_also_respects_blacklist(self, world):
        project = await world.advance_to(ProjectStatus.ASSIGNING)
        world.store.blacklist.append(
            SupervisorBlacklistedDoer(
                supervisor_id=world.supervisor_user.id, doer_id=world.doer_user.id
            )
        )

        with pytest.raises(PreconditionFailedError):
            await world.lifecycle().assign_doer_override(
                project.id, world.supervisor, world.doer_user.id
            )

    @pytest.mark.parametrize("make_user", [UserFactory.client, UserFactory.inactive])
    async def test_non_doer_cannot_be_proposed(self, world, make_user):
        project = await world.advance_to(ProjectStatus.ASSIGNING)
        user = world.add_user(make_user())

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.lifecycle().propose_doer(project.id, world.supervisor, user.id)

        assert exc_info.value.reason_code == "invalid_doer"

    async def test_only_proposed_doer_may_accept(self, world):
        project = await world.advance_to(ProjectStatus.ASSIGNING)
        other = world.add_user(UserFactory.doer())
        await world.lifecycle().propose_doer(project.id, world.supervisor, other.id)

        with pytest.raises(TransitionNotPermittedError):
            await world.lifecycle().accept_assignment(project.id, world.doer)

    async def test_system_actor_cannot_accept(self, world):
        project = await world.advance_to(ProjectStatus.ASSIGNING)
        await world.lifecycle().propose_doer(project.id, world.supervisor, world.doer_user.id)

        with pytest.raises(TransitionNotPermittedError):
            await world.lifecycle().accept_assignment(project.id, Actor.system())

        assert world.project(project).status == ProjectStatus.ASSIGNING.value

    async def test_supervisor_override_assigns_directly(self, world):
        project = await world.advance_to(ProjectStatus.ASSIGNING)

        project = await world.lifecycle().assign_doer_override(
            project.id, world.supervisor, world.doer_user.id
        )

        assert project.status == ProjectStatus.ASSIGNED.value
        assert project.doer_id == world.doer_user.id
        assert world.store.history_for(project.id)[-1].extra == {"override": True}

    async def test_first_upload_starts_work(self, world):
        project = await world.advance_to(ProjectStatus.ASSIGNED)

        await world.upload(project)

        last = world.store.history_for(project.id)[-1]
        assert world.project(project).status == ProjectStatus.IN_PROGRESS.value
        assert last.event == "start_work"
        assert last.changed_by_role == Role.SYSTEM.value

    async def test_same_file_registered_once(self, world):
        project = await world.advance_to(ProjectStatus.IN_PROGRESS)
        service = world.lifecycle()

        first = await service.add_deliverable(project.id, world.doer, "https://files/a.docx", "a.docx")
        second = await service.add_deliverable(project.id, world.doer, "https://files/a.docx", "a.docx")

        assert first.id == second.id
        assert second.version == 2
        assert len([d for d in world.store.deliverables if d.project_id == project.id]) == 2

    async def test_upload_refused_while_awaiting_qc(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED_FOR_QC)

        with pytest.raises(InvalidTransitionError):
            await world.lifecycle().add_deliverable(project.id, world.doer, "https://f/x", "x")


class TestSubmission:
    async def test_duplicate_submission_rejected(self, world):
        project = await world.advance_to(ProjectStatus.SUBMITTED_FOR_QC)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await world.lifecycle().submit_for_qc(project.id, world.doer)

        assert exc_info.value.reason_code == "duplicate_submission"
        assert exc_info.value.current_status == "submitted_for_qc"

    async def test_submission_needs_a_deliverable(self, world):
        project = await world.advance_to(ProjectStatus.ASSIGNED)
        await world.lifecycle().start_work(project.id, world.doer)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.lifecycle().submit_for_qc(project.id, world.doer)

        assert exc_info.value.reason_code == "deliverable_missing"
        assert world.project(project).status == ProjectStatus.IN_PROGRESS.value

    async def test_late_submission_is_flagged(self, world):
        project = await world.create_project(deadline=world.clock() + timedelta(days=1))
        project = await world.advance_to(ProjectStatus.IN_PROGRESS, project)
        world.clock.advance(days=2)

        project = await world.lifecycle().submit_for_qc(project.id, world.doer)

        assert project.submitted_late is True
        assert world.store.history_for(project.id)[-1].extra == {"late": True}

    async def test_client_revision_loop(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)

        project = await world.lifecycle().request_revision(
            project.id, world.client, "Please expand the conclusion"
        )
        assert project.status == ProjectStatus.REVISION_REQUESTED.value
        assert project.auto_approve_at is None

        await world.lifecycle().begin_revision(project.id, world.doer)
        (revision,) = world.store.revisions
        assert revision.status == RevisionStatus.IN_PROGRESS.value
        assert revision.requested_by_role == Role.CLIENT.value

        project = await world.lifecycle().submit_for_qc(project.id, world.doer)
        assert project.status == ProjectStatus.SUBMITTED_FOR_QC.value
        assert revision.status == RevisionStatus.COMPLETED.value

    async def test_revision_needs_feedback(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.lifecycle().request_revision(project.id, world.client, "   ")

        assert exc_info.value.reason_code == "reason_required"


class TestPayment:
    async def test_amount_mismatch_rejected_and_audited(self, world):
        project = await world.advance_to(ProjectStatus.PAYMENT_PENDING)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.lifecycle().confirm_payment(project.id, Decimal("999.99"), "pay_short")

        assert exc_info.value.reason_code == "payment_amount_mismatch"
        assert world.project(project).status == ProjectStatus.PAYMENT_PENDING.value
        (entry,) = world.store.audit_logs
        assert entry.action == AuditAction.PAYMENT_REJECTED.value
        assert entry.changes == {
            "amount": "999.99",
            "expected": "1000.00",
            "payment_id": "pay_short",
            "reason_code": "payment_amount_mismatch",
            "current_status": "payment_pending",
        }

    async def test_payment_freezes_split(self, world):
        project = await world.advance_to(ProjectStatus.PAID)

        assert project.payment_id == f"pay_{project.project_number}"
        assert project.doer_payout == Decimal("650.00")
        assert project.supervisor_commission == Decimal("150.00")
        assert project.platform_fee == Decimal("200.00")
        assert world.store.audit_logs[-1].action == AuditAction.PAYMENT_CONFIRMED.value

    async def test_retried_confirmation_is_a_no_op(self, world):
        project = await world.advance_to(ProjectStatus.PAID)
        payment_id = project.payment_id

        again = await world.lifecycle().confirm_payment(project.id, QUOTED_PRICE, payment_id)

        assert again.status == ProjectStatus.PAID.value
        paid_rows = [r for r in world.store.history_for(project.id) if r.to_status == "paid"]
        assert len(paid_rows) == 1

    async def test_second_payment_for_paid_project_rejected(self, world):
        project = await world.advance_to(ProjectStatus.PAID)

        with pytest.raises(InvalidTransitionError):
            await world.lifecycle().confirm_payment(project.id, QUOTED_PRICE, "pay_other")

    async def test_payment_after_cancellation_is_audited(self, world):
        project = await world.advance_to(ProjectStatus.PAYMENT_PENDING)
        await world.lifecycle().cancel(project.id, world.client, "Found another writer")

        with pytest.raises(InvalidTransitionError):
            await world.lifecycle().confirm_payment(project.id, QUOTED_PRICE, "pay_late")

        assert world.project(project).status == ProjectStatus.CANCELLED.value
        (entry,) = [
            log for log in world.store.audit_logs if log.action == AuditAction.PAYMENT_REJECTED.value
        ]
        assert entry.status == AuditStatus.FAILURE.value
        assert entry.changes["payment_id"] == "pay_late"
        assert entry.changes["reason_code"] == "invalid_transition"
        assert entry.changes["current_status"] == "cancelled"

    async def test_unknown_project(self, world):

        with pytest.raises(ProjectNotFoundError):
            await world.lifecycle().confirm_payment(uuid4(), QUOTED_PRICE, "pay_x")


class TestCancellation:
    async def test_cancel_requires_reason(self, world):
        project = await world.create_project()

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.lifecycle().cancel(project.id, world.client, "")

        assert exc_info.value.reason_code == "reason_required"

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (ProjectStatus.QUOTED, RefundEligibility.NONE),
            (ProjectStatus.ASSIGNED, RefundEligibility.FULL),
            (ProjectStatus.IN_PROGRESS, RefundEligibility.PARTIAL),
        ],
    )
    async def test_refund_eligibility_by_stage(self, world, status, expected):
        project = await world.advance_to(status)

        project = await world.lifecycle().cancel(project.id, world.supervisor, "Client withdrew")

        assert project.status == ProjectStatus.CANCELLED.value
        assert project.refund_eligibility == expected.value
        assert project.cancellation_reason == "Client withdrew"
        assert project.cancelled_by == world.supervisor_user.id

    async def test_completed_project_cannot_be_cancelled(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)
        await world.lifecycle().approve_delivery(project.id, world.client)

        with pytest.raises(InvalidTransitionError):
            await world.lifecycle().cancel(project.id, world.client, "Changed my mind")

    async def test_refund_is_supervisor_only(self, world):
        project = await world.advance_to(ProjectStatus.PAID)

        with pytest.raises(TransitionNotPermittedError):
            await world.lifecycle().refund(project.id, world.client, "Refund me")

        project = await world.lifecycle().refund(project.id, world.supervisor, "Dispute upheld")
        assert project.status == ProjectStatus.REFUNDED.value
        assert project.refund_eligibility == RefundEligibility.FULL.value

    def test_refund_eligibility_for(self):
        assert refund_eligibility_for(ProjectStatus.DRAFT) == RefundEligibility.NONE
        assert refund_eligibility_for(ProjectStatus.PAID) == RefundEligibility.FULL
        assert refund_eligibility_for(ProjectStatus.DELIVERED) == RefundEligibility.PARTIAL


class TestDeadlineExtension:
    async def test_supervisor_extends_deadline(self, world):
        deadline = world.clock() + timedelta(days=5)
        project = await world.create_project(deadline=deadline)
        project = await world.advance_to(ProjectStatus.IN_PROGRESS, project)
        new_deadline = deadline + timedelta(days=2)

        project = await world.lifecycle().extend_deadline(
            project.id, world.supervisor, new_deadline, "Sources arrived late"
        )

        assert project.deadline == new_deadline
        assert project.original_deadline == deadline
        assert project.deadline_extended is True
        entry = world.store.audit_logs[-1]
        assert entry.action == AuditAction.DEADLINE_EXTENDED.value
        assert entry.changes["reason"] == "Sources arrived late"

    async def test_offset_deadline_extension(self, world):
        deadline = world.clock() + timedelta(days=5)
        project = await world.create_project(deadline=deadline)
        project = await world.advance_to(ProjectStatus.IN_PROGRESS, project)
        later = (deadline + timedelta(days=2)).replace(tzinfo=UTC)

        project = await world.lifecycle().extend_deadline(
            project.id,
            world.supervisor,
            later.astimezone(timezone(timedelta(hours=-5))),
            "Sources arrived late",
        )

        assert project.deadline == deadline + timedelta(days=2)
        assert project.original_deadline == deadline

    async def test_deadline_must_move_later(self, world):
        deadline = world.clock() + timedelta(days=5)
        project = await world.create_project(deadline=deadline)
        project = await world.advance_to(ProjectStatus.IN_PROGRESS, project)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.lifecycle().extend_deadline(
                project.id, world.supervisor, deadline - timedelta(hours=1), "Sooner please"
            )

        assert exc_info.value.reason_code == "deadline_not_later"

    async def test_client_cannot_extend(self, world):
        project = await world.advance_to(ProjectStatus.IN_PROGRESS)

        with pytest.raises(TransitionNotPermittedError):
            await world.lifecycle().extend_deadline(
                project.id, world.client, world.clock() + timedelta(days=9), "More time"
            )

    async def test_not_after_delivery(self, world):
        project = await world.advance_to(ProjectStatus.DELIVERED)

        with pytest.raises(InvalidTransitionError):
            await world.lifecycle().extend_deadline(
                project.id, world.supervisor, world.clock() + timedelta(days=9), "Too late"
            )

    def test_auto_approve_time_counts_from_later_of_delivery_and_deadline(self):
        delivered = datetime(2026, 3, 2, 9, 0)
        deadline = delivered + timedelta(days=1)

        assert auto_approve_time(delivered, None, 72) == delivered + timedelta(hours=72)
        assert auto_approve_time(delivered, deadline, 72) == deadline + timedelta(hours=72)
        assert auto_approve_time(deadline, delivered, 72) == deadline + timedelta(hours=72)


class TestSettlementOverride:
    async def test_override_reprices_and_audits(self, world):
        project = await world.advance_to(ProjectStatus.PAID)

        project = await world.lifecycle().override_settlement(
            project.id, world.supervisor, Decimal("1200"), "Scope doubled"
        )

        assert project.client_quote == Decimal("1200.00")
        assert project.doer_payout == Decimal("780.00")
        assert project.supervisor_commission == Decimal("180.00")
        assert project.platform_fee == Decimal("240.00")
        entry = world.store.audit_logs[-1]
        assert entry.action == AuditAction.SETTLEMENT_OVERRIDE.value
        assert entry.changes["before"]["doer_payout"] == "650.00"
        assert entry.changes["after"]["doer_payout"] == "780.00"

    async def test_unpaid_project_cannot_be_repriced(self, world):
        project = await world.advance_to(ProjectStatus.QUOTED)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await world.lifecycle().override_settlement(
                project.id, world.supervisor, Decimal("1200"), "Scope doubled"
            )

        assert exc_info.value.reason_code == "not_paid"

    async def test_payouts_use_overridden_split(self, world):
        project = await world.advance_to(ProjectStatus.PAID)
        await world.lifecycle().override_settlement(
            project.id, world.supervisor, Decimal("2000"), "Rush surcharge agreed"
        )
        project = await world.advance_to(ProjectStatus.DELIVERED, world.project(project))

        await world.lifecycle().approve_delivery(project.id, world.client)

        amounts = sorted(p.amount for p in world.store.payouts_for(project.id))
        assert amounts == [Decimal("300.00"), Decimal("1300.00")]


class TestAtomicity:
    async def test_failed_commit_leaves_no_trace(self, world):
        project = await world.create_project()
        service = world.lifecycle()
        world.last_session.fail_on_commit = RuntimeError("connection lost")

        with pytest.raises(RuntimeError):
            await service.submit(project.id, world.client)

        assert world.project(project).status == ProjectStatus.DRAFT.value
        assert [row.to_status for row in world.store.history_for(project.id)] == ["draft"]
        assert world.last_session.rollbacks == 1
        assert not world.store.notifications

    async def test_chained_upload_rolls_back_together(self, world):
        project = await world.advance_to(ProjectStatus.ASSIGNED)
        service = world.lifecycle()
        world.last_session.fail_on_commit = RuntimeError("connection lost")

        with pytest.raises(RuntimeError):
            await service.add_deliverable(project.id, world.doer, "https://f/a.docx", "a.docx")

        assert world.project(project).status == ProjectStatus.ASSIGNED.value
        assert not world.store.deliverables
