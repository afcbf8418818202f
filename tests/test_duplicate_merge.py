"""중복 이슈 병합 서비스 테스트.

Duplicate merge service tests: validation order, data combination,
duplicate closure, best-effort audit/notifications, and store failures.
"""

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditAction, AuditLog
from app.models.issue import Issue, IssueStatus
from app.models.notification import Notification
from app.repositories.audit_log_repository import audit_log_repository
from app.repositories.issue_repository import MERGED_POINTER_TEMPLATE, issue_repository
from app.repositories.notification_repository import notification_repository
from app.services.audit_service import AuditContext
from app.services.duplicate_merge_service import duplicate_merge_service
from app.utils.exceptions import (
    BadRequestError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    StoreError,
)


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar() or 0


async def _notifications_for(db: AsyncSession, user_id) -> list[Notification]:
    result = await db.execute(select(Notification).where(Notification.user_id == user_id))
    return list(result.scalars().all())


class TestMergeValidation:
    """병합 검증: 실패 시 쓰기 없음."""

    async def test_student_cannot_merge(self, db, student_user, make_issue):
        master = await make_issue(student_user)
        dup = await make_issue(student_user)
        with pytest.raises(ForbiddenError):
            await duplicate_merge_service.merge_issues(db, student_user, master.id, [dup.id])

    async def test_self_only_is_bad_request_with_no_writes(self, db, caretaker_user, student_user, make_issue):
        master = await make_issue(student_user, notes="leak started")

        with pytest.raises(BadRequestError) as exc_info:
            await duplicate_merge_service.merge_issues(db, caretaker_user, master.id, [master.id, master.id])

        assert exc_info.value.detail == "At least one duplicate issue is required"
        await db.refresh(master)
        assert master.notes == "leak started"
        assert master.status == IssueStatus.pending
        assert await _count(db, AuditLog) == 0
        assert await _count(db, Notification) == 0

    async def test_empty_list_is_bad_request(self, db, caretaker_user, student_user, make_issue):
        master = await make_issue(student_user)
        with pytest.raises(BadRequestError):
            await duplicate_merge_service.merge_issues(db, caretaker_user, master.id, [])

    async def test_missing_master_is_not_found(self, db, caretaker_user, student_user, make_issue):
        dup = await make_issue(student_user)
        with pytest.raises(NotFoundError) as exc_info:
            await duplicate_merge_service.merge_issues(db, caretaker_user, uuid.uuid4(), [dup.id])
        assert exc_info.value.detail == "Master issue not found"

    async def test_closed_master_is_invalid_state_with_no_writes(
        self, db, caretaker_user, student_user, other_student, make_issue
    ):
        master = await make_issue(student_user, status=IssueStatus.closed, notes="done")
        dup = await make_issue(other_student, notes="still leaking")

        with pytest.raises(InvalidStateError) as exc_info:
            await duplicate_merge_service.merge_issues(db, caretaker_user, master.id, [dup.id])

        assert exc_info.value.status_code == 400
        await db.refresh(master)
        await db.refresh(dup)
        assert master.notes == "done"
        assert dup.status == IssueStatus.pending
        assert dup.notes == "still leaking"
        assert await _count(db, AuditLog) == 0
        assert await _count(db, Notification) == 0

    async def test_no_existing_duplicates_is_not_found(self, db, caretaker_user, student_user, make_issue):
        master = await make_issue(student_user)
        with pytest.raises(NotFoundError) as exc_info:
            await duplicate_merge_service.merge_issues(
                db, caretaker_user, master.id, [uuid.uuid4(), uuid.uuid4()]
            )
        assert exc_info.value.detail == "No valid duplicate issues found"

    async def test_closed_master_checked_before_duplicates(self, db, caretaker_user, student_user, make_issue):
        master = await make_issue(student_user, status=IssueStatus.closed)
        with pytest.raises(InvalidStateError):
            await duplicate_merge_service.merge_issues(db, caretaker_user, master.id, [uuid.uuid4()])


class TestMergeScenarios:
    """병합 시나리오."""

    async def test_notes_combined_and_duplicates_closed(
        self, db, caretaker_user, student_user, other_student, third_student, make_issue
    ):
        master = await make_issue(student_user, title="Leak in 203", notes="leak started")
        d1 = await make_issue(other_student, title="Ceiling drip", notes="same leak, room 203")
        d2 = await make_issue(third_student, title="Wet corridor", notes="")

        result = await duplicate_merge_service.merge_issues(
            db, caretaker_user, master.id, [d1.id, d2.id], merge_notes="confirmed single leak"
        )

        notes = result.master_issue.notes
        assert notes.index("leak started") < notes.index("confirmed single leak")
        assert notes.index("confirmed single leak") < notes.index("same leak, room 203")
        assert notes.index("same leak, room 203") < notes.index("[Merge Summary]")
        assert "[Merge Notes - " in notes
        assert f'Issue "Ceiling drip" ({d1.id})' in notes
        assert f'Issue "Wet corridor"' not in notes
        assert str(d1.id) in notes.split("[Merge Summary]")[1]
        assert str(d2.id) in notes.split("[Merge Summary]")[1]

        assert result.merged_count == 2
        assert result.merged_issue_ids == [d1.id, d2.id]
        assert result.affected_reporters == [other_student.id, third_student.id]

        for dup in (d1, d2):
            await db.refresh(dup)
            assert dup.status == IssueStatus.closed
            assert dup.notes == MERGED_POINTER_TEMPLATE.format(master_id=master.id)

        await db.refresh(master)
        assert master.status == IssueStatus.pending
        assert master.title == "Leak in 203"

    async def test_images_combined_in_first_seen_order(self, db, caretaker_user, student_user, make_issue):
        master = await make_issue(student_user, images=["a", "b"])
        d3 = await make_issue(student_user, images=["b", "c"])
        d4 = await make_issue(student_user, images=["c", "d", "e", "f", "g", "h", "i"])

        result = await duplicate_merge_service.merge_issues(db, caretaker_user, master.id, [d3.id, d4.id])

        assert result.master_issue.images == ["a", "b", "c", "d", "e", "f", "g", "h", "i"]

    async def test_images_capped_at_ten(self, db, caretaker_user, student_user, make_issue):
        master = await make_issue(student_user, images=[f"m{i}" for i in range(5)])
        dup = await make_issue(student_user, images=[f"d{i}" for i in range(8)])

        result = await duplicate_merge_service.merge_issues(db, caretaker_user, master.id, [dup.id])

        assert len(result.master_issue.images) == 10
        assert result.master_issue.images[:5] == [f"m{i}" for i in range(5)]

    async def test_master_reporter_notified_once(
        self, db, caretaker_user, student_user, other_student, make_issue
    ):
        master = await make_issue(student_user, title="Broken window")
        own_dup = await make_issue(student_user)
        other_dup = await make_issue(other_student)

        result = await duplicate_merge_service.merge_issues(
            db, caretaker_user, master.id, [own_dup.id, other_dup.id]
        )

        assert student_user.id not in result.affected_reporters
        master_reporter_notes = await _notifications_for(db, student_user.id)
        assert len(master_reporter_notes) == 1
        assert master_reporter_notes[0].title == "Issues Merged Into Your Report"
        assert master_reporter_notes[0].message == (
            '2 duplicate issue(s) have been merged into your issue "Broken window".'
        )

        other_notes = await _notifications_for(db, other_student.id)
        assert len(other_notes) == 1
        assert other_notes[0].title == "Issue Merged"
        assert other_notes[0].reference_id == master.id

    async def test_actor_who_reported_master_gets_no_notification(
        self, db, caretaker_user, other_student, make_issue
    ):
        master = await make_issue(caretaker_user)
        dup = await make_issue(other_student)

        await duplicate_merge_service.merge_issues(db, caretaker_user, master.id, [dup.id])

        assert await _notifications_for(db, caretaker_user.id) == []
        assert len(await _notifications_for(db, other_student.id)) == 1

    async def test_master_id_in_duplicates_is_ignored(self, db, caretaker_user, student_user, make_issue):
        master = await make_issue(student_user)
        dup = await make_issue(student_user)

        result = await duplicate_merge_service.merge_issues(
            db, caretaker_user, master.id, [master.id, dup.id, dup.id]
        )

        assert result.merged_count == 1
        await db.refresh(master)
        assert master.status == IssueStatus.pending

    async def test_missing_duplicates_are_skipped(self, db, caretaker_user, student_user, make_issue):
        master = await make_issue(student_user)
        dup = await make_issue(student_user)

        result = await duplicate_merge_service.merge_issues(
            db, caretaker_user, master.id, [uuid.uuid4(), dup.id]
        )

        assert result.merged_issue_ids == [dup.id]

    async def test_merge_is_audited(self, db, admin_user, student_user, make_issue):
        master = await make_issue(student_user)
        d1 = await make_issue(student_user)
        d2 = await make_issue(student_user)

        await duplicate_merge_service.merge_issues(
            db, admin_user, master.id, [d1.id, d2.id],
            audit_context=AuditContext(ip_address="10.0.0.7", user_agent="pytest"),
        )

        logs = (await db.execute(select(AuditLog))).scalars().all()
        assert len(logs) == 1
        assert logs[0].action == AuditAction.merge
        assert logs[0].entity_id == master.id
        assert logs[0].user_id == admin_user.id
        assert logs[0].new_data == {"merged_issue_ids": [str(d1.id), str(d2.id)]}
        assert logs[0].ip_address == "10.0.0.7"


class TestBestEffortSideEffects:
    """감사/알림 실패는 병합을 실패시키지 않습니다."""

    async def test_audit_failure_does_not_fail_merge(
        self, db, caretaker_user, student_user, other_student, make_issue, monkeypatch
    ):
        async def _broken_append(*args, **kwargs):
            raise SQLAlchemyError("audit store down")

        monkeypatch.setattr(audit_log_repository, "append", _broken_append)
        master = await make_issue(student_user)
        dup = await make_issue(other_student)

        result = await duplicate_merge_service.merge_issues(db, caretaker_user, master.id, [dup.id])

        assert result.merged_count == 1
        await db.refresh(dup)
        assert dup.status == IssueStatus.closed
        assert await _count(db, AuditLog) == 0
        assert len(await _notifications_for(db, other_student.id)) == 1

    async def test_notification_failure_does_not_fail_merge(
        self, db, caretaker_user, student_user, other_student, make_issue, monkeypatch
    ):
        async def _broken_create_many(*args, **kwargs):
            raise SQLAlchemyError("notification store down")

        monkeypatch.setattr(notification_repository, "create_many", _broken_create_many)
        master = await make_issue(student_user)
        dup = await make_issue(other_student)

        result = await duplicate_merge_service.merge_issues(db, caretaker_user, master.id, [dup.id])

        assert result.merged_count == 1
        assert "[Merge Summary]" in result.master_issue.notes
        assert await _count(db, Notification) == 0
        assert await _count(db, AuditLog) == 1


class TestStoreFailure:
    """저장 실패: 롤백 후 StoreError."""

    async def test_closure_failure_rolls_back_master_update(
        self, db, caretaker_user, student_user, other_student, make_issue, monkeypatch
    ):
        async def _broken_close(*args, **kwargs):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(issue_repository, "close_as_merged", _broken_close)
        master = await make_issue(student_user, notes="leak started", images=["a"])
        dup = await make_issue(other_student, notes="me too", images=["b"])
        master_id, dup_id = master.id, dup.id

        with pytest.raises(StoreError) as exc_info:
            await duplicate_merge_service.merge_issues(db, caretaker_user, master_id, [dup_id])

        err = exc_info.value
        assert err.status_code == 500
        assert err.step == "close_duplicates"
        assert err.detail["master_issue_id"] == str(master_id)
        assert err.detail["duplicate_issue_ids"] == [str(dup_id)]

        stored_master = await db.get(Issue, master_id)
        stored_dup = await db.get(Issue, dup_id)
        assert stored_master.notes == "leak started"
        assert stored_master.images == ["a"]
        assert stored_dup.status == IssueStatus.pending
        assert await _count(db, AuditLog) == 0
        assert await _count(db, Notification) == 0

    async def test_read_failure_is_store_error(
        self, db, caretaker_user, student_user, other_student, make_issue, monkeypatch
    ):
        """이슈 조회 실패도 StoreError(load_issues)."""
        async def _broken_get_by_ids(*args, **kwargs):
            raise SQLAlchemyError("read down")

        monkeypatch.setattr(issue_repository, "get_by_ids", _broken_get_by_ids)
        master = await make_issue(student_user)
        dup = await make_issue(other_student)
        master_id, dup_id = master.id, dup.id

        with pytest.raises(StoreError) as exc_info:
            await duplicate_merge_service.merge_issues(db, caretaker_user, master_id, [dup_id])

        err = exc_info.value
        assert err.status_code == 500
        assert err.step == "load_issues"
        assert err.committed is False
        assert err.detail["master_issue_id"] == str(master_id)
        assert err.detail["duplicate_issue_ids"] == [str(dup_id)]
        assert await _count(db, AuditLog) == 0

    async def test_master_update_failure_leaves_duplicates_open(
        self, db, caretaker_user, student_user, other_student, make_issue, monkeypatch
    ):
        async def _broken_update(*args, **kwargs):
            raise SQLAlchemyError("write refused")

        monkeypatch.setattr(issue_repository, "update", _broken_update)
        master = await make_issue(student_user, notes="leak started")
        dup = await make_issue(other_student)
        master_id, dup_id = master.id, dup.id

        with pytest.raises(StoreError) as exc_info:
            await duplicate_merge_service.merge_issues(db, caretaker_user, master_id, [dup_id])

        assert exc_info.value.step == "update_master"
        stored_dup = await db.get(Issue, dup_id)
        assert stored_dup.status == IssueStatus.pending
        assert stored_dup.notes is None

    async def test_reload_failure_reports_committed_merge(
        self, db, caretaker_user, student_user, other_student, make_issue, monkeypatch
    ):
        """커밋 후 마스터 재조회 실패: committed=True로 보고."""
        async def _broken_refresh(*args, **kwargs):
            raise SQLAlchemyError("connection lost")

        commit_follow_ups = duplicate_merge_service._commit_follow_ups

        async def _commit_then_break_refresh(session, master_id):
            await commit_follow_ups(session, master_id)
            monkeypatch.setattr(session, "refresh", _broken_refresh)

        monkeypatch.setattr(duplicate_merge_service, "_commit_follow_ups", _commit_then_break_refresh)
        master = await make_issue(student_user)
        dup = await make_issue(other_student)
        master_id, dup_id = master.id, dup.id

        with pytest.raises(StoreError) as exc_info:
            await duplicate_merge_service.merge_issues(db, caretaker_user, master_id, [dup_id])

        err = exc_info.value
        assert err.step == "refresh_master"
        assert err.committed is True
        assert err.detail["committed"] is True
        assert err.detail["duplicate_issue_ids"] == [str(dup_id)]

        dup_status = (await db.execute(select(Issue.status).where(Issue.id == dup_id))).scalar_one()
        assert dup_status == IssueStatus.closed
        assert await _count(db, AuditLog) == 1


class TestFindPotentialDuplicates:
    """중복 후보 검색."""

    async def test_same_category_and_hostel_open_only_newest_first(
        self, db, student_user, make_issue
    ):
        from app.models.issue import IssueCategory

        ref = await make_issue(student_user)
        older = await make_issue(student_user, status=IssueStatus.in_progress)
        await make_issue(student_user, status=IssueStatus.resolved)
        await make_issue(student_user, status=IssueStatus.closed)
        await make_issue(student_user, category=IssueCategory.food)
        await make_issue(student_user, hostel_name="Block B")
        newer = await make_issue(student_user)

        candidates = await duplicate_merge_service.find_potential_duplicates(db, ref.id)

        assert [c.id for c in candidates] == [newer.id, older.id]

    async def test_respects_limit(self, db, student_user, make_issue):
        ref = await make_issue(student_user)
        for _ in range(4):
            await make_issue(student_user)

        candidates = await duplicate_merge_service.find_potential_duplicates(db, ref.id, limit=2)

        assert len(candidates) == 2
        assert ref.id not in [c.id for c in candidates]

    async def test_null_hostel_matches_null(self, db, student_user, make_issue):
        ref = await make_issue(student_user, hostel_name=None)
        match = await make_issue(student_user, hostel_name=None)
        await make_issue(student_user, hostel_name="Block A")

        candidates = await duplicate_merge_service.find_potential_duplicates(db, ref.id)

        assert [c.id for c in candidates] == [match.id]

    async def test_unknown_issue_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            await duplicate_merge_service.find_potential_duplicates(db, uuid.uuid4())
