"""이슈 서비스.

Issue service: Business logic for the issue lifecycle around merges:
create, list, view, assign, and status updates. Audit and notification
side effects are best-effort and run after the primary write is flushed.
"""

from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.issue import Issue, IssueCategory, IssuePriority, IssueStatus
from app.models.user import User, UserRole
from app.repositories.issue_repository import issue_repository
from app.repositories.user_repository import user_repository
from app.schemas.issue import IssueAssign, IssueCreate, IssueStatusUpdate
from app.services.audit_service import AuditContext, audit_service
from app.services.notification_service import notification_service
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError

# 알림 대상 우선순위: priorities that page the caretakers on creation
_ALERT_PRIORITIES: tuple[IssuePriority, ...] = (IssuePriority.high, IssuePriority.urgent)


def _append_note(existing: str | None, label: str, text: str) -> str:
    block: str = f"[{label} - {datetime.now(timezone.utc).isoformat()}]\n{text}"
    return f"{existing}\n\n{block}" if existing else block


class IssueService:

    async def build_response(self, db: AsyncSession, issue: Issue) -> dict:
        names: dict[UUID, str] = await user_repository.get_names(
            db, [issue.reported_by, issue.assigned_to]
        )
        return {
            "id": str(issue.id),
            "title": issue.title,
            "description": issue.description,
            "category": issue.category,
            "priority": issue.priority,
            "status": issue.status,
            "hostel_name": issue.hostel_name,
            "room_number": issue.room_number,
            "location": issue.location,
            "images": list(issue.images or []),
            "notes": issue.notes,
            "reported_by": str(issue.reported_by),
            "reported_by_name": names.get(issue.reported_by, "Unknown"),
            "assigned_to": str(issue.assigned_to) if issue.assigned_to else None,
            "assigned_to_name": names.get(issue.assigned_to) if issue.assigned_to else None,
            "created_at": issue.created_at,
            "updated_at": issue.updated_at,
            "resolved_at": issue.resolved_at,
        }

    # --- App (신고자용) ---

    async def create_issue(
        self,
        db: AsyncSession,
        reporter: User,
        data: IssueCreate,
        context: AuditContext | None = None,
    ) -> Issue:
        """이슈를 생성합니다.

        Create an issue for ``reporter``. Hostel and room fall back to the
        reporter's profile. High and urgent issues alert every active caretaker.
        """
        issue: Issue = await issue_repository.create(
            db,
            {
                "title": data.title,
                "description": data.description,
                "category": data.category,
                "priority": data.priority,
                "hostel_name": data.hostel_name or reporter.hostel_name,
                "room_number": data.room_number or reporter.room_number,
                "location": data.location,
                "images": list(data.images),
                "reported_by": reporter.id,
            },
        )

        await audit_service.log_issue_create(
            db,
            reporter,
            issue.id,
            {
                "title": issue.title,
                "category": issue.category.value,
                "priority": issue.priority.value,
                "hostel_name": issue.hostel_name,
            },
            context,
        )

        if issue.priority in _ALERT_PRIORITIES:
            caretaker_ids: list[UUID] = await user_repository.get_active_ids_by_role(
                db, UserRole.caretaker
            )
            await notification_service.notify_new_issue(db, caretaker_ids, issue)

        return issue

    async def list_for_reporter(
        self,
        db: AsyncSession,
        reporter_id: UUID,
        status: IssueStatus | None = None,
        category: IssueCategory | None = None,
        priority: IssuePriority | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Issue], int]:
        return await issue_repository.get_by_reporter(
            db, reporter_id, status, category, priority, page, per_page
        )

    # --- 공통 / Admin ---

    async def list_issues(
        self,
        db: AsyncSession,
        status: IssueStatus | None = None,
        category: IssueCategory | None = None,
        priority: IssuePriority | None = None,
        hostel_name: str | None = None,
        assigned_to: str | None = None,
        search: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Issue], int]:
        """이슈 목록을 필터링하여 조회합니다.

        ``assigned_to`` accepts a user UUID or the literal ``"unassigned"``.
        """
        unassigned: bool = assigned_to == "unassigned"
        assignee_id: UUID | None = None
        if assigned_to and not unassigned:
            try:
                assignee_id = UUID(assigned_to)
            except ValueError:
                raise BadRequestError("assigned_to must be a user id or 'unassigned'") from None

        return await issue_repository.get_filtered(
            db,
            status=status,
            category=category,
            priority=priority,
            hostel_name=hostel_name,
            assigned_to=assignee_id,
            unassigned=unassigned,
            search=search,
            page=page,
            per_page=per_page,
        )

    async def get_issue(
        self,
        db: AsyncSession,
        issue_id: UUID,
        viewer: User,
    ) -> Issue:
        """이슈 상세 조회. 학생은 본인 이슈만 (Students may only view their own issues)."""
        issue: Issue | None = await issue_repository.get_by_id(db, issue_id)
        if issue is None:
            raise NotFoundError("Issue not found")
        if not viewer.role.is_staff and issue.reported_by != viewer.id:
            raise ForbiddenError("You can only view your own issues")
        return issue

    async def assign_issue(
        self,
        db: AsyncSession,
        issue_id: UUID,
        data: IssueAssign,
        actor: User,
        context: AuditContext | None = None,
    ) -> Issue:
        """이슈 담당자 지정.

        Assign ``issue_id`` to a staff member. A pending issue moves to
        in_progress; an optional note is appended to the thread.

        Raises:
            NotFoundError: 이슈 또는 담당자 없음 (Issue or assignee missing)
            BadRequestError: 담당자가 직원이 아님 (Assignee is not staff)
        """
        issue: Issue | None = await issue_repository.get_by_id(db, issue_id)
        if issue is None:
            raise NotFoundError("Issue not found")

        assignee: User | None = await user_repository.get_by_id(db, data.assigned_to)
        if assignee is None or not assignee.is_active:
            raise NotFoundError("Assignee not found")
        if not assignee.role.is_staff:
            raise BadRequestError("Issues can only be assigned to caretakers or admins")

        old_assignee: UUID | None = issue.assigned_to
        issue.assigned_to = assignee.id
        if issue.status == IssueStatus.pending:
            issue.status = IssueStatus.in_progress
        if data.notes:
            issue.notes = _append_note(issue.notes, "Assignment", data.notes)
        await db.flush()
        await db.refresh(issue)

        await audit_service.log_issue_assign(db, actor, issue.id, old_assignee, assignee.id, context)
        await notification_service.notify_issue_assignment(db, assignee.id, issue)
        if issue.reported_by != actor.id:
            await notification_service.notify_reporter_assigned(db, issue, assignee.full_name)

        return issue

    async def update_status(
        self,
        db: AsyncSession,
        issue_id: UUID,
        data: IssueStatusUpdate,
        actor: User,
        context: AuditContext | None = None,
    ) -> Issue:
        """이슈 상태 변경. resolved/closed 시 resolved_at 기록."""
        issue: Issue | None = await issue_repository.get_by_id(db, issue_id)
        if issue is None:
            raise NotFoundError("Issue not found")

        old_status: IssueStatus = issue.status
        issue.status = data.status
        if data.status in (IssueStatus.resolved, IssueStatus.closed):
            issue.resolved_at = datetime.now(timezone.utc)
        if data.notes:
            issue.notes = _append_note(issue.notes, "Status Update", data.notes)
        await db.flush()
        await db.refresh(issue)

        await audit_service.log_issue_status_update(
            db, actor, issue.id, old_status.value, data.status.value, data.notes, context
        )
        if issue.reported_by != actor.id:
            await notification_service.notify_issue_status_change(db, issue, data.status.value)

        return issue


issue_service: IssueService = IssueService()
