"""중복 이슈 병합 서비스.

Duplicate merge service: Folds independently reported issues that describe
the same real-world problem into one master issue, and proposes candidates
for such merges.

Merge steps (validation first, nothing is written until every check passes):
    1. actor must be staff                      -> ForbiddenError
    2. drop the master id from the duplicates   -> BadRequestError if empty
    3. load the master and the duplicates       -> StoreError("load_issues")
       master must exist                        -> NotFoundError
    4. master must not be closed                -> InvalidStateError
    5. at least one duplicate must exist        -> NotFoundError
    6. write combined notes/images to the master and close the duplicates
       in one transaction                       -> StoreError (names the step)
    7. append one audit entry                   (best-effort)
    8. notify affected reporters                (best-effort)
    9. return the refreshed master              -> StoreError("refresh_master",
                                                              committed=True)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.exc import NoResultFound, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.issue import OPEN_ISSUE_STATUSES, Issue, IssueStatus
from app.models.user import User
from app.repositories.issue_repository import issue_repository
from app.services.audit_service import AuditContext, audit_service
from app.services.notification_service import notification_service
from app.utils.exceptions import (
    BadRequestError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    StoreError,
)
from app.utils.issue_merge import (
    clean_duplicate_ids,
    collect_reporters,
    combine_images,
    combine_notes,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MergeResult:
    master_issue: Issue
    merged_count: int
    affected_reporters: list[UUID] = field(default_factory=list)
    merged_issue_ids: list[UUID] = field(default_factory=list)


class DuplicateMergeService:

    async def merge_issues(
        self,
        db: AsyncSession,
        actor: User,
        master_issue_id: UUID,
        duplicate_issue_ids: Sequence[UUID],
        merge_notes: str | None = None,
        audit_context: AuditContext | None = None,
    ) -> MergeResult:
        """중복 이슈를 마스터 이슈로 병합합니다.

        Merge ``duplicate_issue_ids`` into ``master_issue_id`` on behalf of ``actor``.

        The master update and the duplicate closures are committed together;
        audit and notification writes follow as best-effort steps and never
        turn a completed merge into a failure.

        Args:
            db: 비동기 DB 세션 (Async database session)
            actor: 병합 수행자 (Staff member performing the merge)
            master_issue_id: 마스터 이슈 ID (Issue that survives the merge)
            duplicate_issue_ids: 중복 이슈 ID 목록 (Issues to fold in and close)
            merge_notes: 운영자 메모 (Operator rationale, optional)
            audit_context: 요청 메타데이터 (Client ip/user agent for the audit row)

        Returns:
            MergeResult: 갱신된 마스터 이슈, 병합 수, 알림 대상 신고자

        Raises:
            ForbiddenError: actor is not staff
            BadRequestError: no duplicates left after removing the master id
            NotFoundError: master missing, or none of the duplicates exist
            InvalidStateError: master is closed
            StoreError: loading the issues, the master update, duplicate closure,
                commit, or the final reload of the master failed. Only the last
                one is raised after the merge was committed (``committed=True``).
        """
        if not actor.role.is_staff:
            raise ForbiddenError("Only staff can merge issues")

        duplicate_ids: list[UUID] = clean_duplicate_ids(master_issue_id, duplicate_issue_ids)
        if not duplicate_ids:
            raise BadRequestError("At least one duplicate issue is required")

        master, duplicates = await self._load_issues(db, master_issue_id, duplicate_ids)
        if master is None:
            raise NotFoundError("Master issue not found")
        if master.status == IssueStatus.closed:
            raise InvalidStateError("Cannot merge into a closed issue")
        if not duplicates:
            raise NotFoundError("No valid duplicate issues found")

        merged_ids: list[UUID] = [d.id for d in duplicates]
        if len(merged_ids) < len(duplicate_ids):
            logger.info(
                "Some duplicate issues were not found and are skipped",
                extra={
                    "master_issue_id": str(master.id),
                    "missing_issue_ids": [str(i) for i in duplicate_ids if i not in merged_ids],
                },
            )

        merged_at: datetime = datetime.now(timezone.utc)
        reporters: list[UUID] = collect_reporters(master, duplicates)
        combined_notes: str = combine_notes(master, duplicates, merged_at, merge_notes)
        combined_images: list[str] = combine_images(master, duplicates)

        await self._apply_merge(db, master, duplicates, combined_notes, combined_images, merged_at)

        logger.info(
            "Merged duplicate issues",
            extra={
                "actor_id": str(actor.id),
                "master_issue_id": str(master.id),
                "merged_issue_ids": [str(i) for i in merged_ids],
            },
        )

        # 이후 단계는 최선 노력: audit and notifications never fail the merge
        if not await audit_service.log_issue_merge(db, actor, master.id, merged_ids, audit_context):
            logger.warning("Merge audit entry was not recorded", extra={"master_issue_id": str(master.id)})

        if not await notification_service.notify_issue_merge(db, reporters, master):
            logger.warning("Merge notifications to reporters were not sent", extra={"master_issue_id": str(master.id)})
        if master.reported_by != actor.id:
            if not await notification_service.notify_master_reporter_merge(db, master, len(duplicates)):
                logger.warning("Merge notification to master reporter was not sent", extra={"master_issue_id": str(master.id)})

        master_id: UUID = master.id
        await self._commit_follow_ups(db, master_id)

        await self._refresh_master(db, master, master_id, merged_ids)
        return MergeResult(
            master_issue=master,
            merged_count=len(duplicates),
            affected_reporters=reporters,
            merged_issue_ids=merged_ids,
        )

    async def _load_issues(
        self,
        db: AsyncSession,
        master_issue_id: UUID,
        duplicate_ids: list[UUID],
    ) -> tuple[Issue | None, list[Issue]]:
        """마스터와 중복 이슈를 읽어옵니다 (Load the master and the duplicates that exist)."""
        try:
            master: Issue | None = await issue_repository.get_by_id(db, master_issue_id)
            duplicates: list[Issue] = await issue_repository.get_by_ids(db, duplicate_ids)
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(
                "Failed to load issues for merge",
                extra={
                    "master_issue_id": str(master_issue_id),
                    "duplicate_issue_ids": [str(i) for i in duplicate_ids],
                },
                exc_info=True,
            )
            raise StoreError("load_issues", exc.__class__.__name__, master_issue_id, duplicate_ids) from exc
        return master, duplicates

    async def _apply_merge(
        self,
        db: AsyncSession,
        master: Issue,
        duplicates: list[Issue],
        combined_notes: str,
        combined_images: list[str],
        merged_at: datetime,
    ) -> None:
        # 마스터 갱신이 먼저: duplicate notes are overwritten only after they are copied into the master
        # rollback expires every instance, so ids are read up front
        master_id: UUID = master.id
        duplicate_ids: list[UUID] = [d.id for d in duplicates]
        step: str = "update_master"
        try:
            updated: Issue | None = await issue_repository.update(
                db,
                master_id,
                {"notes": combined_notes, "images": combined_images, "updated_at": merged_at},
            )
            if updated is None:
                raise NoResultFound("Master issue no longer exists")

            step = "close_duplicates"
            await issue_repository.close_as_merged(db, duplicates, master_id, merged_at)

            step = "commit"
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(
                "Issue merge failed, changes rolled back",
                extra={
                    "step": step,
                    "master_issue_id": str(master_id),
                    "duplicate_issue_ids": [str(i) for i in duplicate_ids],
                },
                exc_info=True,
            )
            raise StoreError(step, exc.__class__.__name__, master_id, duplicate_ids) from exc

    async def _commit_follow_ups(self, db: AsyncSession, master_id: UUID) -> None:
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception(
                "Failed to commit merge audit/notification records",
                extra={"master_issue_id": str(master_id)},
            )

    async def _refresh_master(
        self, db: AsyncSession, master: Issue, master_id: UUID, merged_ids: list[UUID]
    ) -> None:
        # 병합은 이미 커밋됨: the error reports the committed state
        try:
            await db.refresh(master)
        except SQLAlchemyError as exc:
            logger.error(
                "Merge committed but the master issue could not be reloaded",
                extra={"master_issue_id": str(master_id), "merged_issue_ids": [str(i) for i in merged_ids]},
                exc_info=True,
            )
            raise StoreError(
                "refresh_master", exc.__class__.__name__, master_id, merged_ids, committed=True
            ) from exc

    async def find_potential_duplicates(
        self,
        db: AsyncSession,
        issue_id: UUID,
        limit: int = 5,
    ) -> Sequence[Issue]:
        """중복 후보 이슈를 찾습니다.

        Open issues in the same category and hostel as ``issue_id``, newest
        first. Advisory only: the list is for a human to review before merging.
        Matching is exact on category and hostel; titles and descriptions are
        not compared.

        Raises:
            NotFoundError: 기준 이슈 없음 (Reference issue does not exist)
        """
        issue: Issue | None = await issue_repository.get_by_id(db, issue_id)
        if issue is None:
            raise NotFoundError("Issue not found")

        return await issue_repository.find_similar(
            db,
            category=issue.category,
            hostel_name=issue.hostel_name,
            exclude_id=issue.id,
            statuses=OPEN_ISSUE_STATUSES,
            limit=limit,
        )


duplicate_merge_service: DuplicateMergeService = DuplicateMergeService()
