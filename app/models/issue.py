"""이슈 관련 SQLAlchemy ORM 모델 정의.

Issue SQLAlchemy ORM model definitions.
An issue is a maintenance/cleanliness/security/food problem reported by a
resident and worked by staff until it is resolved or closed (directly or by
being merged into another issue).

Tables:
    - issues: 신고된 문제 (Reported problems with notes and image references)
"""

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Text, Enum, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


def _str_enum(enum_cls: type[enum.Enum]) -> Enum:
    # 문자열 값으로 저장: store the member value, not the member name
    return Enum(enum_cls, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e])


class IssueCategory(str, enum.Enum):
    maintenance = "maintenance"
    cleanliness = "cleanliness"
    security = "security"
    food = "food"
    other = "other"


class IssuePriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class IssueStatus(str, enum.Enum):
    """이슈 상태: pending → in_progress → resolved/closed.

    Only pending and in_progress count as open; closed is terminal for merges.
    """

    pending = "pending"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"


# 열린 상태: statuses an issue may have to be offered as a duplicate candidate
OPEN_ISSUE_STATUSES: tuple[IssueStatus, ...] = (IssueStatus.pending, IssueStatus.in_progress)


class Issue(Base):
    """이슈 모델: 거주자가 신고한 문제.

    Issue model: A problem reported by a resident.
    notes is an append-only thread by convention; images holds ordered,
    opaque storage references.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        title: 제목 (Short summary)
        description: 상세 설명 (Full description)
        category: 분류 (maintenance | cleanliness | security | food | other)
        priority: 우선순위 (low | medium | high | urgent)
        status: 상태 (pending | in_progress | resolved | closed)
        hostel_name: 기숙사 이름 (Hostel the issue is in)
        room_number: 호실 (Room number, optional)
        location: 세부 위치 (Free-text location, optional)
        images: 이미지 참조 목록 (Ordered image references)
        notes: 처리 메모 (Staff note thread)
        reported_by: 신고자 FK (Reporter user foreign key)
        assigned_to: 담당자 FK (Assigned staff member, optional)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
        resolved_at: 해결 일시 UTC (Set when resolved or closed)
    """

    __tablename__ = "issues"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[IssueCategory] = mapped_column(_str_enum(IssueCategory), nullable=False)
    priority: Mapped[IssuePriority] = mapped_column(_str_enum(IssuePriority), nullable=False, default=IssuePriority.medium)
    status: Mapped[IssueStatus] = mapped_column(_str_enum(IssueStatus), nullable=False, default=IssueStatus.pending)
    # 위치: Hostel/location fields; category + hostel_name drive duplicate search
    hostel_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    room_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 이미지 참조: Ordered list of storage references
    images: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    # 처리 메모: Staff note thread (append-only by convention)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reported_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_issues_status", "status"),
        Index("ix_issues_reported_by", "reported_by"),
        Index("ix_issues_category_hostel", "category", "hostel_name"),
    )
