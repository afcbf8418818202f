"""알림 관련 SQLAlchemy ORM 모델 정의.

Notification SQLAlchemy ORM model definitions.
Implements a polymorphic notification system where each notification
can reference different entity types via reference_type and reference_id.

Tables:
    - notifications: 사용자 알림 (User notifications with polymorphic references)
"""

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Enum, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class NotificationType(str, enum.Enum):
    issue = "issue"
    announcement = "announcement"
    lost_found = "lost_found"
    system = "system"
    approval = "approval"


class Notification(Base):
    """알림 모델: 사용자에게 전달되는 시스템 알림.

    Notification model: System notifications delivered to users.
    Uses a polymorphic reference pattern (reference_type + reference_id)
    to link back to the record that triggered the notification.

    Reference Types (reference_type 필드 값):
        - "issue": Issue 참조 (Links to issues table; for merges this is the master issue)

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        user_id: 수신자 FK (Recipient user foreign key)
        title: 알림 제목 (Short headline)
        message: 알림 메시지 (Human-readable notification message)
        type: 알림 유형 (issue | announcement | lost_found | system | approval)
        reference_type: 참조 엔티티 유형 (Referenced entity type)
        reference_id: 참조 엔티티 ID (Referenced entity UUID)
        is_read: 읽음 여부 (Whether the user has read this notification)
        read_at: 읽은 일시 (When it was marked read)
        created_at: 생성 일시 UTC (Creation timestamp)
    """

    __tablename__ = "notifications"

    # 알림 고유 식별자: Notification unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 수신자 FK: Target user who receives this notification
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # 알림 제목/메시지: Headline and body shown to the user
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
    # 알림 유형: Notification type
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    # 참조 엔티티: Polymorphic reference to the source record
    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    # 읽음 여부: False=미읽음, True=읽음 (Unread by default)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # 생성 일시: Notification creation timestamp (UTC, immutable)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_notifications_user_id", "user_id"),
    )
