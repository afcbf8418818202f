"""감사 로그 SQLAlchemy ORM 모델 정의.

Audit log SQLAlchemy ORM model definitions.
Append-only trail of who did what to which record. Rows are inserted once
and never updated or deleted.

Tables:
    - audit_logs: 감사 로그 (Actor, action, entity, before/after payloads)
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import String, DateTime, Enum, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class AuditAction(str, enum.Enum):
    create = "create"
    update = "update"
    delete = "delete"
    approve = "approve"
    reject = "reject"
    assign = "assign"
    merge = "merge"


class AuditEntityType(str, enum.Enum):
    issue = "issue"
    announcement = "announcement"
    lost_found = "lost_found"
    user = "user"
    resident = "resident"
    notification = "notification"


class AuditLog(Base):
    """감사 로그 모델: 변경 불가 기록.

    Immutable audit record.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        user_id: 수행자 FK (Acting user)
        action: 작업 종류 (create | update | delete | approve | reject | assign | merge)
        entity_type: 대상 엔티티 유형 (Entity type acted upon)
        entity_id: 대상 엔티티 ID (Entity identifier)
        old_data: 변경 전 데이터 (State before the action, optional)
        new_data: 변경 후 데이터 (State after the action, optional)
        ip_address: 요청 IP (Client address, optional)
        user_agent: 요청 User-Agent (Client user agent, optional)
        created_at: 기록 일시 UTC (When the action happened)
    """

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    entity_type: Mapped[AuditEntityType] = mapped_column(
        Enum(AuditEntityType, native_enum=False, length=30, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    old_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    new_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        Index("ix_audit_logs_user_id", "user_id"),
    )
