"""사용자 관련 SQLAlchemy ORM 모델 정의.

User SQLAlchemy ORM model definitions.
Accounts are provisioned by the hostel auth provider; this service reads them
to resolve the acting user, issue reporters, and assignees.

Tables:
    - users: 사용자 계정 (Student, caretaker, and admin accounts)
"""

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Enum, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class UserRole(str, enum.Enum):
    """사용자 역할: 닫힌 열거형.

    Closed set of account roles. Caretakers and admins form the staff
    group that may manage issues; students only report them.
    """

    student = "student"
    caretaker = "caretaker"
    admin = "admin"

    @property
    def is_staff(self) -> bool:
        """이슈 관리 권한 여부 (Whether this role may manage issues)."""
        return self in (UserRole.caretaker, UserRole.admin)


class User(Base):
    """사용자 모델: 시스템 사용자 계정 정보.

    User model: System user account information.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        email: 이메일 (Email address)
        full_name: 실명 (Full display name)
        role: 역할 (student | caretaker | admin)
        hostel_name: 소속 기숙사 (Hostel the user lives in or looks after, optional)
        room_number: 호실 (Room number, students only)
        is_active: 활성 상태 (Active status, soft-delete pattern)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자: User unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 이메일: Login email (unique)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    # 실명: User's full display name
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 역할: Role stored as its string value
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.student,
    )
    # 기숙사/호실: Default location for issues this user reports
    hostel_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    room_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    # 활성 상태: Whether the user account is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # 생성 일시: Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시: Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
