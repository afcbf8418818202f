"""SQLAlchemy ORM 모델 패키지: 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package: Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
test schema creation.

Modules:
    user: 사용자 및 역할 (Users and the UserRole enum)
    issue: 이슈 (Issues with category/priority/status enums)
    audit_log: 감사 로그 (Append-only audit trail)
    notification: 알림 (User notifications)
"""

from app.models.user import User, UserRole
from app.models.issue import Issue, IssueCategory, IssuePriority, IssueStatus
from app.models.audit_log import AuditLog, AuditAction, AuditEntityType
from app.models.notification import Notification, NotificationType

__all__ = [
    "User", "UserRole",
    "Issue", "IssueCategory", "IssuePriority", "IssueStatus",
    "AuditLog", "AuditAction", "AuditEntityType",
    "Notification", "NotificationType",
]
