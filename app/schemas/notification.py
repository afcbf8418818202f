"""알림 Pydantic 스키마.

Notification request schemas.
"""

from uuid import UUID

from pydantic import BaseModel, Field


class MarkReadRequest(BaseModel):
    notification_ids: list[UUID] = Field(..., min_length=1)  # 읽음 처리할 알림 (At least one id)
