"""기본 CRUD 레포지토리: 모든 레포지토리의 부모 클래스.

Base CRUD Repository: Parent class for all domain repositories.
Provides generic Create, Read, Update operations and pagination.

Usage:
    class IssueRepository(BaseRepository[Issue]):
        def __init__(self) -> None:
            super().__init__(Issue)
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base

# 제네릭 타입 변수: SQLAlchemy 모델을 나타냄
# Generic type variable representing a SQLAlchemy model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """제네릭 CRUD 레포지토리.

    Generic CRUD repository providing common database operations.
    Repositories only flush; committing is left to the caller.

    Attributes:
        model: SQLAlchemy 모델 클래스 (The SQLAlchemy model class)
    """

    def __init__(self, model: type[ModelType]) -> None:
        """레포지토리를 초기화합니다.

        Initialize the repository with a model class.

        Args:
            model: 이 레포지토리가 관리할 SQLAlchemy 모델 클래스
                   (SQLAlchemy model class this repository manages)
        """
        self.model: type[ModelType] = model

    async def get_by_id(
        self,
        db: AsyncSession,
        record_id: UUID,
    ) -> ModelType | None:
        """ID로 단일 레코드를 조회합니다.

        Retrieve a single record by its UUID.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            record_id: 조회할 레코드의 UUID (UUID of the record to retrieve)

        Returns:
            ModelType | None: 조회된 레코드 또는 None (Found record or None)
        """
        result = await db.execute(select(self.model).where(self.model.id == record_id))
        return result.scalar_one_or_none()

    async def get_by_ids(
        self,
        db: AsyncSession,
        record_ids: Sequence[UUID],
    ) -> list[ModelType]:
        """여러 ID로 레코드를 조회합니다: 없는 ID는 건너뜁니다.

        Retrieve the records whose ids are in ``record_ids``.
        Missing ids are skipped; results follow the order of ``record_ids``.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            record_ids: 조회할 UUID 목록 (UUIDs to retrieve)

        Returns:
            list[ModelType]: 찾은 레코드 목록 (Records that exist, in request order)
        """
        if not record_ids:
            return []
        result = await db.execute(select(self.model).where(self.model.id.in_(record_ids)))
        found: dict[UUID, ModelType] = {row.id: row for row in result.scalars().all()}
        return [found[rid] for rid in record_ids if rid in found]

    async def get_paginated(
        self,
        db: AsyncSession,
        query: Select,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[ModelType], int]:
        """페이지네이션이 적용된 레코드 목록을 조회합니다.

        Retrieve a paginated list of records.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            query: 기본 SELECT 쿼리 (Base SELECT query)
            page: 현재 페이지 번호, 1부터 시작 (Current page number, 1-based)
            per_page: 페이지당 레코드 수 (Number of records per page)

        Returns:
            tuple[Sequence[ModelType], int]: (레코드 목록, 전체 개수)
                                             (List of records, total count)
        """
        # 전체 카운트 쿼리: Total count query
        count_query: Select = select(func.count()).select_from(query.subquery())
        total: int = (await db.execute(count_query)).scalar() or 0

        # 오프셋 계산 및 페이지 적용: Calculate offset and apply pagination
        offset: int = (page - 1) * per_page
        result = await db.execute(query.offset(offset).limit(per_page))
        items: Sequence[ModelType] = result.scalars().all()

        return items, total

    async def create(
        self,
        db: AsyncSession,
        obj_data: dict[str, Any],
    ) -> ModelType:
        """새 레코드를 생성합니다.

        Create a new record in the database.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            obj_data: 생성할 레코드의 데이터 딕셔너리
                      (Dictionary of data for the new record)

        Returns:
            ModelType: 생성된 레코드 (The created record)
        """
        db_obj: ModelType = self.model(**obj_data)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        record_id: UUID,
        update_data: dict[str, Any],
    ) -> ModelType | None:
        """기존 레코드를 업데이트합니다.

        Update an existing record by its UUID.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            record_id: 업데이트할 레코드의 UUID (UUID of the record to update)
            update_data: 업데이트할 필드와 값의 딕셔너리
                         (Dictionary of fields and values to update)

        Returns:
            ModelType | None: 업데이트된 레코드 또는 None (Updated record or None)
        """
        db_obj: ModelType | None = await self.get_by_id(db, record_id)
        if db_obj is None:
            return None

        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await db.flush()
        await db.refresh(db_obj)
        return db_obj
