"""기본 CRUD 레포지토리 — 모든 레포지토리의 부모 클래스.

Base repository — Parent class for the cycle, assessment, competency,
plan and notification repositories. Repositories flush but never commit;
the route layer owns the transaction boundary.

Usage:
    class CycleRepository(BaseRepository[AssessmentCycle]):
        def __init__(self) -> None:
            super().__init__(AssessmentCycle)
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base

# 제네릭 타입 변수 — Generic type variable for a mapped model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """제네릭 레포지토리.

    Attributes:
        model: SQLAlchemy 모델 클래스 (The SQLAlchemy model class)
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    async def get_by_id(self, db: AsyncSession, record_id: UUID) -> ModelType | None:
        """ID로 단일 레코드를 조회합니다.

        Soft-deleted rows (models with a ``deleted_at`` column) are treated
        as missing, so a removed user or team never resolves.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            record_id: 조회할 레코드의 UUID (Record id)

        Returns:
            ModelType | None: 조회된 레코드 또는 None (Found record or None)
        """
        query: Select = select(self.model).where(self.model.id == record_id)
        if hasattr(self.model, "deleted_at"):
            query = query.where(self.model.deleted_at.is_(None))

        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_all(self, db: AsyncSession, order_by: Any | None = None) -> Sequence[ModelType]:
        query: Select = select(self.model)
        if order_by is not None:
            query = query.order_by(order_by)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_paginated(
        self,
        db: AsyncSession,
        query: Select,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[ModelType], int]:
        """페이지네이션이 적용된 레코드 목록을 조회합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            query: 필터/정렬이 적용된 SELECT 쿼리 (Filtered, ordered SELECT)
            page: 현재 페이지 번호, 1부터 시작 (1-based page number)
            per_page: 페이지당 레코드 수 (Records per page)

        Returns:
            tuple[Sequence[ModelType], int]: (레코드 목록, 전체 개수)
        """
        # 전체 카운트 — Total over the unpaginated query
        count_query: Select = select(func.count()).select_from(query.subquery())
        total: int = (await db.execute(count_query)).scalar() or 0

        offset: int = (max(page, 1) - 1) * per_page
        result = await db.execute(query.offset(offset).limit(per_page))
        return result.scalars().all(), total

    async def create(self, db: AsyncSession, obj_data: dict[str, Any]) -> ModelType:
        """새 레코드를 생성합니다 (flush만, 커밋 없음).

        Returns:
            ModelType: 생성된 레코드 (The created record, server defaults loaded)
        """
        db_obj: ModelType = self.model(**obj_data)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj
