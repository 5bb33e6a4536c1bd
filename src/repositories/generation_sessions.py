from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from src.models.generation_session import GenerationSession


class GenerationSessionsRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, **fields) -> GenerationSession:
        record = GenerationSession(**fields)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def get_by_id(self, session_id: UUID) -> Optional[GenerationSession]:
        stmt = (
            select(GenerationSession)
            .where(GenerationSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        return self.session.scalar(stmt)

    def list(
        self,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
    ) -> Tuple[List[GenerationSession], int]:
        stmt = select(GenerationSession).where(GenerationSession.user_id == user_id)
        if status:
            stmt = stmt.where(GenerationSession.status == status)

        total = self.session.scalar(
            select(func.count()).select_from(stmt.subquery())
        ) or 0

        stmt = (
            stmt.order_by(GenerationSession.created_at.desc(), GenerationSession.id)
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(self.session.scalars(stmt)), total

    def set_acceptance_counts(self, session_id: UUID, accepted: int, rejected: int) -> bool:
        """Record acceptance results once; later calls match no row."""
        stmt = (
            update(GenerationSession)
            .where(
                GenerationSession.id == session_id,
                GenerationSession.accepted_count == 0,
                GenerationSession.rejected_count == 0,
            )
            .values(accepted_count=accepted, rejected_count=rejected)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount == 1
