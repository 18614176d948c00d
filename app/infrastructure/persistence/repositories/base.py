"""Base repository: generic create/update and tenant-scoped lookup."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import object_session

from app.infrastructure.persistence.database import Base, is_postgres


class BaseRepository[ModelType: Base]:
    """Base repository with tenant-scoped get, create, and update.

    Subclasses map ORM rows to application DTOs; ORM objects do not leave
    the repository.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    @property
    def supports_row_locks(self) -> bool:
        """True when FOR UPDATE / SKIP LOCKED are available (PostgreSQL)."""
        return is_postgres(self.db)

    async def _get_entity(
        self,
        entity_id: str,
        tenant_id: str | None = None,
        *,
        for_update: bool = False,
    ) -> ModelType | None:
        """Return the ORM row by primary key (and tenant when given), freshly loaded."""
        model: Any = self.model
        q = select(self.model).where(model.id == entity_id)
        if tenant_id is not None:
            q = q.where(model.tenant_id == tenant_id)
        if for_update and self.supports_row_locks:
            q = q.with_for_update()
        q = q.execution_options(populate_existing=True)
        result = await self.db.execute(q)
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record and reload server defaults."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """Flush changes on an attached record and reload server-side values."""
        if object_session(obj) is not self.db.sync_session:
            obj = await self.db.merge(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj
