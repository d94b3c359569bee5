import functools
import logging
from typing import TypeVar, Generic, Type, Optional, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, Select
from sqlalchemy.exc import SQLAlchemyError
from duet.core.errors import StoreError
from duet.models.base import Base

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=Base)


def translate_store_errors(func):
    """Roll back and re-raise SQLAlchemy failures as an opaque StoreError"""
    @functools.wraps(func)
    async def wrapper(self, db: AsyncSession, *args: Any, **kwargs: Any):
        try:
            return await func(self, db, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"{type(self).__name__}.{func.__name__} failed: {e}", exc_info=True)
            await db.rollback()
            raise StoreError() from e
    return wrapper


class BaseRepository(Generic[T]):
    def __init__(self, model_class: Type[T]):
        self.model_class = model_class

    def select_live(self) -> Select:
        """SELECT over rows that are not soft-deleted"""
        stmt = select(self.model_class)
        if hasattr(self.model_class, "deleted_at"):
            stmt = stmt.where(self.model_class.deleted_at.is_(None))
        return stmt

    @translate_store_errors
    async def get_by_id(self, db: AsyncSession, id: Any) -> Optional[T]:
        """Get record by ID"""
        result = await db.execute(self.select_live().where(self.model_class.id == id))
        return result.scalar_one_or_none()
