from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from .base import BaseRepository, translate_store_errors
from duet.core.errors import DuplicateUsernameError
from duet.models.user import UserDB


class UserRepository(BaseRepository[UserDB]):
    def __init__(self):
        super().__init__(UserDB)

    @translate_store_errors
    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[UserDB]:
        """Get user by username"""
        result = await db.execute(
            self.select_live().where(UserDB.username == username)
        )
        return result.scalar_one_or_none()

    @translate_store_errors
    async def create_user(self, db: AsyncSession, username: str, hashed_password: str) -> UserDB:
        """Create a new user. The password must already be hashed."""
        user = UserDB(username=username, hashed_password=hashed_password)
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Unique constraint on username, lost a race with another signup
            await db.rollback()
            raise DuplicateUsernameError()
        await db.refresh(user)
        return user
