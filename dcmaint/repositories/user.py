"""
User Repository

Provides database operations for User model.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcmaint.models.enums import CompanyType, UserRole
from dcmaint.models.orm.user import User
from dcmaint.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    model = User

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email address (case-insensitive).

        Args:
            email: Email address to search for

        Returns:
            User or None if not found
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create_user(
        self,
        email: str,
        hashed_password: str | None = None,
        name: str | None = None,
        role: UserRole | None = None,
        company_type: CompanyType = CompanyType.NEUTRA,
    ) -> User:
        """
        Create a new user.

        The role is normally left empty so the first sign-in assigns it.
        """
        user = User(
            email=email.strip(),
            hashed_password=hashed_password,
            name=name,
            role=role,
            company_type=company_type,
        )
        return await self.create(user)

    async def list_users(self, limit: int = 100, offset: int = 0) -> tuple[list[User], int]:
        """
        List users ordered by email.

        Returns:
            Tuple of (users, total count)
        """
        total = (await self.session.execute(select(func.count(User.id)))).scalar() or 0
        result = await self.session.execute(
            select(User).order_by(User.email).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), total
