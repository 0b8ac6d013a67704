"""
User ORM model.

Represents engineers and admins who sign in to dcmaint.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from dcmaint.models.enums import CompanyType, UserRole
from dcmaint.models.orm.base import Base


class User(Base):
    """User database table."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True)
    name: Mapped[str | None] = mapped_column(String(255), default=None)
    hashed_password: Mapped[str | None] = mapped_column(String(1024), default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # Null until the first successful sign-in assigns it
    role: Mapped[UserRole | None] = mapped_column(String(32), default=None)
    company_type: Mapped[CompanyType] = mapped_column(String(32), default=CompanyType.NEUTRA)
    first_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )

    __table_args__ = (Index("ix_users_email", "email"),)
