"""User ORM model for JWT bearer authentication.

Identity itself is issued elsewhere; this table records the role and the
approval flag that gate access.  Admins are always treated as approved.
"""

from __future__ import annotations

from sqlalchemy import Enum, String, text
from sqlalchemy.orm import Mapped, mapped_column

from croplog.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from croplog.models.enums import UserRoleEnum


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Application user, authenticated via JWT bearer token."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    role: Mapped[UserRoleEnum] = mapped_column(
        Enum(
            UserRoleEnum,
            name="user_role",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=UserRoleEnum.member,
        server_default="member",
    )
    is_approved: Mapped[bool] = mapped_column(
        default=False,
        server_default=text("false"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        default=True,
        server_default=text("true"),
        nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRoleEnum.admin

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"
