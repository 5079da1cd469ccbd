"""
User and shop permission models.

Non-admin users only see orders of the shops they were granted.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ordercrm.db.base import Base, BaseModel, IntegerIDMixin, utc_now


class UserRole(str, Enum):
    """User roles."""

    ADMIN = "admin"
    OPERATOR = "operator"
    TRACKER = "tracker"
    DESIGNER = "designer"


class UserStatus(str, Enum):
    """Account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(BaseModel):
    """User model with role and profile information."""

    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.OPERATOR.value,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=UserStatus.ACTIVE.value,
        nullable=False,
    )

    # Profile
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)

    shop_permissions: Mapped[list["UserShopPermission"]] = relationship(
        "UserShopPermission",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def shop_names(self) -> list[str]:
        return sorted(p.shop_name for p in self.shop_permissions)


class UserShopPermission(Base, IntegerIDMixin):
    """Grants one user access to the orders of one shop."""

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    shop_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="shop_permissions",
    )

    __table_args__ = (UniqueConstraint("user_id", "shop_name", name="uq_user_shop"),)

    def __repr__(self) -> str:
        return f"<UserShopPermission {self.user_id}:{self.shop_name}>"
