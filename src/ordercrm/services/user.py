"""User administration service."""

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ordercrm.core.exceptions import DuplicateError, ValidationError
from ordercrm.core.logging import LoggerMixin
from ordercrm.models.user import User, UserShopPermission
from ordercrm.schemas.user import UserCreate, UserUpdate
from ordercrm.services.permission import PermissionService, clean_shop_names


class UserService(LoggerMixin):
    """Service for user operations. Every operation requires an admin."""

    def __init__(self, permissions: Optional[PermissionService] = None) -> None:
        self.permissions = permissions or PermissionService()

    async def create_user(
        self,
        db: AsyncSession,
        admin_id: int,
        user_data: UserCreate,
    ) -> User:
        """Create a user with its shop permissions.

        Raises:
            PermissionDeniedError: If caller is not an admin
            DuplicateError: If username or email is taken

        """
        await self.permissions.require_admin(db, admin_id)
        await self._check_unique(db, user_data.username, user_data.email)

        user = User(
            username=user_data.username,
            email=user_data.email,
            role=user_data.role.value,
            status=user_data.status.value,
            phone=user_data.phone,
            department=user_data.department,
            position=user_data.position,
            shop_permissions=[
                UserShopPermission(shop_name=shop) for shop in clean_shop_names(user_data.shops)
            ],
        )
        db.add(user)
        await db.flush()

        self.logger.info("User created", extra={"username": user.username, "role": user.role})
        return user

    async def get_user(self, db: AsyncSession, admin_id: int, user_id: int) -> User:
        """Get a user with its shop permissions."""
        await self.permissions.require_admin(db, admin_id)
        return await self.permissions.get_user(db, user_id)

    async def list_users(self, db: AsyncSession, admin_id: int) -> list[User]:
        """All users with their shop permissions, newest first."""
        await self.permissions.require_admin(db, admin_id)
        result = await db.execute(
            select(User)
            .order_by(User.created_at.desc(), User.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def update_user(
        self,
        db: AsyncSession,
        admin_id: int,
        user_id: int,
        user_data: UserUpdate,
    ) -> User:
        """Update a user. ``shops``, when given, replaces the granted shops.

        Raises:
            PermissionDeniedError: If caller is not an admin
            UserNotFoundError: If user not found
            DuplicateError: If the new username or email is taken

        """
        await self.permissions.require_admin(db, admin_id)
        user = await self.permissions.get_user(db, user_id)

        await self._check_unique(db, user_data.username, user_data.email, exclude_id=user.id)

        updates = user_data.model_dump(exclude_unset=True, exclude={"shops"})
        for key, value in updates.items():
            if value is None and key in ("username", "email", "role", "status"):
                continue
            setattr(user, key, getattr(value, "value", value))
        await db.flush()

        if user_data.shops is not None:
            await self.permissions.set_user_shops(db, user.id, user_data.shops)
        return user

    async def delete_user(self, db: AsyncSession, admin_id: int, user_id: int) -> None:
        """Delete a user and its shop permissions.

        Raises:
            PermissionDeniedError: If caller is not an admin
            ValidationError: If an admin tries to delete itself
            UserNotFoundError: If user not found

        """
        await self.permissions.require_admin(db, admin_id)
        if admin_id == user_id:
            raise ValidationError("You cannot delete your own account")

        user = await self.permissions.get_user(db, user_id)
        await db.delete(user)
        await db.flush()

        self.logger.info("User deleted", extra={"user_id": user_id, "admin_id": admin_id})

    async def _check_unique(
        self,
        db: AsyncSession,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[int] = None,
    ) -> None:
        conditions = []
        if username:
            conditions.append(User.username == username)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return

        query = select(User).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        clash = (await db.execute(query)).scalars().first()
        if clash is None:
            return
        if username and clash.username == username:
            raise DuplicateError("User", "username", username)
        raise DuplicateError("User", "email", str(email))
