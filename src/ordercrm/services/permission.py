"""Shop permission service.

Non-admin users see orders only for the shops they were granted.
Administrators can access every shop.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ordercrm.core.exceptions import PermissionDeniedError, UserNotFoundError
from ordercrm.core.logging import LoggerMixin
from ordercrm.core.shops import (
    PREDEFINED_SHOPS,
    get_all_shops,
    get_shops_by_category,
    get_shops_by_region,
)
from ordercrm.models.user import User, UserShopPermission

__all__ = [
    "PREDEFINED_SHOPS",
    "PermissionService",
    "clean_shop_names",
    "get_all_shops",
    "get_shops_by_category",
    "get_shops_by_region",
]


def clean_shop_names(shops: list[str]) -> list[str]:
    """Strip names, drop blanks and duplicates, keep first-seen order."""
    return list(dict.fromkeys(s.strip() for s in shops if s and s.strip()))


class PermissionService(LoggerMixin):
    """Service for user shop permissions."""

    async def get_user(self, db: AsyncSession, user_id: int) -> User:
        """
        Load a user with its shop permissions.

        Raises:
            UserNotFoundError: If user does not exist
        """
        result = await db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def require_admin(self, db: AsyncSession, user_id: int) -> User:
        """
        Load a user and check it is an administrator.

        Raises:
            UserNotFoundError: If user does not exist
            PermissionDeniedError: If user is not an admin
        """
        user = await self.get_user(db, user_id)
        if not user.is_admin:
            raise PermissionDeniedError("Administrator access required")
        return user

    async def get_user_shops(self, db: AsyncSession, user_id: int) -> list[str]:
        """Shops granted to a user, sorted by name."""
        result = await db.execute(
            select(UserShopPermission.shop_name)
            .where(UserShopPermission.user_id == user_id)
            .order_by(UserShopPermission.shop_name)
        )
        return list(result.scalars().all())

    async def set_user_shops(
        self,
        db: AsyncSession,
        user_id: int,
        shops: list[str],
    ) -> list[str]:
        """
        Replace the shops granted to a user.

        Permissions for shops kept in the new set are left in place.

        Returns:
            Granted shops, sorted by name
        """
        user = await self.get_user(db, user_id)
        existing = {p.shop_name: p for p in user.shop_permissions}
        user.shop_permissions = [
            existing.get(shop) or UserShopPermission(shop_name=shop)
            for shop in clean_shop_names(shops)
        ]
        await db.flush()

        self.logger.info(
            "Shop permissions replaced",
            extra={"user_id": user_id, "shops": len(user.shop_permissions)},
        )
        return user.shop_names

    async def grant_shop(self, db: AsyncSession, user_id: int, shop_name: str) -> bool:
        """
        Grant one shop to a user.

        Returns:
            True if a new permission was created, False if it already existed
        """
        user = await self.get_user(db, user_id)
        shop_name = shop_name.strip()
        if not shop_name or shop_name in user.shop_names:
            return False

        user.shop_permissions.append(UserShopPermission(shop_name=shop_name))
        await db.flush()
        return True

    async def revoke_shop(self, db: AsyncSession, user_id: int, shop_name: str) -> bool:
        """
        Revoke one shop from a user.

        Returns:
            True if a permission was removed
        """
        user = await self.get_user(db, user_id)
        kept = [p for p in user.shop_permissions if p.shop_name != shop_name]
        if len(kept) == len(user.shop_permissions):
            return False

        user.shop_permissions = kept
        await db.flush()
        return True

    async def can_access_shop(self, db: AsyncSession, user_id: int, shop_name: str) -> bool:
        """Whether a user may see orders of ``shop_name``."""
        user = await self.get_user(db, user_id)
        return user.is_admin or shop_name in user.shop_names
