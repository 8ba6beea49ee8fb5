"""
Authentication service: password accounts with insurer and client roles.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from securedrive.core.config import settings
from securedrive.core.exceptions import AlreadyExists, InvalidArgument, NotFound
from securedrive.core.security import create_access_token, hash_password, verify_password
from securedrive.models.user import User, UserRole


logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, name: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.name == name)
        )
        return result.scalar_one_or_none()

    async def register(
        self,
        name: str,
        password: str,
        role: UserRole = UserRole.CLIENT,
        date_of_birth: Optional[date] = None,
        address: Optional[str] = None
    ) -> User:
        """Create an account; fails if the name is taken."""
        if await self.get_user(name):
            raise AlreadyExists(f"User '{name}' already exists")

        user = User(
            name=name,
            hashed_password=hash_password(password),
            role=role,
            date_of_birth=date_of_birth,
            address=address,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info("User %s registered with role %s", name, role.value)
        return user

    async def authenticate(self, name: str, password: str) -> Optional[User]:
        """Return the user when the password matches, else None."""
        user = await self.get_user(name)
        if not user or not verify_password(password, user.hashed_password):
            logger.info("Failed login for %s", name)
            return None
        return user

    def create_tokens(self, user: User) -> Dict[str, Any]:
        """Create an access token for a user."""
        access_token = create_access_token({
            "sub": user.name,
            "role": user.role.value,
        })

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "name": user.name,
            "role": user.role.value,
        }

    async def get_role(self, name: str) -> UserRole:
        user = await self.get_user(name)
        if not user:
            raise NotFound(f"User '{name}' not found")
        return user.role

    async def change_password(self, name: str, old_password: str, new_password: str) -> None:
        user = await self.get_user(name)
        if not user:
            raise NotFound(f"User '{name}' not found")
        if not verify_password(old_password, user.hashed_password):
            raise InvalidArgument("Current password is incorrect")

        user.hashed_password = hash_password(new_password)
        await self.db.commit()
        logger.info("Password changed for %s", name)

    async def update_profile(
        self,
        name: str,
        date_of_birth: Optional[date],
        address: Optional[str]
    ) -> User:
        user = await self.get_user(name)
        if not user:
            raise NotFound(f"User '{name}' not found")

        user.date_of_birth = date_of_birth
        user.address = address
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def list_clients(self) -> List[User]:
        result = await self.db.execute(
            select(User).where(User.role == UserRole.CLIENT).order_by(User.name)
        )
        return list(result.scalars().all())

    async def delete_user(self, name: str) -> None:
        user = await self.get_user(name)
        if not user:
            raise NotFound(f"User '{name}' not found")

        await self.db.delete(user)
        await self.db.commit()
        logger.info("User %s deleted", name)
