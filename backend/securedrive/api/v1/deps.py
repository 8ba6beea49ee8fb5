"""
API dependencies for authentication, authorization and world-state access.
"""
from typing import List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from securedrive.core.database import get_db
from securedrive.core.security import decode_token
from securedrive.ledger.world_state import SQLWorldState, WorldState
from securedrive.models.user import User, UserRole
from securedrive.schemas.vehicle import EncryptedVehicleRecord
from securedrive.services.auth_service import AuthService
from securedrive.services.vehicle_service import VehicleService


security = HTTPBearer(auto_error=False)


async def get_world_state(db: AsyncSession = Depends(get_db)) -> WorldState:
    """World state bound to the request's database session."""
    return SQLWorldState(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Get the current authenticated user from the JWT token.
    Returns None if no valid token is provided.
    """
    if not credentials:
        return None

    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        return None

    name = payload.get("sub")
    if not name:
        return None

    return await AuthService(db).get_user(name)


async def require_authentication(
    current_user: Optional[User] = Depends(get_current_user)
) -> User:
    """
    Require a valid authenticated user.
    Raises 401 if not authenticated.
    """
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Factory function to create a dependency that requires specific roles.
    """
    async def role_checker(
        current_user: User = Depends(require_authentication)
    ) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return current_user

    return role_checker


def ensure_owner_or_insurer(owner_id: str, current_user: User) -> None:
    """Clients may only act on their own identity; insurers on any."""
    if current_user.role != UserRole.INSURER and current_user.name != owner_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions"
        )


async def ensure_vehicle_access(
    state: WorldState,
    vehicle_id: str,
    current_user: User
) -> EncryptedVehicleRecord:
    """Load a vehicle the caller owns, or any vehicle for an insurer."""
    vehicle = await VehicleService(state).get_vehicle(vehicle_id)
    ensure_owner_or_insurer(vehicle.owner_id, current_user)
    return vehicle
