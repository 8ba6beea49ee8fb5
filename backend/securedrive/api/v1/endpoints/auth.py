"""
Authentication API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from securedrive.api.v1.deps import require_authentication, require_role
from securedrive.core.database import get_db
from securedrive.models.user import User, UserRole
from securedrive.schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenResponse,
    UserInfoResponse,
)
from securedrive.services.auth_service import AuthService


router = APIRouter()


@router.post("/register", response_model=UserInfoResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db)
) -> UserInfoResponse:
    """
    Create an account.

    Insurer accounts can only be created by an existing insurer through
    ``POST /auth/users``.
    """
    if request.role != UserRole.CLIENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only client accounts can self-register"
        )

    user = await AuthService(db).register(
        name=request.name,
        password=request.password,
        role=UserRole.CLIENT,
        date_of_birth=request.date_of_birth,
        address=request.address,
    )
    return UserInfoResponse.model_validate(user)


@router.post("/users", response_model=UserInfoResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> UserInfoResponse:
    """Create an account of any role."""
    user = await AuthService(db).register(
        name=request.name,
        password=request.password,
        role=request.role,
        date_of_birth=request.date_of_birth,
        address=request.address,
    )
    return UserInfoResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db)
) -> TokenResponse:
    """Exchange name and password for an access token."""
    auth_service = AuthService(db)
    user = await auth_service.authenticate(request.name, request.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid name or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(**auth_service.create_tokens(user))


@router.get("/me", response_model=UserInfoResponse)
async def get_current_user_info(
    current_user: User = Depends(require_authentication)
) -> UserInfoResponse:
    """Get the current authenticated user's information."""
    return UserInfoResponse.model_validate(current_user)


@router.put("/me/password")
async def change_password(
    request: PasswordChangeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication)
) -> dict:
    await AuthService(db).change_password(
        current_user.name, request.old_password, request.new_password
    )
    return {"message": "Password changed"}


@router.put("/me/profile", response_model=UserInfoResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication)
) -> UserInfoResponse:
    user = await AuthService(db).update_profile(
        current_user.name, request.date_of_birth, request.address
    )
    return UserInfoResponse.model_validate(user)


@router.get("/clients", response_model=List[UserInfoResponse])
async def list_clients(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> List[UserInfoResponse]:
    """List every client account."""
    clients = await AuthService(db).list_clients()
    return [UserInfoResponse.model_validate(user) for user in clients]


@router.delete("/users/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    name: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> None:
    await AuthService(db).delete_user(name)
