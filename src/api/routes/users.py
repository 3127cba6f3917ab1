"""User registration and lookup endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_gateway_cache, get_user_manager
from api.gateway_cache import GatewayCache
from api.models.requests import LoginRequest, RegisterUserRequest
from api.models.responses import ErrorCodes, MessageResponse, UserDTO
from services.users import UserManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users")


def user_not_found(user_ref: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": "User not found",
            "code": ErrorCodes.USER_NOT_FOUND,
            "details": [user_ref],
        },
    )


@router.post("/register", response_model=UserDTO)
async def register(body: RegisterUserRequest, user_manager: UserManager = Depends(get_user_manager)):
    """Register a user; an already-registered email returns the existing user."""
    user = user_manager.register_user(body.username.strip(), body.email.strip())
    logger.info("Register request for %s -> %s", body.email, user.user_id)
    return UserDTO.from_user(user)


@router.post("/login", response_model=UserDTO)
async def login(body: LoginRequest, user_manager: UserManager = Depends(get_user_manager)):
    user = user_manager.login_user(body.email.strip())
    if user is None:
        raise user_not_found(body.email)
    return UserDTO.from_user(user)


@router.get("", response_model=list[UserDTO])
async def get_all_users(user_manager: UserManager = Depends(get_user_manager)):
    return [UserDTO.from_user(user) for user in user_manager.get_all_users()]


@router.get("/{user_id}", response_model=UserDTO)
async def get_user(user_id: str, user_manager: UserManager = Depends(get_user_manager)):
    user = user_manager.get_user_by_id(user_id)
    if user is None:
        raise user_not_found(user_id)
    return UserDTO.from_user(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    user_manager: UserManager = Depends(get_user_manager),
    gateways: GatewayCache = Depends(get_gateway_cache),
):
    """Delete a user, their stored tokens and any cached calendar connection."""
    if not user_manager.delete_user(user_id):
        raise user_not_found(user_id)
    gateways.remove(user_id)
    return MessageResponse(message="User deleted successfully", user_id=user_id)
