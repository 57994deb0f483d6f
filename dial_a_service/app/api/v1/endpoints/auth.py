"""
Authentication endpoints for API v1.

Password registration and login, passwordless magic links and the
``/auth/me`` session endpoint that tells the front end where the
signed-in user belongs.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from dial_a_service.app.api.v1.errors import http_error
from dial_a_service.app.core.security import create_access_token, get_current_user
from dial_a_service.app.schemas.user import (
    MagicLinkRequest,
    MagicLinkVerify,
    SessionRead,
    Token,
    UserLogin,
    UserRead,
    UserRegister,
)
from dial_a_service.app.services.user_service import UserService


router = APIRouter()


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister) -> UserRead:
    """Register a new account with an e-mail and password."""
    try:
        return await UserService.register(data)
    except ValueError as e:
        raise http_error(e)


@router.post("/login", response_model=Token)
async def login(data: UserLogin) -> Token:
    """Exchange credentials for a bearer token."""
    try:
        user = await UserService.authenticate(data.email, data.password)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return Token(access_token=create_access_token({"sub": user.email}))


@router.post("/magic-link")
async def request_magic_link(data: MagicLinkRequest) -> dict:
    """E-mail a single-use sign-in link, creating the account if needed."""
    message = await UserService.request_magic_link(data.email)
    return {"message": message}


@router.post("/magic-link/verify", response_model=Token)
async def verify_magic_link(data: MagicLinkVerify) -> Token:
    try:
        token = await UserService.verify_magic_link(data.token)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return Token(access_token=token)


@router.get("/me", response_model=SessionRead)
async def me(current_user: dict = Depends(get_current_user)) -> SessionRead:
    """Return the current user and the route their front end should show."""
    try:
        user = await UserService.get_user(current_user["user_id"])
        redirect_to = await UserService.home_route(current_user["user_id"])
    except ValueError as e:
        raise http_error(e)
    return SessionRead(user=user, redirect_to=redirect_to)
