"""Routes d'authentification."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from admin_console.core import models, security, services

router = APIRouter()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(token: str, expected_type: str) -> models.User:
    try:
        payload = security.decode_token(token, expected_type=expected_type)
    except security.TokenError as exc:
        raise _unauthorized(str(exc)) from exc
    user = services.get_user(payload["sub"])
    if not user or not user.is_active:
        raise _unauthorized("Utilisateur introuvable")
    return user


def get_current_user(token: str = Depends(oauth2_scheme)) -> models.User:
    return _user_from_token(token, security.ACCESS_TOKEN)


def _issue_tokens(user: models.User) -> models.Token:
    token_data = {"role": user.role}
    return models.Token(
        access_token=security.create_access_token(user.username, token_data),
        refresh_token=security.create_refresh_token(user.username, token_data),
    )


@router.post("/login", response_model=models.Token)
async def login(credentials: models.LoginRequest) -> models.Token:
    user = services.authenticate(credentials.username, credentials.password)
    if not user:
        raise _unauthorized("Identifiants invalides")
    return _issue_tokens(user)


@router.post("/refresh", response_model=models.Token)
async def refresh(request: models.RefreshRequest) -> models.Token:
    return _issue_tokens(_user_from_token(request.refresh_token, security.REFRESH_TOKEN))


@router.get("/me", response_model=models.User)
async def me(current_user: models.User = Depends(get_current_user)) -> models.User:
    return current_user
