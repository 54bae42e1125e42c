"""Routes pour la persistance des préférences de menu."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from admin_console.api.auth import get_current_user
from admin_console.core import models, services

router = APIRouter()


@router.get("", response_model=models.MenuPreferenceResponse, response_model_exclude_none=True)
def get_menu_preferences(
    current_user: models.User = Depends(get_current_user),
) -> models.MenuPreferenceResponse:
    preferences = services.get_menu_preferences(current_user.id)
    return models.MenuPreferenceResponse(preferences=preferences)


@router.post("", response_model=models.MenuPreferenceResponse, response_model_exclude_none=True)
def save_menu_preferences(
    payload: models.MenuPreferenceRequest,
    current_user: models.User = Depends(get_current_user),
) -> models.MenuPreferenceResponse:
    try:
        stored = services.save_menu_preferences(current_user.id, payload.preferences)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return models.MenuPreferenceResponse(preferences=stored)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def reset_menu_preferences(
    current_user: models.User = Depends(get_current_user),
) -> None:
    services.reset_menu_preferences(current_user.id)
    return None
