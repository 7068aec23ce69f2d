"""Endpoints for reading and changing the caller's notification preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from notifyhub.application.use_cases.preferences import (
    get_preferences as get_preferences_uc,
    update_preferences as update_preferences_uc,
)
from notifyhub.domain.entities import NotificationPreferences
from notifyhub.domain.errors import NotificationError
from notifyhub.infrastructure.database import get_db
from notifyhub.interfaces.api.dependencies import get_current_user_id
from notifyhub.interfaces.api.errors import http_error
from notifyhub.interfaces.api.schemas import PreferencesRead, PreferencesUpdate
from notifyhub.utils import format_time_of_day

router = APIRouter(prefix="/preferences", tags=["preferences"])


def _preferences_to_read_model(preferences: NotificationPreferences) -> PreferencesRead:
    return PreferencesRead(
        user_id=preferences.user_id,
        preferences=preferences.preferences,
        do_not_disturb=preferences.do_not_disturb,
        quiet_hours_start=format_time_of_day(preferences.quiet_hours_start),
        quiet_hours_end=format_time_of_day(preferences.quiet_hours_end),
        updated_at=preferences.updated_at,
    )


@router.get("/", response_model=PreferencesRead)
def read_preferences(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> PreferencesRead:
    """Return the caller's preferences, creating the defaults on first access."""

    return _preferences_to_read_model(get_preferences_uc(db, user_id=user_id))


@router.put("/", response_model=PreferencesRead)
def change_preferences(
    payload: PreferencesUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> PreferencesRead:
    try:
        preferences = update_preferences_uc(
            db,
            user_id=user_id,
            preferences=payload.preferences,
            do_not_disturb=payload.do_not_disturb,
            quiet_hours_start=payload.quiet_hours_start,
            quiet_hours_end=payload.quiet_hours_end,
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _preferences_to_read_model(preferences)
