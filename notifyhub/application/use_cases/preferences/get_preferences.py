"""Use case for reading a user's notification preferences."""

from sqlalchemy.orm import Session

from notifyhub.domain.entities import NotificationPreferences
from notifyhub.infrastructure.repositories import PreferenceRepository


def get_preferences(session: Session, *, user_id: int) -> NotificationPreferences:
    """Return the stored preferences, seeding the defaults on first read."""

    repository = PreferenceRepository(session)
    preferences = repository.get(user_id)
    if preferences is None:
        preferences = repository.upsert(NotificationPreferences.defaults_for(user_id))
    return preferences


__all__ = ["get_preferences"]
