"""Persistence layer for per-user notification preferences."""

from __future__ import annotations

from datetime import time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notifyhub.domain.entities import NotificationPreferences
from notifyhub.infrastructure.models import NotificationPreferencesModel
from notifyhub.utils import ensure_app_timezone


class PreferenceRepository:
    """Read and write :class:`NotificationPreferences` rows.

    The predicate helpers answer with permissive defaults when the user has no
    stored row: channels enabled, outside quiet hours, DND off.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> NotificationPreferences | None:
        model = self._get_model(user_id)
        return self._to_entity(model) if model else None

    def upsert(self, preferences: NotificationPreferences) -> NotificationPreferences:
        model = self._get_model(preferences.user_id)
        if model is None:
            model = NotificationPreferencesModel(user_id=preferences.user_id)
            self._apply_entity_to_model(model, preferences)
            self.session.add(model)
            try:
                self.session.commit()
            except IntegrityError:
                # another writer created the row first; update it instead
                self.session.rollback()
                model = self._get_model(preferences.user_id)
                if model is None:
                    raise
                self._apply_entity_to_model(model, preferences)
                self.session.commit()
        else:
            self._apply_entity_to_model(model, preferences)
            self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def channel_enabled(self, user_id: int, notification_type: str, channel: str) -> bool:
        preferences = self.get(user_id)
        if preferences is None:
            return True
        return preferences.channel_enabled(notification_type, channel)

    def in_quiet_hours(self, user_id: int, moment: time) -> bool:
        preferences = self.get(user_id)
        if preferences is None:
            return False
        return preferences.in_quiet_hours(moment)

    def do_not_disturb(self, user_id: int) -> bool:
        preferences = self.get(user_id)
        return bool(preferences and preferences.do_not_disturb)

    def _get_model(self, user_id: int) -> NotificationPreferencesModel | None:
        return (
            self.session.query(NotificationPreferencesModel)
            .filter(NotificationPreferencesModel.user_id == user_id)
            .one_or_none()
        )

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationPreferencesModel, preferences: NotificationPreferences
    ) -> None:
        model.preferences = {
            notification_type: dict(channels)
            for notification_type, channels in preferences.preferences.items()
        }
        model.do_not_disturb = preferences.do_not_disturb
        model.quiet_hours_start = preferences.quiet_hours_start
        model.quiet_hours_end = preferences.quiet_hours_end

    @staticmethod
    def _to_entity(model: NotificationPreferencesModel) -> NotificationPreferences:
        stored = model.preferences or {}
        return NotificationPreferences(
            id=model.id,
            user_id=model.user_id,
            preferences={
                notification_type: {channel: bool(flag) for channel, flag in channels.items()}
                for notification_type, channels in stored.items()
                if isinstance(channels, dict)
            },
            do_not_disturb=bool(model.do_not_disturb),
            quiet_hours_start=model.quiet_hours_start,
            quiet_hours_end=model.quiet_hours_end,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["PreferenceRepository"]
