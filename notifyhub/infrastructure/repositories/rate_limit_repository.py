"""Persistence layer for fixed-window rate limits."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notifyhub.domain.entities import RateLimitWindow
from notifyhub.infrastructure.models import RateLimitModel
from notifyhub.utils import ensure_app_naive_datetime, ensure_app_timezone


class RateLimitRepository:
    """Atomic counters keyed by ``(scope, scope_id, window_minutes)``."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, scope: str, scope_id: str, window_minutes: int) -> RateLimitWindow | None:
        model = self._get_model(scope, scope_id, window_minutes)
        return self._to_entity(model) if model else None

    def check_and_increment(
        self,
        scope: str,
        scope_id: str,
        *,
        max_count: int,
        window_minutes: int,
        now: datetime,
    ) -> bool:
        """Consume one slot of the window; ``False`` once ``max_count`` is reached.

        An expired window restarts at ``now``. Every mutation is a conditional
        ``UPDATE`` so concurrent callers can never push the count past the max.
        """

        if max_count <= 0:
            return False
        naive_now = ensure_app_naive_datetime(now)

        model = self._lock_model(scope, scope_id, window_minutes)
        if model is None:
            model = RateLimitModel(
                scope=scope,
                scope_id=scope_id,
                window_minutes=window_minutes,
                max_count=max_count,
                current_count=1,
                window_start=naive_now,
            )
            self.session.add(model)
            try:
                self.session.commit()
                return True
            except IntegrityError:
                self.session.rollback()
                model = self._lock_model(scope, scope_id, window_minutes)
                if model is None:
                    raise

        window_end = model.window_start + timedelta(minutes=window_minutes)
        if naive_now >= window_end:
            reset = (
                self.session.query(RateLimitModel)
                .filter(
                    RateLimitModel.id == model.id,
                    RateLimitModel.window_start == model.window_start,
                )
                .update(
                    {
                        RateLimitModel.current_count: 1,
                        RateLimitModel.window_start: naive_now,
                        RateLimitModel.max_count: max_count,
                    },
                    synchronize_session=False,
                )
            )
            self.session.commit()
            if reset == 1:
                return True

        incremented = (
            self.session.query(RateLimitModel)
            .filter(
                RateLimitModel.id == model.id,
                RateLimitModel.current_count < max_count,
            )
            .update(
                {
                    RateLimitModel.current_count: RateLimitModel.current_count + 1,
                    RateLimitModel.max_count: max_count,
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return incremented == 1

    def release(
        self, scope: str, scope_id: str, *, window_minutes: int, consumed_at: datetime
    ) -> bool:
        """Give back the slot consumed at ``consumed_at``.

        A window reset since then never counted that slot, so it is left alone.
        """

        window = self.get(scope, scope_id, window_minutes)
        if window is None or not window.covers(ensure_app_timezone(consumed_at)):
            return False
        released = (
            self.session.query(RateLimitModel)
            .filter(
                RateLimitModel.id == window.id,
                RateLimitModel.window_start == ensure_app_naive_datetime(window.window_start),
                RateLimitModel.current_count > 0,
            )
            .update(
                {RateLimitModel.current_count: RateLimitModel.current_count - 1},
                synchronize_session=False,
            )
        )
        self.session.commit()
        return released == 1

    def _lock_model(
        self, scope: str, scope_id: str, window_minutes: int
    ) -> RateLimitModel | None:
        return (
            self._query(scope, scope_id, window_minutes)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )

    def _get_model(
        self, scope: str, scope_id: str, window_minutes: int
    ) -> RateLimitModel | None:
        return self._query(scope, scope_id, window_minutes).one_or_none()

    def _query(self, scope: str, scope_id: str, window_minutes: int):
        return self.session.query(RateLimitModel).filter(
            RateLimitModel.scope == scope,
            RateLimitModel.scope_id == scope_id,
            RateLimitModel.window_minutes == window_minutes,
        )

    @staticmethod
    def _to_entity(model: RateLimitModel) -> RateLimitWindow:
        return RateLimitWindow(
            id=model.id,
            scope=model.scope,
            scope_id=model.scope_id,
            window_minutes=model.window_minutes,
            max_count=model.max_count,
            current_count=model.current_count,
            window_start=ensure_app_timezone(model.window_start),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["RateLimitRepository"]
