"""Persistence layer for notification campaigns."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from notifyhub.domain.entities import CAMPAIGN_RUNNING, CAMPAIGN_SCHEDULED, Campaign
from notifyhub.domain.errors import CampaignNotFoundError
from notifyhub.infrastructure.models import CampaignModel
from notifyhub.utils import ensure_app_naive_datetime, ensure_app_timezone

_TIMESTAMP_COLUMNS = {
    "started_at": CampaignModel.started_at,
    "paused_at": CampaignModel.paused_at,
    "completed_at": CampaignModel.completed_at,
    "cancelled_at": CampaignModel.cancelled_at,
    "next_batch_at": CampaignModel.next_batch_at,
}


class CampaignRepository:
    """Provide CRUD, state transitions and progress counters for campaigns."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self, *, status: str | None = None, skip: int = 0, limit: int = 20
    ) -> tuple[Sequence[Campaign], int]:
        query = self.session.query(CampaignModel)
        if status is not None:
            query = query.filter(CampaignModel.status == status)
        total = query.count()
        models = (
            query.order_by(CampaignModel.created_at.desc(), CampaignModel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return [self._to_entity(model) for model in models], total

    def get(self, campaign_id: int) -> Campaign | None:
        model = self.session.get(CampaignModel, campaign_id)
        if model is None:
            return None
        self.session.refresh(model)
        return self._to_entity(model)

    def create(self, campaign: Campaign) -> Campaign:
        model = CampaignModel()
        self._apply_entity_to_model(model, campaign)
        model.status = campaign.status
        model.created_by = campaign.created_by
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, campaign: Campaign) -> Campaign:
        """Persist the editable definition; status and counters are not touched."""

        if campaign.id is None:
            raise ValueError("Campaign id is required for updates")
        model = self._get_model(campaign.id)
        self._apply_entity_to_model(model, campaign)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, campaign_id: int) -> None:
        model = self._get_model(campaign_id)
        self.session.delete(model)
        self.session.commit()

    def list_scheduled_due(self, now: datetime) -> Sequence[Campaign]:
        models = (
            self.session.query(CampaignModel)
            .filter(
                CampaignModel.status == CAMPAIGN_SCHEDULED,
                CampaignModel.scheduled_at.is_not(None),
                CampaignModel.scheduled_at <= ensure_app_naive_datetime(now),
            )
            .order_by(CampaignModel.scheduled_at.asc(), CampaignModel.id.asc())
            .all()
        )
        return [self._to_entity(model) for model in models]

    def list_running(self) -> Sequence[Campaign]:
        models = (
            self.session.query(CampaignModel)
            .filter(CampaignModel.status == CAMPAIGN_RUNNING)
            .order_by(CampaignModel.id.asc())
            .all()
        )
        return [self._to_entity(model) for model in models]

    def transition(
        self,
        campaign_id: int,
        *,
        from_statuses: Sequence[str],
        to_status: str,
        **timestamps: datetime | None,
    ) -> bool:
        """Move the campaign to ``to_status`` only if it is in ``from_statuses``."""

        values: dict[Any, Any] = {CampaignModel.status: to_status}
        for name, value in timestamps.items():
            values[_TIMESTAMP_COLUMNS[name]] = ensure_app_naive_datetime(value)
        updated = (
            self.session.query(CampaignModel)
            .filter(
                CampaignModel.id == campaign_id,
                CampaignModel.status.in_(tuple(from_statuses)),
            )
            .update(values, synchronize_session=False)
        )
        self.session.commit()
        return updated == 1

    def claim_batch(self, campaign_id: int, *, now: datetime, next_batch_at: datetime) -> bool:
        """Reserve the next batch of a running campaign for one worker."""

        naive_now = ensure_app_naive_datetime(now)
        updated = (
            self.session.query(CampaignModel)
            .filter(
                CampaignModel.id == campaign_id,
                CampaignModel.status == CAMPAIGN_RUNNING,
                or_(
                    CampaignModel.next_batch_at.is_(None),
                    CampaignModel.next_batch_at <= naive_now,
                ),
            )
            .update(
                {CampaignModel.next_batch_at: ensure_app_naive_datetime(next_batch_at)},
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated == 1

    def schedule_next_batch(self, campaign_id: int, next_batch_at: datetime) -> None:
        self.session.query(CampaignModel).filter(CampaignModel.id == campaign_id).update(
            {CampaignModel.next_batch_at: ensure_app_naive_datetime(next_batch_at)},
            synchronize_session=False,
        )
        self.session.commit()

    def increment_progress(
        self,
        campaign_id: int,
        *,
        processed: int = 0,
        sent: int = 0,
        delivered: int = 0,
        failed: int = 0,
    ) -> None:
        self.session.query(CampaignModel).filter(CampaignModel.id == campaign_id).update(
            {
                CampaignModel.processed_count: CampaignModel.processed_count + processed,
                CampaignModel.sent_count: CampaignModel.sent_count + sent,
                CampaignModel.delivered_count: CampaignModel.delivered_count + delivered,
                CampaignModel.failed_count: CampaignModel.failed_count + failed,
            },
            synchronize_session=False,
        )
        self.session.commit()

    def _get_model(self, campaign_id: int) -> CampaignModel:
        model = self.session.get(CampaignModel, campaign_id)
        if model is None:
            raise CampaignNotFoundError(f"Campaign with id {campaign_id} not found")
        return model

    @staticmethod
    def _apply_entity_to_model(model: CampaignModel, campaign: Campaign) -> None:
        model.name = campaign.name
        model.description = campaign.description
        model.template_code = campaign.template_code
        model.target_type = campaign.target_type
        model.target_segment = campaign.target_segment
        model.target_user_ids = [int(user_id) for user_id in campaign.target_user_ids]
        model.target_filters = dict(campaign.target_filters or {})
        model.template_data = dict(campaign.template_data or {})
        model.channels = list(campaign.channels)
        model.scheduled_at = ensure_app_naive_datetime(campaign.scheduled_at)
        model.batch_size = campaign.batch_size
        model.batch_delay_seconds = campaign.batch_delay_seconds

    @staticmethod
    def _to_entity(model: CampaignModel) -> Campaign:
        return Campaign(
            id=model.id,
            name=model.name,
            description=model.description,
            template_code=model.template_code,
            target_type=model.target_type,
            target_segment=model.target_segment,
            target_user_ids=list(model.target_user_ids or []),
            target_filters=dict(model.target_filters or {}),
            template_data=dict(model.template_data or {}),
            channels=list(model.channels or []),
            status=model.status,
            scheduled_at=ensure_app_timezone(model.scheduled_at),
            batch_size=model.batch_size,
            batch_delay_seconds=model.batch_delay_seconds,
            processed_count=model.processed_count,
            sent_count=model.sent_count,
            delivered_count=model.delivered_count,
            failed_count=model.failed_count,
            next_batch_at=ensure_app_timezone(model.next_batch_at),
            started_at=ensure_app_timezone(model.started_at),
            paused_at=ensure_app_timezone(model.paused_at),
            completed_at=ensure_app_timezone(model.completed_at),
            cancelled_at=ensure_app_timezone(model.cancelled_at),
            created_by=model.created_by,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["CampaignRepository"]
