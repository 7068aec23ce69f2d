"""Use case for editing a campaign that has not started."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.templates import get_active_template, validate_variables
from notifyhub.application.use_cases.validators import ensure_channels
from notifyhub.domain.entities import CAMPAIGN_DRAFT, CAMPAIGN_SCHEDULED, Campaign
from notifyhub.domain.errors import ConflictError, ValidationError
from notifyhub.infrastructure.repositories import CampaignRepository
from notifyhub.utils import ensure_app_timezone, now_in_app_timezone

from .get_campaign import get_campaign
from .validators import ensure_batching, ensure_target

EDITABLE_STATUSES = (CAMPAIGN_DRAFT, CAMPAIGN_SCHEDULED)


def update_campaign(
    session: Session,
    *,
    campaign_id: int,
    name: str | None = None,
    description: str | None = None,
    template_code: str | None = None,
    target_type: str | None = None,
    target_segment: str | None = None,
    target_user_ids: Sequence[int] | None = None,
    target_filters: Mapping[str, Any] | None = None,
    template_data: Mapping[str, Any] | None = None,
    channels: Sequence[str] | None = None,
    scheduled_at: datetime | None = None,
    batch_size: int | None = None,
    batch_delay_seconds: int | None = None,
    now: datetime | None = None,
) -> Campaign:
    """Edit a draft or scheduled campaign.

    A new ``scheduled_at`` re-derives the status (future: scheduled, else draft).

    Raises:
        CampaignNotFoundError: If the campaign does not exist.
        ConflictError: If the campaign already started.
    """

    now = now or now_in_app_timezone()
    current = get_campaign(session, campaign_id=campaign_id)
    if current.status not in EDITABLE_STATUSES:
        raise ConflictError(f"Campaign in status '{current.status}' cannot be edited")

    updated = replace(current)
    if name is not None:
        if not name.strip():
            raise ValidationError("Campaign name is required")
        updated.name = name.strip()
    if description is not None:
        updated.description = description
    if template_code is not None:
        updated.template_code = template_code
    if target_type is not None:
        updated.target_type = target_type
    if target_segment is not None:
        updated.target_segment = target_segment
    if target_user_ids is not None:
        updated.target_user_ids = list(dict.fromkeys(int(user_id) for user_id in target_user_ids))
    if target_filters is not None:
        updated.target_filters = dict(target_filters)
    if template_data is not None:
        updated.template_data = dict(template_data)
    if channels is not None:
        updated.channels = ensure_channels(channels, allow_empty=True)
    if batch_size is not None:
        updated.batch_size = batch_size
    if batch_delay_seconds is not None:
        updated.batch_delay_seconds = batch_delay_seconds
    if scheduled_at is not None:
        updated.scheduled_at = ensure_app_timezone(scheduled_at)

    template = get_active_template(session, code=updated.template_code)
    validate_variables(template, updated.template_data)
    ensure_target(
        updated.target_type,
        target_segment=updated.target_segment,
        target_user_ids=updated.target_user_ids,
        target_filters=updated.target_filters,
    )
    ensure_batching(updated.batch_size, updated.batch_delay_seconds)

    repository = CampaignRepository(session)
    saved = repository.update(updated)
    if scheduled_at is not None:
        status = (
            CAMPAIGN_SCHEDULED
            if updated.scheduled_at and updated.scheduled_at > now
            else CAMPAIGN_DRAFT
        )
        if status != saved.status:
            if not repository.transition(
                campaign_id, from_statuses=EDITABLE_STATUSES, to_status=status
            ):
                raise ConflictError("Campaign started while it was being edited")
            saved = get_campaign(session, campaign_id=campaign_id)
    return saved


__all__ = ["update_campaign"]
