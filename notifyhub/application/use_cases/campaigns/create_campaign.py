"""Use case for creating notification campaigns."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.templates import get_active_template, validate_variables
from notifyhub.application.use_cases.validators import ensure_channels
from notifyhub.config import get_settings
from notifyhub.domain.entities import CAMPAIGN_DRAFT, CAMPAIGN_SCHEDULED, Campaign
from notifyhub.domain.errors import ValidationError
from notifyhub.infrastructure.repositories import CampaignRepository
from notifyhub.utils import ensure_app_timezone, now_in_app_timezone

from .validators import ensure_batching, ensure_target


def create_campaign(
    session: Session,
    *,
    name: str,
    template_code: str,
    target_type: str,
    target_segment: str | None = None,
    target_user_ids: Sequence[int] = (),
    target_filters: Mapping[str, Any] | None = None,
    template_data: Mapping[str, Any] | None = None,
    channels: Sequence[str] = (),
    scheduled_at: datetime | None = None,
    batch_size: int | None = None,
    batch_delay_seconds: int | None = None,
    description: str | None = None,
    created_by: int | None = None,
    now: datetime | None = None,
) -> Campaign:
    """Validate and store a campaign.

    The campaign starts as ``scheduled`` when ``scheduled_at`` lies in the
    future and as ``draft`` otherwise.

    Raises:
        TemplateNotFoundError, TemplateInactiveError, MissingVariablesError:
            If the template cannot be rendered with ``template_data``.
        InvalidTargetTypeError, ValidationError: On an invalid target or batching.
    """

    settings = get_settings()
    now = now or now_in_app_timezone()
    normalized_name = (name or "").strip()
    if not normalized_name:
        raise ValidationError("Campaign name is required")

    template = get_active_template(session, code=template_code)
    data = dict(template_data or {})
    validate_variables(template, data)
    ensure_target(
        target_type,
        target_segment=target_segment,
        target_user_ids=target_user_ids,
        target_filters=target_filters,
    )
    batch_size = batch_size or settings.campaign_batch_size
    if batch_delay_seconds is None:
        batch_delay_seconds = settings.campaign_batch_delay_seconds
    ensure_batching(batch_size, batch_delay_seconds)

    scheduled_at = ensure_app_timezone(scheduled_at)
    status = CAMPAIGN_SCHEDULED if scheduled_at and scheduled_at > now else CAMPAIGN_DRAFT
    campaign = Campaign(
        id=None,
        name=normalized_name,
        description=description,
        template_code=template.code,
        target_type=target_type,
        target_segment=target_segment,
        target_user_ids=list(dict.fromkeys(int(user_id) for user_id in target_user_ids)),
        target_filters=dict(target_filters or {}),
        template_data=data,
        channels=ensure_channels(channels, allow_empty=True),
        status=status,
        scheduled_at=scheduled_at,
        batch_size=batch_size,
        batch_delay_seconds=batch_delay_seconds,
        created_by=created_by,
    )
    return CampaignRepository(session).create(campaign)


__all__ = ["create_campaign"]
