"""Administrative endpoints for notification campaigns."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from notifyhub.application.use_cases.campaigns import (
    cancel_campaign as cancel_campaign_uc,
    create_campaign as create_campaign_uc,
    delete_campaign as delete_campaign_uc,
    get_campaign as get_campaign_uc,
    list_campaigns as list_campaigns_uc,
    pause_campaign as pause_campaign_uc,
    resume_campaign as resume_campaign_uc,
    start_campaign as start_campaign_uc,
    update_campaign as update_campaign_uc,
)
from notifyhub.domain.entities import Campaign
from notifyhub.domain.errors import NotificationError
from notifyhub.infrastructure.database import get_db
from notifyhub.interfaces.api.dependencies import get_optional_user_id
from notifyhub.interfaces.api.errors import http_error
from notifyhub.interfaces.api.schemas import (
    CampaignCreate,
    CampaignPageRead,
    CampaignRead,
    CampaignUpdate,
)

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


def _campaign_to_read_model(campaign: Campaign) -> CampaignRead:
    return CampaignRead.model_validate(campaign)


@router.get("/", response_model=CampaignPageRead)
def list_campaigns(
    campaign_status: str | None = Query(default=None, alias="status"),
    page: int = Query(default=1),
    page_size: int = Query(default=20, le=100),
    db: Session = Depends(get_db),
) -> CampaignPageRead:
    try:
        items, total = list_campaigns_uc(
            db, status=campaign_status, page=page, page_size=page_size
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return CampaignPageRead(
        items=[_campaign_to_read_model(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/", response_model=CampaignRead, status_code=status.HTTP_201_CREATED)
def register_campaign(
    campaign_in: CampaignCreate,
    db: Session = Depends(get_db),
    user_id: int | None = Depends(get_optional_user_id),
) -> CampaignRead:
    """Create a campaign in draft, or scheduled when ``scheduled_at`` is in the future."""

    try:
        campaign = create_campaign_uc(
            db,
            name=campaign_in.name,
            description=campaign_in.description,
            template_code=campaign_in.template_code,
            target_type=campaign_in.target_type,
            target_segment=campaign_in.target_segment,
            target_user_ids=campaign_in.target_user_ids,
            target_filters=campaign_in.target_filters,
            template_data=campaign_in.template_data,
            channels=campaign_in.channels,
            scheduled_at=campaign_in.scheduled_at,
            batch_size=campaign_in.batch_size,
            batch_delay_seconds=campaign_in.batch_delay_seconds,
            created_by=user_id,
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _campaign_to_read_model(campaign)


@router.get("/{campaign_id}", response_model=CampaignRead)
def read_campaign(campaign_id: int, db: Session = Depends(get_db)) -> CampaignRead:
    try:
        campaign = get_campaign_uc(db, campaign_id=campaign_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _campaign_to_read_model(campaign)


@router.put("/{campaign_id}", response_model=CampaignRead)
def update_campaign(
    campaign_id: int,
    campaign_in: CampaignUpdate,
    db: Session = Depends(get_db),
) -> CampaignRead:
    try:
        campaign = update_campaign_uc(
            db, campaign_id=campaign_id, **campaign_in.model_dump(exclude_unset=True)
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _campaign_to_read_model(campaign)


@router.delete("/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_campaign(campaign_id: int, db: Session = Depends(get_db)) -> Response:
    try:
        delete_campaign_uc(db, campaign_id=campaign_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{campaign_id}/start", response_model=CampaignRead)
def start_campaign(campaign_id: int, db: Session = Depends(get_db)) -> CampaignRead:
    """Start sending; batches are produced by the background worker."""

    try:
        campaign = start_campaign_uc(db, campaign_id=campaign_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _campaign_to_read_model(campaign)


@router.post("/{campaign_id}/cancel", response_model=CampaignRead)
def cancel_campaign(campaign_id: int, db: Session = Depends(get_db)) -> CampaignRead:
    try:
        campaign = cancel_campaign_uc(db, campaign_id=campaign_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _campaign_to_read_model(campaign)


@router.post("/{campaign_id}/pause", response_model=CampaignRead)
def pause_campaign(campaign_id: int, db: Session = Depends(get_db)) -> CampaignRead:
    try:
        campaign = pause_campaign_uc(db, campaign_id=campaign_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _campaign_to_read_model(campaign)


@router.post("/{campaign_id}/resume", response_model=CampaignRead)
def resume_campaign(campaign_id: int, db: Session = Depends(get_db)) -> CampaignRead:
    try:
        campaign = resume_campaign_uc(db, campaign_id=campaign_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _campaign_to_read_model(campaign)
