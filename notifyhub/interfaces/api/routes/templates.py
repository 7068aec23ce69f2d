"""Administrative endpoints for notification templates."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from notifyhub.application.use_cases.templates import (
    create_template as create_template_uc,
    delete_template as delete_template_uc,
    get_template as get_template_uc,
    list_templates as list_templates_uc,
    render_template as render_template_uc,
    update_template as update_template_uc,
    validate_variables as validate_variables_uc,
)
from notifyhub.application.use_cases.validators import ensure_channels
from notifyhub.domain.entities import CONTENT_FIELDS, NotificationTemplate
from notifyhub.domain.errors import NotificationError
from notifyhub.infrastructure.database import get_db
from notifyhub.interfaces.api.dependencies import get_optional_user_id
from notifyhub.interfaces.api.errors import http_error
from notifyhub.interfaces.api.schemas import (
    RenderPreviewRequest,
    RenderPreviewResponse,
    TemplateCreate,
    TemplateRead,
    TemplateUpdate,
)

router = APIRouter(prefix="/templates", tags=["templates"])


def _template_to_read_model(template: NotificationTemplate) -> TemplateRead:
    return TemplateRead.model_validate(template)


@router.get("/", response_model=list[TemplateRead])
def list_templates(
    active_only: bool = Query(default=False),
    category: str | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[TemplateRead]:
    templates = list_templates_uc(
        db, active_only=active_only, category=category, skip=skip, limit=limit
    )
    return [_template_to_read_model(template) for template in templates]


@router.post("/", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
def register_template(
    template_in: TemplateCreate,
    db: Session = Depends(get_db),
    user_id: int | None = Depends(get_optional_user_id),
) -> TemplateRead:
    """Create a new template at version 1."""

    try:
        template = create_template_uc(
            db,
            code=template_in.code,
            name=template_in.name,
            notification_type=template_in.notification_type,
            default_channels=template_in.default_channels,
            content=template_in.model_dump(include=set(CONTENT_FIELDS)),
            category=template_in.category,
            description=template_in.description,
            required_variables=template_in.required_variables,
            language=template_in.language,
            default_priority=template_in.default_priority,
            expires_after_hours=template_in.expires_after_hours,
            is_active=template_in.is_active,
            created_by=user_id,
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _template_to_read_model(template)


@router.get("/{template_id}", response_model=TemplateRead)
def read_template(template_id: int, db: Session = Depends(get_db)) -> TemplateRead:
    try:
        template = get_template_uc(db, template_id=template_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _template_to_read_model(template)


@router.put("/{template_id}", response_model=TemplateRead)
def update_template(
    template_id: int,
    template_in: TemplateUpdate,
    db: Session = Depends(get_db),
    user_id: int | None = Depends(get_optional_user_id),
) -> TemplateRead:
    """Update a template; content changes bump its version."""

    content = template_in.model_dump(include=set(CONTENT_FIELDS), exclude_unset=True)
    try:
        template = update_template_uc(
            db,
            template_id=template_id,
            name=template_in.name,
            description=template_in.description,
            notification_type=template_in.notification_type,
            category=template_in.category,
            content=content or None,
            required_variables=template_in.required_variables,
            language=template_in.language,
            default_channels=template_in.default_channels,
            default_priority=template_in.default_priority,
            expires_after_hours=template_in.expires_after_hours,
            is_active=template_in.is_active,
            updated_by=user_id,
        )
    except NotificationError as exc:
        raise http_error(exc) from exc

    return _template_to_read_model(template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(template_id: int, db: Session = Depends(get_db)) -> Response:
    try:
        delete_template_uc(db, template_id=template_id)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{template_id}/preview", response_model=RenderPreviewResponse)
def preview_template(
    template_id: int,
    payload: RenderPreviewRequest,
    db: Session = Depends(get_db),
) -> RenderPreviewResponse:
    """Render a template for one channel without sending anything."""

    try:
        template = get_template_uc(db, template_id=template_id)
        channel = ensure_channels([payload.channel])[0]
        validate_variables_uc(template, payload.data)
        content = render_template_uc(template, channel, payload.data)
    except NotificationError as exc:
        raise http_error(exc) from exc

    return RenderPreviewResponse(channel=channel, title=content.title, body=content.body)
