"""Use case for registering a new notification template."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.validators import (
    ensure_channels,
    ensure_notification_type,
    ensure_priority,
)
from notifyhub.domain.entities import PRIORITY_MEDIUM, NotificationTemplate
from notifyhub.domain.errors import DuplicateError, ValidationError
from notifyhub.infrastructure.repositories import TemplateRepository

from .validators import (
    ensure_category,
    ensure_content_fields,
    ensure_slots_for_default_channels,
    ensure_template_code,
    ensure_variable_names,
)


def create_template(
    session: Session,
    *,
    code: str,
    name: str,
    notification_type: str,
    default_channels: Sequence[str],
    content: Mapping[str, str | None],
    category: str = "transactional",
    description: str | None = None,
    required_variables: Sequence[str] = (),
    language: str = "en",
    default_priority: int = PRIORITY_MEDIUM,
    expires_after_hours: int | None = None,
    is_active: bool = True,
    created_by: int | None = None,
) -> NotificationTemplate:
    """Validate and persist a template at version 1.

    Raises:
        ValidationError: On a malformed code, category, priority or content field.
        TemplateRenderError: If a default channel lacks its content slots.
        DuplicateError: If the code is already registered.
    """

    normalized_name = (name or "").strip()
    if not normalized_name:
        raise ValidationError("Template name is required")
    if expires_after_hours is not None and expires_after_hours <= 0:
        raise ValidationError("expires_after_hours must be positive")

    template = NotificationTemplate(
        id=None,
        code=ensure_template_code(code),
        name=normalized_name,
        description=description,
        notification_type=ensure_notification_type(notification_type),
        category=ensure_category(category),
        required_variables=ensure_variable_names(required_variables),
        language=language,
        default_channels=ensure_channels(default_channels),
        default_priority=ensure_priority(default_priority),
        expires_after_hours=expires_after_hours,
        version=1,
        is_active=is_active,
        created_by=created_by,
        updated_by=created_by,
    )
    for field_name, value in ensure_content_fields(content).items():
        setattr(template, field_name, value)
    ensure_slots_for_default_channels(template)

    repository = TemplateRepository(session)
    if repository.get_by_code(template.code) is not None:
        raise DuplicateError(f"Template code '{template.code}' already exists")
    return repository.create(template)


__all__ = ["create_template"]
