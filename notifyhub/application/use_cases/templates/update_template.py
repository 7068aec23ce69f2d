"""Use case for updating notification templates."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace

from sqlalchemy.orm import Session

from notifyhub.application.use_cases.validators import (
    ensure_channels,
    ensure_notification_type,
    ensure_priority,
)
from notifyhub.domain.entities import NotificationTemplate
from notifyhub.domain.errors import TemplateNotFoundError, ValidationError
from notifyhub.infrastructure.repositories import TemplateRepository

from .validators import (
    ensure_category,
    ensure_content_fields,
    ensure_slots_for_default_channels,
    ensure_variable_names,
)


def update_template(
    session: Session,
    *,
    template_id: int,
    name: str | None = None,
    description: str | None = None,
    notification_type: str | None = None,
    category: str | None = None,
    content: Mapping[str, str | None] | None = None,
    required_variables: Sequence[str] | None = None,
    language: str | None = None,
    default_channels: Sequence[str] | None = None,
    default_priority: int | None = None,
    expires_after_hours: int | None = None,
    is_active: bool | None = None,
    updated_by: int | None = None,
) -> NotificationTemplate:
    """Apply the provided changes; any content change bumps the version.

    Raises:
        TemplateNotFoundError: If the template does not exist.
        ValidationError: On invalid values.
    """

    repository = TemplateRepository(session)
    current = repository.get(template_id)
    if current is None:
        raise TemplateNotFoundError(f"Template with id {template_id} not found")

    updated = replace(current, updated_by=updated_by or current.updated_by)
    if name is not None:
        if not name.strip():
            raise ValidationError("Template name is required")
        updated.name = name.strip()
    if description is not None:
        updated.description = description
    if notification_type is not None:
        updated.notification_type = ensure_notification_type(notification_type)
    if category is not None:
        updated.category = ensure_category(category)
    if required_variables is not None:
        updated.required_variables = ensure_variable_names(required_variables)
    if language is not None:
        updated.language = language
    if default_channels is not None:
        updated.default_channels = ensure_channels(default_channels)
    if default_priority is not None:
        updated.default_priority = ensure_priority(default_priority)
    if expires_after_hours is not None:
        if expires_after_hours <= 0:
            raise ValidationError("expires_after_hours must be positive")
        updated.expires_after_hours = expires_after_hours
    if is_active is not None:
        updated.is_active = is_active

    content_changed = False
    for field_name, value in ensure_content_fields(content or {}).items():
        if getattr(current, field_name) != value:
            setattr(updated, field_name, value)
            content_changed = True

    ensure_slots_for_default_channels(updated)
    saved = repository.update(updated)
    if content_changed:
        saved.version = repository.increment_version(template_id)
    return saved


__all__ = ["update_template"]
