"""Use cases for reading a single template."""

from sqlalchemy.orm import Session

from notifyhub.domain.entities import NotificationTemplate
from notifyhub.domain.errors import TemplateNotFoundError
from notifyhub.infrastructure.repositories import TemplateRepository


def get_template(session: Session, *, template_id: int) -> NotificationTemplate:
    template = TemplateRepository(session).get(template_id)
    if template is None:
        raise TemplateNotFoundError(f"Template with id {template_id} not found")
    return template


def get_template_by_code(session: Session, *, code: str) -> NotificationTemplate:
    template = TemplateRepository(session).get_by_code(code)
    if template is None:
        raise TemplateNotFoundError(f"Template '{code}' not found")
    return template


__all__ = ["get_template", "get_template_by_code"]
