"""Use case for listing templates."""

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notifyhub.domain.entities import NotificationTemplate
from notifyhub.infrastructure.repositories import TemplateRepository


def list_templates(
    session: Session,
    *,
    active_only: bool = False,
    category: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> Sequence[NotificationTemplate]:
    """Return templates ordered by code."""

    repository = TemplateRepository(session)
    if active_only:
        return repository.list_active(category=category, skip=skip, limit=limit)
    return repository.list(category=category, skip=skip, limit=limit)


__all__ = ["list_templates"]
