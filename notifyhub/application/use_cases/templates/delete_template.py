"""Use case for deleting templates."""

from sqlalchemy.orm import Session

from notifyhub.infrastructure.repositories import TemplateRepository


def delete_template(session: Session, *, template_id: int) -> None:
    """Remove a template; notifications keep their ``(code, version)`` snapshot.

    Raises:
        TemplateNotFoundError: If the template does not exist.
    """

    TemplateRepository(session).delete(template_id)


__all__ = ["delete_template"]
