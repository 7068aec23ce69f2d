"""Persistence layer for notification templates."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notifyhub.domain.entities import CONTENT_FIELDS, NotificationTemplate
from notifyhub.domain.errors import DuplicateError, TemplateNotFoundError
from notifyhub.infrastructure.models import NotificationTemplateModel
from notifyhub.utils import ensure_app_timezone


class TemplateRepository:
    """Provide CRUD operations for :class:`NotificationTemplate` entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self,
        *,
        active_only: bool = False,
        category: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[NotificationTemplate]:
        query = self.session.query(NotificationTemplateModel)
        if active_only:
            query = query.filter(NotificationTemplateModel.is_active.is_(True))
        if category is not None:
            query = query.filter(NotificationTemplateModel.category == category)
        query = query.order_by(NotificationTemplateModel.code.asc()).offset(skip).limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_active(
        self, *, category: str | None = None, skip: int = 0, limit: int = 100
    ) -> Sequence[NotificationTemplate]:
        return self.list(active_only=True, category=category, skip=skip, limit=limit)

    def get(self, template_id: int) -> NotificationTemplate | None:
        model = self.session.get(NotificationTemplateModel, template_id)
        return self._to_entity(model) if model else None

    def get_by_code(self, code: str) -> NotificationTemplate | None:
        model = (
            self.session.query(NotificationTemplateModel)
            .filter(NotificationTemplateModel.code == code)
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    def create(self, template: NotificationTemplate) -> NotificationTemplate:
        model = NotificationTemplateModel()
        self._apply_entity_to_model(model, template)
        model.code = template.code
        model.version = template.version or 1
        model.created_by = template.created_by
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateError(f"Template code '{template.code}' already exists") from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, template: NotificationTemplate) -> NotificationTemplate:
        """Persist mutable fields; ``code`` and ``version`` are left untouched."""

        if template.id is None:
            raise ValueError("Template id is required for updates")
        model = self._get_model(template.id)
        self._apply_entity_to_model(model, template)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def increment_version(self, template_id: int) -> int:
        updated = (
            self.session.query(NotificationTemplateModel)
            .filter(NotificationTemplateModel.id == template_id)
            .update(
                {NotificationTemplateModel.version: NotificationTemplateModel.version + 1},
                synchronize_session=False,
            )
        )
        self.session.commit()
        if updated != 1:
            raise TemplateNotFoundError(f"Template with id {template_id} not found")
        model = self._get_model(template_id)
        self.session.refresh(model)
        return model.version

    def delete(self, template_id: int) -> None:
        model = self._get_model(template_id)
        self.session.delete(model)
        self.session.commit()

    def _get_model(self, template_id: int) -> NotificationTemplateModel:
        model = self.session.get(NotificationTemplateModel, template_id)
        if model is None:
            raise TemplateNotFoundError(f"Template with id {template_id} not found")
        return model

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationTemplateModel, template: NotificationTemplate
    ) -> None:
        model.name = template.name
        model.description = template.description
        model.notification_type = template.notification_type
        model.category = template.category
        for field_name in CONTENT_FIELDS:
            setattr(model, field_name, getattr(template, field_name))
        model.required_variables = list(template.required_variables)
        model.language = template.language
        model.default_channels = list(template.default_channels)
        model.default_priority = template.default_priority
        model.expires_after_hours = template.expires_after_hours
        model.is_active = template.is_active
        model.updated_by = template.updated_by

    @staticmethod
    def _to_entity(model: NotificationTemplateModel) -> NotificationTemplate:
        return NotificationTemplate(
            id=model.id,
            code=model.code,
            name=model.name,
            description=model.description,
            notification_type=model.notification_type,
            category=model.category,
            email_subject=model.email_subject,
            email_body_html=model.email_body_html,
            email_body_text=model.email_body_text,
            sms_body=model.sms_body,
            push_title=model.push_title,
            push_body=model.push_body,
            in_app_title=model.in_app_title,
            in_app_body=model.in_app_body,
            in_app_action_url=model.in_app_action_url,
            required_variables=list(model.required_variables or []),
            language=model.language,
            default_channels=list(model.default_channels or []),
            default_priority=model.default_priority,
            expires_after_hours=model.expires_after_hours,
            version=model.version,
            is_active=bool(model.is_active),
            created_by=model.created_by,
            updated_by=model.updated_by,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["TemplateRepository"]
