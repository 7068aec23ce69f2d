"""Built-in templates and the use case that installs them."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.orm import Session

from notifyhub.domain.entities import (
    CATEGORY_MARKETING,
    CATEGORY_SYSTEM,
    CATEGORY_TRANSACTIONAL,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    TYPE_NEW_PROMOTION,
    TYPE_ORDER_STATUS,
    TYPE_PROMOTION_REMOVED,
    TYPE_SYSTEM_ALERT,
)
from notifyhub.infrastructure.repositories import TemplateRepository

from .create_template import create_template
from .update_template import update_template

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES: tuple[dict[str, Any], ...] = (
    {
        "code": "promotion_removed",
        "name": "Promotion Removed from Cart",
        "description": "Sent when a promotion is removed from the cart automatically",
        "notification_type": TYPE_PROMOTION_REMOVED,
        "category": CATEGORY_TRANSACTIONAL,
        "required_variables": ["promo_code", "reason"],
        "default_channels": ["in_app", "email"],
        "default_priority": PRIORITY_MEDIUM,
        "expires_after_hours": 720,
        "content": {
            "email_subject": "Your promo code is no longer available",
            "email_body_html": (
                "<p>Hello,</p><p>The promo code <strong>{{promo_code}}</strong> {{reason}} "
                "and was removed from your cart.</p>"
            ),
            "email_body_text": (
                "The promo code {{promo_code}} {{reason}} and was removed from your cart."
            ),
            "sms_body": "Code {{promo_code}} {{reason}}. Please check your cart.",
            "push_title": "Promo code removed",
            "push_body": "Code {{promo_code}} {{reason}}",
            "in_app_title": "Promo code removed",
            "in_app_body": (
                'The promo code "{{promo_code}}" {{reason}} and was removed from your cart.'
            ),
            "in_app_action_url": "/cart",
        },
    },
    {
        "code": "order_created",
        "name": "Order Confirmation",
        "description": "Sent when an order is created",
        "notification_type": TYPE_ORDER_STATUS,
        "category": CATEGORY_TRANSACTIONAL,
        "required_variables": ["order_id"],
        "default_channels": ["in_app", "email", "push"],
        "default_priority": PRIORITY_HIGH,
        "content": {
            "email_subject": "Order #{{order_id}} confirmed",
            "email_body_html": (
                "<p>Thanks for your order!</p>"
                "<p>Order <strong>#{{order_id}}</strong> has been confirmed.</p>"
            ),
            "email_body_text": "Order #{{order_id}} has been confirmed.",
            "sms_body": "Order #{{order_id}} confirmed.",
            "push_title": "Order confirmed",
            "push_body": "Order #{{order_id}} is being processed",
            "in_app_title": "Order #{{order_id}} confirmed",
            "in_app_body": "Your order has been confirmed and is being prepared.",
            "in_app_action_url": "/orders/{{order_id}}",
        },
    },
    {
        "code": "order_delivered",
        "name": "Order Delivered",
        "description": "Sent when an order is delivered",
        "notification_type": TYPE_ORDER_STATUS,
        "category": CATEGORY_TRANSACTIONAL,
        "required_variables": ["order_id"],
        "default_channels": ["in_app", "email", "push"],
        "default_priority": PRIORITY_HIGH,
        "expires_after_hours": 168,
        "content": {
            "email_subject": "Order #{{order_id}} delivered",
            "email_body_html": "<p>Order <strong>#{{order_id}}</strong> was delivered.</p>",
            "email_body_text": "Order #{{order_id}} was delivered.",
            "sms_body": "Order #{{order_id}} delivered!",
            "push_title": "Order delivered",
            "push_body": "Order #{{order_id}} was delivered",
            "in_app_title": "Order #{{order_id}} delivered",
            "in_app_body": "Your order was delivered.",
            "in_app_action_url": "/orders/{{order_id}}",
        },
    },
    {
        "code": "new_promotion",
        "name": "New Promotion Available",
        "description": "Marketing message announcing a promotion",
        "notification_type": TYPE_NEW_PROMOTION,
        "category": CATEGORY_MARKETING,
        "required_variables": ["promo_code", "discount"],
        "default_channels": ["in_app", "email"],
        "default_priority": PRIORITY_LOW,
        "expires_after_hours": 720,
        "content": {
            "email_subject": "{{discount}}% off your next order!",
            "email_body_html": (
                "<p>Use code <strong>{{promo_code}}</strong> "
                "to get <strong>{{discount}}%</strong> off.</p>"
            ),
            "email_body_text": "Code {{promo_code}}: {{discount}}% off.",
            "sms_body": "Code {{promo_code}}: {{discount}}% off",
            "push_title": "{{discount}}% off",
            "push_body": "Use code {{promo_code}}",
            "in_app_title": "{{discount}}% off",
            "in_app_body": "Use code {{promo_code}} to get {{discount}}% off.",
            "in_app_action_url": "/promotions",
        },
    },
    {
        "code": "system_maintenance",
        "name": "System Maintenance Notice",
        "description": "Announces planned maintenance",
        "notification_type": TYPE_SYSTEM_ALERT,
        "category": CATEGORY_SYSTEM,
        "required_variables": ["maintenance_time"],
        "default_channels": ["in_app", "email", "push"],
        "default_priority": PRIORITY_HIGH,
        "expires_after_hours": 24,
        "is_active": False,
        "content": {
            "email_subject": "Planned maintenance",
            "email_body_html": (
                "<p>The system will be down for maintenance at "
                "<strong>{{maintenance_time}}</strong>.</p>"
            ),
            "email_body_text": "The system will be down for maintenance at {{maintenance_time}}.",
            "sms_body": "Planned maintenance: {{maintenance_time}}",
            "push_title": "Planned maintenance",
            "push_body": "Maintenance at {{maintenance_time}}",
            "in_app_title": "Planned maintenance",
            "in_app_body": "The system will be down for maintenance at {{maintenance_time}}.",
        },
    },
)


def seed_templates(
    session: Session,
    definitions: Iterable[Mapping[str, Any]] = DEFAULT_TEMPLATES,
    *,
    created_by: int | None = None,
) -> tuple[list[str], list[str]]:
    """Create missing templates and refresh the name and description of existing ones.

    Content of an existing template is left alone so operator edits survive a
    re-run. Returns the created and the updated codes.
    """

    repository = TemplateRepository(session)
    created: list[str] = []
    updated: list[str] = []
    for definition in definitions:
        options = dict(definition)
        code = options.pop("code")
        existing = repository.get_by_code(code)
        if existing is None:
            create_template(session, code=code, created_by=created_by, **options)
            created.append(code)
            continue
        update_template(
            session,
            template_id=existing.id,
            name=options.get("name"),
            description=options.get("description"),
            updated_by=created_by,
        )
        updated.append(code)
    logger.info("Seeded templates: %s created, %s updated", len(created), len(updated))
    return created, updated


__all__ = ["DEFAULT_TEMPLATES", "seed_templates"]
