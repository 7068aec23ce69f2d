"""Template lookup, variable validation and placeholder substitution."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from notifyhub.domain.entities import CHANNEL_EMAIL, CHANNEL_SLOTS, NotificationTemplate
from notifyhub.domain.errors import (
    InvalidChannelError,
    MissingVariablesError,
    TemplateInactiveError,
    TemplateNotFoundError,
    TemplateRenderError,
)
from notifyhub.infrastructure.repositories import TemplateRepository

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


@dataclass(frozen=True)
class RenderedContent:
    title: str
    body: str
    text: str = ""


def substitute(text: str, data: Mapping[str, Any]) -> str:
    """Replace ``{{name}}`` tokens with ``str(data[name])``.

    Tokens without a value in ``data`` are left untouched.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in data or data[name] is None:
            return match.group(0)
        return str(data[name])

    return PLACEHOLDER_PATTERN.sub(_replace, text)


def get_active_template(session: Session, *, code: str) -> NotificationTemplate:
    """Return the template registered under ``code`` if it can be used for sending."""

    template = TemplateRepository(session).get_by_code(code)
    if template is None:
        raise TemplateNotFoundError(f"Template '{code}' not found")
    if not template.is_active:
        raise TemplateInactiveError(f"Template '{code}' is inactive")
    return template


def validate_variables(template: NotificationTemplate, data: Mapping[str, Any]) -> None:
    missing = [
        name
        for name in template.required_variables
        if name not in data or data[name] is None
    ]
    if missing:
        raise MissingVariablesError(missing)


def render_template(
    template: NotificationTemplate, channel: str, data: Mapping[str, Any]
) -> RenderedContent:
    """Render the slots ``channel`` uses; SMS has no title and renders an empty one.

    Email also renders the optional plain-text body into ``text``.
    """

    if channel not in CHANNEL_SLOTS:
        raise InvalidChannelError(f"Unknown channel '{channel}'")
    if not template.is_active:
        raise TemplateInactiveError(f"Template '{template.code}' is inactive")
    missing_slots = template.missing_slots(channel)
    if missing_slots:
        raise TemplateRenderError(
            f"Template '{template.code}' has no content for {channel}: "
            + ", ".join(missing_slots)
        )
    validate_variables(template, data)

    title_slot, body_slot = CHANNEL_SLOTS[channel]
    title = substitute(getattr(template, title_slot), data) if title_slot else ""
    body = substitute(getattr(template, body_slot), data)
    text = ""
    if channel == CHANNEL_EMAIL and template.email_body_text:
        text = substitute(template.email_body_text, data)
    return RenderedContent(title=title, body=body, text=text)


def render(
    session: Session, *, code: str, channel: str, data: Mapping[str, Any]
) -> RenderedContent:
    template = get_active_template(session, code=code)
    return render_template(template, channel, data)


__all__ = [
    "PLACEHOLDER_PATTERN",
    "RenderedContent",
    "get_active_template",
    "render",
    "render_template",
    "substitute",
    "validate_variables",
]
