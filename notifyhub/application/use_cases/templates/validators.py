"""Validation helpers for template administration."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from notifyhub.domain.entities import (
    CONTENT_FIELDS,
    TEMPLATE_CATEGORIES,
    TEMPLATE_CODE_PATTERN,
    NotificationTemplate,
)
from notifyhub.domain.errors import TemplateRenderError, ValidationError

_VARIABLE_PATTERN = re.compile(r"^\w+$")


def ensure_template_code(code: str) -> str:
    normalized = (code or "").strip()
    if not TEMPLATE_CODE_PATTERN.match(normalized):
        raise ValidationError(
            "Template code may only contain lowercase letters, digits and underscores"
        )
    return normalized


def ensure_category(category: str) -> str:
    if category not in TEMPLATE_CATEGORIES:
        raise ValidationError(f"Category must be one of {list(TEMPLATE_CATEGORIES)}")
    return category


def ensure_content_fields(content: Mapping[str, str | None]) -> dict[str, str | None]:
    unknown = sorted(set(content) - set(CONTENT_FIELDS))
    if unknown:
        raise ValidationError("Unknown content fields: " + ", ".join(unknown))
    return {key: (value if value else None) for key, value in content.items()}


def ensure_variable_names(names: Iterable[str]) -> list[str]:
    unique: list[str] = []
    for name in names:
        if not _VARIABLE_PATTERN.match(name or ""):
            raise ValidationError(f"Invalid variable name '{name}'")
        if name not in unique:
            unique.append(name)
    return unique


def ensure_slots_for_default_channels(template: NotificationTemplate) -> None:
    """Every default channel needs its content slots populated."""

    for channel in template.default_channels:
        missing = template.missing_slots(channel)
        if missing:
            raise TemplateRenderError(
                f"Default channel '{channel}' requires content for: " + ", ".join(missing)
            )


__all__ = [
    "ensure_category",
    "ensure_content_fields",
    "ensure_slots_for_default_channels",
    "ensure_template_code",
    "ensure_variable_names",
]
