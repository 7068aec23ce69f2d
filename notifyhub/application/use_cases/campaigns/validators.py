"""Validation helpers for campaign administration."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from notifyhub.domain.entities import (
    TARGET_FILTERED,
    TARGET_SEGMENT,
    TARGET_SPECIFIC_USERS,
    TARGET_TYPES,
)
from notifyhub.domain.errors import InvalidTargetTypeError, ValidationError


def ensure_target(
    target_type: str,
    *,
    target_segment: str | None,
    target_user_ids: Sequence[int],
    target_filters: Mapping[str, Any] | None,
) -> None:
    if target_type not in TARGET_TYPES:
        raise InvalidTargetTypeError(f"Unknown campaign target type '{target_type}'")
    if target_type == TARGET_SEGMENT and not (target_segment or "").strip():
        raise ValidationError("A segment campaign requires target_segment")
    if target_type == TARGET_SPECIFIC_USERS and not target_user_ids:
        raise ValidationError("A specific_users campaign requires at least one user id")
    if target_type == TARGET_FILTERED and not target_filters:
        raise ValidationError("A filtered campaign requires target_filters")


def ensure_batching(batch_size: int, batch_delay_seconds: int) -> None:
    if batch_size <= 0:
        raise ValidationError("batch_size must be positive")
    if batch_delay_seconds < 0:
        raise ValidationError("batch_delay_seconds must not be negative")


__all__ = ["ensure_batching", "ensure_target"]
