"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    format_time_of_day,
    get_app_timezone,
    now_in_app_naive_datetime,
    now_in_app_timezone,
    parse_time_of_day,
)
from .deadline import Deadline

__all__ = [
    "Deadline",
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "format_time_of_day",
    "get_app_timezone",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
    "parse_time_of_day",
]
