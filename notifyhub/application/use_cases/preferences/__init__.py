"""Preference management and the preferences gate."""

from .can_send import GateDecision, can_send, evaluate, filter_channels
from .get_preferences import get_preferences
from .update_preferences import update_preferences

__all__ = [
    "GateDecision",
    "can_send",
    "evaluate",
    "filter_channels",
    "get_preferences",
    "update_preferences",
]
