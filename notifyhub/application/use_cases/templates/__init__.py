"""Template-related use cases."""

from .create_template import create_template
from .delete_template import delete_template
from .get_template import get_template, get_template_by_code
from .list_templates import list_templates
from .rendering import (
    RenderedContent,
    get_active_template,
    render,
    render_template,
    substitute,
    validate_variables,
)
from .seed import DEFAULT_TEMPLATES, seed_templates
from .update_template import update_template

__all__ = [
    "DEFAULT_TEMPLATES",
    "RenderedContent",
    "create_template",
    "delete_template",
    "get_active_template",
    "get_template",
    "get_template_by_code",
    "list_templates",
    "render",
    "render_template",
    "seed_templates",
    "substitute",
    "update_template",
    "validate_variables",
]
