"""Utility script to install the built-in notification templates."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from notifyhub.application.use_cases.templates import DEFAULT_TEMPLATES, seed_templates
from notifyhub.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for template seeding."""

    parser = argparse.ArgumentParser(
        description="Create the notification templates used by notifyhub.",
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="JSON file with a list of template definitions (default: built-in set)",
    )
    parser.add_argument(
        "--created-by",
        type=int,
        default=None,
        help="User id recorded as the author of created templates",
    )
    return parser.parse_args()


def load_definitions(path: Path | None) -> list[dict]:
    if path is None:
        return [dict(definition) for definition in DEFAULT_TEMPLATES]
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SystemExit(f"Could not read template definitions from {path}: {exc}") from exc
    if not isinstance(data, list):
        raise SystemExit("The template file must contain a JSON list")
    return data


def main() -> None:
    """Seed templates using the provided command line arguments."""

    args = parse_args()
    definitions = load_definitions(args.file)

    initialize_database()

    session = SessionLocal()
    try:
        created, updated = seed_templates(session, definitions, created_by=args.created_by)
    except ValueError as exc:
        session.rollback()
        raise SystemExit(f"Invalid template definition: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Error saving templates to the database: {exc}") from exc
    else:
        print(
            "Templates seeded:\n"
            f"  Created: {', '.join(created) or '-'}\n"
            f"  Updated: {', '.join(updated) or '-'}"
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
