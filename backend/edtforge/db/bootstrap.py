from __future__ import annotations

import logging

from sqlalchemy import inspect

import edtforge.models  # noqa: F401
from edtforge.db.base import Base
from edtforge.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "subjects": {"id", "name", "curriculum", "sections", "tutorial_groups", "lab_groups", "hours"},
    "rooms": {"id", "name", "type"},
    "instructors": {"id", "name", "wishes", "supplementary", "carried_over_hours"},
    "scheduled_sessions": {"id", "subject", "kind", "student_key", "day", "slot", "continuation"},
    "term_settings": {"id", "days", "slots", "coupled_slots", "room_pools", "term"},
}


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_schema() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc
