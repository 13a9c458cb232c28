from __future__ import annotations

import logging
import traceback
from pathlib import Path

from alembic import command
from alembic.config import Config
from PySide6.QtWidgets import QMessageBox
from sqlalchemy import select

from app.infrastructure.db.models_sqlalchemy import UserProfileRow

logger = logging.getLogger(__name__)

MIGRATIONS_SUBDIR = Path("app") / "infrastructure" / "db" / "migrations"


def check_startup_prerequisites(root_dir: Path, db_file: Path) -> str | None:
    """Return a user-facing problem description, or None when startup may proceed."""
    if not (root_dir / "alembic.ini").exists():
        return "alembic.ini is missing. Check the installation."
    if not (root_dir / MIGRATIONS_SUBDIR).exists():
        return "The migrations directory is missing. Check the installation."
    try:
        db_file.parent.mkdir(parents=True, exist_ok=True)
        test_file = db_file.parent / ".write_test"
        test_file.write_text("ok", encoding="utf-8")
        test_file.unlink(missing_ok=True)
    except OSError:
        return f"The database directory is not writable: {db_file.parent}"
    return None


def alembic_config(root_dir: Path, database_url: str) -> Config:
    cfg = Config(str(root_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(root_dir / MIGRATIONS_SUBDIR))
    cfg.set_main_option("sqlalchemy.url", database_url)
    cfg.attributes["configure_logger"] = False
    return cfg


def run_migrations(root_dir: Path, database_url: str, log_dir: Path) -> bool:
    try:
        command.upgrade(alembic_config(root_dir, database_url), "head")
        return True
    except Exception:  # noqa: BLE001
        logger.exception("Failed to run migrations")
        error_path = log_dir / "migration_error.log"
        try:
            error_path.parent.mkdir(parents=True, exist_ok=True)
            with error_path.open("a", encoding="utf-8") as handle:
                handle.write("\n--- Migration error ---\n")
                handle.write(f"DB: {database_url}\n")
                handle.write(traceback.format_exc())
        except OSError:
            logger.exception("Failed to write migration error log")
        return False


def has_users(session_factory) -> bool:
    with session_factory() as session:
        return session.execute(select(UserProfileRow.id).limit(1)).first() is not None


def initialize_database(*, root_dir: Path, db_file: Path, database_url: str, log_dir: Path) -> bool:
    problem = check_startup_prerequisites(root_dir, db_file)
    if problem is None and not run_migrations(root_dir, database_url, log_dir):
        problem = f"Could not apply database migrations.\nDetails: {log_dir / 'migration_error.log'}"
    if problem is not None:
        logger.error("Startup aborted: %s", problem)
        QMessageBox.critical(None, "Error", problem)
        return False
    return True
