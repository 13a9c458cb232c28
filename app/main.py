from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

_BUNDLE_DIR = getattr(sys, "_MEIPASS", None)
ROOT_DIR = Path(_BUNDLE_DIR) if _BUNDLE_DIR else Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from PySide6.QtCore import QtMsgType, qInstallMessageHandler  # noqa: E402
from PySide6.QtWidgets import QApplication, QDialog, QMessageBox  # noqa: E402

from app.bootstrap.startup import has_users, initialize_database  # noqa: E402
from app.config import DB_FILE, LOG_DIR, settings  # noqa: E402
from app.container import Container, build_container  # noqa: E402
from app.ui.first_run_dialog import FirstRunDialog  # noqa: E402
from app.ui.login_dialog import LoginDialog  # noqa: E402
from app.ui.profile_dialog import ProfileDialog  # noqa: E402

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("gsr_operations")

_QT_LEVELS = {
    QtMsgType.QtFatalMsg: logging.CRITICAL,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtWarningMsg: logging.WARNING,
}


def _configure_logging(log_dir: Path) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "gsr_operations.log"
    file_handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=logging.INFO, handlers=[file_handler], force=True)
    return log_file


def _install_excepthook(log_file: Path) -> None:
    def _report(exc_type, exc, tb) -> None:
        logger.error("Unhandled exception", exc_info=(exc_type, exc, tb))
        if QApplication.instance() is not None:
            QMessageBox.critical(
                None,
                "GSR Operations",
                f"Something went wrong and the action was not completed.\nDetails were written to {log_file}",
            )
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _report


def _route_qt_messages() -> None:
    qt_logger = logging.getLogger("gsr_operations.qt")

    def _forward(msg_type: QtMsgType, _context, message: str) -> None:
        qt_logger.log(_QT_LEVELS.get(msg_type, logging.INFO), "%s", message)

    qInstallMessageHandler(_forward)


def run_session(container: Container) -> int:
    """First-run setup when needed, then login, then the user's profile."""
    if not has_users(container.profile_service.session_factory):
        setup = FirstRunDialog(profile_service=container.profile_service)
        if setup.exec() != QDialog.DialogCode.Accepted:
            logger.info("First-run setup cancelled")
            return 0

    login = LoginDialog(
        auth_service=container.auth_service,
        lockout_seconds=settings.login_lockout_seconds,
    )
    if login.exec() != QDialog.DialogCode.Accepted or login.session is None:
        return 0

    ProfileDialog(user=login.session.user, profile_service=container.profile_service).exec()
    return 0


def main() -> int:
    log_file = _configure_logging(LOG_DIR)
    _install_excepthook(log_file)
    _route_qt_messages()

    app = QApplication(sys.argv)
    app.setApplicationName("GSR Operations")
    ready = initialize_database(
        root_dir=ROOT_DIR,
        db_file=DB_FILE,
        database_url=settings.database_url,
        log_dir=LOG_DIR,
    )
    if not ready:
        return 1
    return run_session(build_container())


if __name__ == "__main__":
    sys.exit(main())
