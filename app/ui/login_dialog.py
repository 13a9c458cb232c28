from __future__ import annotations

import logging

from pydantic import ValidationError
from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QDialog,
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from app.application.dto.auth_dto import LoginRequest, SessionContext
from app.application.forms.form_state import FormStateController
from app.application.services.auth_service import AuthService
from app.config import settings
from app.domain.errors import AuthenticationError
from app.domain.rules.common_rules import LOGIN_RULES
from app.ui.widgets.form_binding import bind_fields, qt_scheduler
from app.ui.widgets.notifications import clear_status, set_status

logger = logging.getLogger(__name__)


class LoginDialog(QDialog):
    def __init__(
        self,
        auth_service: AuthService,
        parent: QWidget | None = None,
        *,
        max_attempts: int | None = None,
        lockout_seconds: int | None = None,
    ) -> None:
        super().__init__(parent)
        self.auth_service = auth_service
        self.session: SessionContext | None = None
        self.max_attempts = max_attempts or settings.login_max_attempts
        self.lockout_seconds = lockout_seconds or settings.login_lockout_seconds
        self.form = FormStateController(
            {"email": "", "password": ""},
            LOGIN_RULES,
            validate_on_blur=True,
            scheduler=qt_scheduler,
        )
        self._failed_attempts = 0
        self._lockout_remaining = 0
        self._lockout_timer: QTimer | None = None
        self.setObjectName("loginDialog")
        self.setWindowTitle("Sign in - GSR Operations")
        self.setModal(True)
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(12)

        title = QLabel("GSR Operations")
        title.setObjectName("loginAppTitle")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title)

        card = QFrame()
        card.setObjectName("loginCard")
        card_layout = QVBoxLayout(card)

        form = QFormLayout()
        self.email_edit = QLineEdit()
        self.email_edit.setPlaceholderText("name@company.com")
        self.email_edit.setClearButtonEnabled(True)
        self.email_error = QLabel()
        self.password_edit = QLineEdit()
        self.password_edit.setEchoMode(QLineEdit.EchoMode.Password)
        self.password_edit.returnPressed.connect(self._on_login)
        self.password_error = QLabel()
        form.addRow("Email", self.email_edit)
        form.addRow("", self.email_error)
        form.addRow("Password", self.password_edit)
        form.addRow("", self.password_error)
        card_layout.addLayout(form)

        self.bindings = bind_fields(
            self.form,
            {
                "email": (self.email_edit, self.email_error),
                "password": (self.password_edit, self.password_error),
            },
        )

        self.error_label = QLabel()
        clear_status(self.error_label)
        self.lock_label = QLabel()
        clear_status(self.lock_label)
        card_layout.addWidget(self.error_label)
        card_layout.addWidget(self.lock_label)

        self.login_btn = QPushButton("Sign in")
        self.login_btn.setDefault(True)
        self.login_btn.clicked.connect(self._on_login)
        cancel_btn = QPushButton("Cancel")
        cancel_btn.setObjectName("secondaryButton")
        cancel_btn.clicked.connect(self.reject)
        buttons = QHBoxLayout()
        buttons.addWidget(self.login_btn)
        buttons.addStretch()
        buttons.addWidget(cancel_btn)
        card_layout.addLayout(buttons)

        layout.addWidget(card)
        self.email_edit.setFocus()

    def _on_login(self) -> None:
        if self._lockout_timer is not None:
            return
        clear_status(self.error_label)
        if not self.form.validate_form():
            return
        values = self.form.values
        try:
            request = LoginRequest(email=values["email"], password=values["password"])
            session_ctx = self.auth_service.login(request)
        except (ValidationError, AuthenticationError) as exc:
            message = exc.errors()[0]["msg"] if isinstance(exc, ValidationError) else str(exc)
            set_status(self.error_label, message, "error")
            self._register_failure()
            return

        self._failed_attempts = 0
        self.session = session_ctx
        self.accept()

    def _register_failure(self) -> None:
        self._failed_attempts += 1
        self.form.reset({"email": self.form.values["email"]})
        if self._failed_attempts >= self.max_attempts:
            logger.warning("Login locked for %d s after %d failed attempts", self.lockout_seconds, self._failed_attempts)
            self._start_lockout()

    def _start_lockout(self) -> None:
        self._lockout_remaining = self.lockout_seconds
        self.login_btn.setEnabled(False)
        self._show_lockout()
        timer = QTimer(self)
        timer.setInterval(1000)
        timer.timeout.connect(self._tick_lockout)
        self._lockout_timer = timer
        timer.start()

    def _tick_lockout(self) -> None:
        self._lockout_remaining -= 1
        if self._lockout_remaining > 0:
            self._show_lockout()
            return
        if self._lockout_timer is not None:
            self._lockout_timer.stop()
            self._lockout_timer = None
        self._failed_attempts = 0
        self.login_btn.setEnabled(True)
        clear_status(self.lock_label)

    def _show_lockout(self) -> None:
        set_status(
            self.lock_label,
            f"Too many failed attempts. Try again in {self._lockout_remaining} s.",
            "error",
        )
