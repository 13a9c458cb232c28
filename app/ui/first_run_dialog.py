from __future__ import annotations

import logging

from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
    QWidget,
)

from app.application.dto.auth_dto import CreateUserRequest
from app.application.forms.form_state import FormStateController
from app.application.services.profile_service import ProfileService
from app.domain.constants import UserRole
from app.domain.rules.common_rules import EMAIL, PASSWORD
from app.domain.rules.validation import RuleSet, ValidationRule
from app.ui.widgets.form_binding import bind_fields, qt_scheduler
from app.ui.widgets.notifications import clear_status, set_status

logger = logging.getLogger(__name__)

FIRST_ADMIN_RULES = RuleSet(
    {
        "email": EMAIL,
        "password": PASSWORD,
        "confirm": ValidationRule(required="Repeat the password"),
    }
)


class FirstRunDialog(QDialog):
    """Creates the first administrator on an empty database."""

    def __init__(self, profile_service: ProfileService, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.profile_service = profile_service
        self.form = FormStateController(
            {"email": "", "password": "", "confirm": ""},
            FIRST_ADMIN_RULES,
            scheduler=qt_scheduler,
        )
        self.setObjectName("firstRunDialog")
        self.setWindowTitle("First run")
        self.setModal(True)
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        subtitle = QLabel("Create the first administrator account.")
        subtitle.setWordWrap(True)
        layout.addWidget(subtitle)

        form = QFormLayout()
        widgets: dict[str, tuple[QLineEdit, QLabel | None]] = {}
        for name, label, secret in (
            ("email", "Admin email", False),
            ("password", "Password (at least 8 characters)", True),
            ("confirm", "Repeat password", True),
        ):
            edit = QLineEdit()
            if secret:
                edit.setEchoMode(QLineEdit.EchoMode.Password)
            error = QLabel()
            form.addRow(label, edit)
            form.addRow("", error)
            widgets[name] = (edit, error)
        layout.addLayout(form)
        self.bindings = bind_fields(self.form, widgets)

        self.error_label = QLabel()
        clear_status(self.error_label)
        layout.addWidget(self.error_label)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        ok_btn = buttons.button(QDialogButtonBox.StandardButton.Ok)
        if ok_btn:
            ok_btn.setText("Create")
            ok_btn.clicked.connect(self._on_create)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _on_create(self) -> None:
        clear_status(self.error_label)
        if not self.form.validate_form():
            return
        values = self.form.values
        if values["password"] != values["confirm"]:
            self.form.set_error("confirm", "Passwords do not match")
            return
        try:
            request = CreateUserRequest(email=values["email"], password=values["password"])
            self.profile_service.create_profile(request, role=UserRole.ADMIN.value)
        except ValueError as exc:
            set_status(self.error_label, str(exc), "error")
            return
        logger.info("First administrator %s created", values["email"])
        self.accept()
