from __future__ import annotations

from typing import Any

from PySide6.QtWidgets import (
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from app.application.dto.auth_dto import ProfileUpdateRequest, UserProfile
from app.application.forms.form_state import FormStateController
from app.application.security.guards import GUARDS
from app.application.security.role_matrix import (
    can_access_financial_data,
    can_manage_customers,
    can_modify_inventory,
)
from app.application.services.profile_service import SETTINGS_FIELDS, ProfileService
from app.domain.rules.common_rules import PROFILE_RULES
from app.ui.widgets.form_binding import bind_fields, qt_scheduler
from app.ui.widgets.notifications import clear_status, set_status

FIELD_LABELS = {
    "name": "Name",
    "designation": "Designation",
    "display_name": "Display name",
    "title": "Title",
    "department": "Department",
}


def profile_form_values(user: UserProfile) -> dict[str, Any]:
    values: dict[str, Any] = {"name": user.name or "", "designation": user.designation or ""}
    for key in SETTINGS_FIELDS:
        values[key] = user.custom_settings.get(key) or ""
    return values


def capability_summary(user: UserProfile) -> list[str]:
    lines = [f"Role: {user.role}"]
    if can_access_financial_data(user):
        lines.append("Can view financial data")
    if can_modify_inventory(user):
        lines.append("Can update inventory")
    if can_manage_customers(user):
        lines.append("Can manage customers")
    if GUARDS["manage_users"].allows(user):
        lines.append("Can manage users")
    return lines


class ProfileDialog(QDialog):
    def __init__(self, user: UserProfile, profile_service: ProfileService, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.user = user
        self.profile_service = profile_service
        self.form = FormStateController(profile_form_values(user), PROFILE_RULES, scheduler=qt_scheduler)
        self.setObjectName("profileDialog")
        self.setWindowTitle("My profile")
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        header = QLabel(self.user.email)
        header.setObjectName("profileEmail")
        layout.addWidget(header)
        self.capabilities_label = QLabel("\n".join(capability_summary(self.user)))
        self.capabilities_label.setObjectName("muted")
        layout.addWidget(self.capabilities_label)

        form = QFormLayout()
        self.edits: dict[str, QLineEdit] = {}
        widgets: dict[str, tuple[QLineEdit, QLabel | None]] = {}
        for name, label in FIELD_LABELS.items():
            edit = QLineEdit()
            error = QLabel()
            form.addRow(label, edit)
            form.addRow("", error)
            self.edits[name] = edit
            widgets[name] = (edit, error)
        layout.addLayout(form)
        self.bindings = bind_fields(self.form, widgets)

        self.status_label = QLabel()
        clear_status(self.status_label)
        layout.addWidget(self.status_label)

        self.save_btn = QPushButton("Save")
        self.save_btn.setDefault(True)
        self.save_btn.clicked.connect(self._on_save)
        reset_btn = QPushButton("Reset")
        reset_btn.setObjectName("secondaryButton")
        reset_btn.clicked.connect(self._on_reset)
        close_btn = QPushButton("Close")
        close_btn.setObjectName("secondaryButton")
        close_btn.clicked.connect(self.accept)
        buttons = QHBoxLayout()
        buttons.addWidget(self.save_btn)
        buttons.addWidget(reset_btn)
        buttons.addStretch()
        buttons.addWidget(close_btn)
        layout.addLayout(buttons)

    def _on_reset(self) -> None:
        self.form.reset()
        clear_status(self.status_label)

    def _on_save(self) -> None:
        clear_status(self.status_label)
        if not self.form.validate_form():
            set_status(self.status_label, "Please fix the highlighted fields.", "warning")
            return
        request = ProfileUpdateRequest(**self.form.values)
        result = self.profile_service.update_profile(self.user.id, request, actor_id=self.user.id)
        if not result.success:
            for error in result.errors:
                self.form.set_error(error.field, error.message)
            set_status(self.status_label, result.message, "error")
            return
        if result.user is not None:
            self.user = result.user
            self.form = self._rebind(profile_form_values(result.user))
        set_status(self.status_label, result.message, "success")

    def _rebind(self, values: dict[str, Any]) -> FormStateController:
        for binding in self.bindings.values():
            binding.unbind()
        form = FormStateController(values, PROFILE_RULES, scheduler=qt_scheduler)
        self.bindings = bind_fields(
            form, {name: (binding.edit, binding.error_label) for name, binding in self.bindings.items()}
        )
        return form
