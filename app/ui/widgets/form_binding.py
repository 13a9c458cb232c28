from __future__ import annotations

from collections.abc import Callable, Mapping

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QLabel, QLineEdit

from app.application.forms.form_state import FormField, FormStateController
from app.ui.widgets.notifications import set_field_error


def qt_scheduler(callback: Callable[[], None]) -> None:
    """Run ``callback`` on the next turn of the Qt event loop."""
    QTimer.singleShot(0, callback)


class FieldBinding:
    """Keeps a line edit and its error label in step with one controller field."""

    def __init__(
        self,
        controller: FormStateController,
        name: str,
        edit: QLineEdit,
        error_label: QLabel | None = None,
    ) -> None:
        self.controller = controller
        self.name = name
        self.edit = edit
        self.error_label = error_label
        props = controller.get_field_props(name)
        self._on_change = props.on_change
        self._on_blur = props.on_blur
        self._sync(controller.fields)
        edit.textChanged.connect(self._handle_text_changed)
        edit.editingFinished.connect(self._on_blur)
        self._unsubscribe = controller.subscribe(self._sync)

    def unbind(self) -> None:
        self._unsubscribe()
        self.edit.textChanged.disconnect(self._handle_text_changed)
        self.edit.editingFinished.disconnect(self._on_blur)

    def _handle_text_changed(self, text: str) -> None:
        self._on_change(text)

    def _sync(self, fields: Mapping[str, FormField]) -> None:
        state = fields[self.name]
        text = "" if state.value is None else str(state.value)
        if self.edit.text() != text:
            blocked = self.edit.blockSignals(True)
            self.edit.setText(text)
            self.edit.blockSignals(blocked)
        if self.error_label is not None:
            set_field_error(self.error_label, state.error)


def bind_fields(
    controller: FormStateController,
    widgets: Mapping[str, tuple[QLineEdit, QLabel | None]],
) -> dict[str, FieldBinding]:
    return {name: FieldBinding(controller, name, edit, label) for name, (edit, label) in widgets.items()}
