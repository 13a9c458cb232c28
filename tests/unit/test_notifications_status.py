from __future__ import annotations

from PySide6.QtWidgets import QLabel

from app.ui.widgets.notifications import clear_status, set_field_error, set_status


def test_set_status_uses_dynamic_level_property(qapp) -> None:  # noqa: ARG001
    label = QLabel()

    set_status(label, "ok", "warning")

    assert label.objectName() == "statusLabel"
    assert label.property("statusLevel") == "warning"
    assert label.text() == "ok"


def test_unknown_level_falls_back_to_info(qapp) -> None:  # noqa: ARG001
    label = QLabel()

    set_status(label, "hello", "loud")

    assert label.property("statusLevel") == "info"


def test_clear_status_resets_dynamic_level_property(qapp) -> None:  # noqa: ARG001
    label = QLabel()
    set_status(label, "error", "error")

    clear_status(label)

    assert label.property("statusLevel") == ""
    assert label.text() == ""
    assert label.isHidden() is True


def test_set_field_error(qapp) -> None:  # noqa: ARG001
    label = QLabel()

    set_field_error(label, "Name is required")
    assert label.text() == "Name is required"
    assert label.property("statusLevel") == "error"

    set_field_error(label, None)
    assert label.text() == ""
