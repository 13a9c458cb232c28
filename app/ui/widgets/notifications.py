from __future__ import annotations

from PySide6.QtWidgets import QLabel

STATUS_LEVELS = ("success", "warning", "error", "info")


def _repolish(label: QLabel) -> None:
    # statusLevel drives the stylesheet selector; Qt only re-reads it on polish.
    label.style().unpolish(label)
    label.style().polish(label)
    label.update()


def set_status(label: QLabel, message: str, level: str = "info") -> None:
    """Show ``message`` in ``label`` styled by level; an empty message hides it."""
    if not message:
        clear_status(label)
        return
    if level not in STATUS_LEVELS:
        level = "info"
    label.setObjectName("statusLabel")
    label.setWordWrap(True)
    label.setText(message)
    label.setProperty("statusLevel", level)
    label.setVisible(True)
    _repolish(label)


def clear_status(label: QLabel) -> None:
    label.clear()
    label.setProperty("statusLevel", "")
    label.setVisible(False)
    _repolish(label)


def set_field_error(label: QLabel, message: str | None) -> None:
    """Inline error under a field: shown when ``message`` is set, hidden otherwise."""
    if message:
        set_status(label, message, "error")
    else:
        clear_status(label)
