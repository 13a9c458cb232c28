"""Per-form field state driven by the validation rules.

Every state change builds a complete new field mapping and swaps it in with a
single assignment, so a reader (or a subscribed widget) only ever sees a
whole snapshot.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any

from app.domain.errors import UnknownFieldError
from app.domain.rules.validation import (
    RuleSet,
    ValidationError,
    ValidationRule,
    build_rule_set,
)
from app.domain.rules.validation import validate_field as validate_value
from app.domain.rules.validation import validate_form as validate_record

Scheduler = Callable[[Callable[[], None]], None]
Listener = Callable[[Mapping[str, "FormField"]], None]


@dataclass(frozen=True)
class FormField:
    value: Any = None
    touched: bool = False
    error: str | None = None


@dataclass(frozen=True)
class FieldProps:
    value: Any
    on_change: Callable[[Any], None]
    on_blur: Callable[[], None]
    error: str | None


def run_immediately(callback: Callable[[], None]) -> None:
    callback()


class FormStateController:
    def __init__(
        self,
        initial_values: Mapping[str, Any],
        rules: Mapping[str, ValidationRule | Mapping[str, Any]],
        *,
        validate_on_change: bool = False,
        validate_on_blur: bool = True,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._rules: RuleSet = build_rule_set(rules)
        self._initial_values = dict(initial_values)
        self._validate_on_change = validate_on_change
        self._validate_on_blur = validate_on_blur
        self._scheduler = scheduler or run_immediately
        self._listeners: list[Listener] = []
        self._generation = 0
        self._fields = self._build_fields(self._initial_values)

    @property
    def rules(self) -> RuleSet:
        return self._rules

    @property
    def fields(self) -> Mapping[str, FormField]:
        return self._fields

    @property
    def values(self) -> dict[str, Any]:
        return {name: state.value for name, state in self._fields.items()}

    @property
    def errors(self) -> list[ValidationError]:
        return [
            ValidationError(field=name, message=state.error)
            for name, state in self._fields.items()
            if state.error
        ]

    @property
    def is_valid(self) -> bool:
        # Recomputed from values on every read; touched state is irrelevant.
        return validate_record(self.values, self._rules).is_valid

    def field(self, name: str) -> FormField:
        self._require(name)
        return self._fields[name]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_value(self, name: str, value: Any) -> None:
        self._update(name, value=value, touched=True)
        if self._validate_on_change:
            generation = self._generation
            self._scheduler(lambda: self._run_scheduled_validation(name, generation))

    def handle_change(self, name: str) -> Callable[[Any], None]:
        self._require(name)
        return lambda value: self.set_value(name, value)

    def handle_blur(self, name: str) -> None:
        self._require(name)
        changes: dict[str, Any] = {"touched": True}
        rule = self._rules.get(name)
        if self._validate_on_blur and rule is not None:
            changes["error"] = validate_value(self._fields[name].value, rule)
        self._update(name, **changes)

    def validate_field(self, name: str) -> bool:
        self._require(name)
        rule = self._rules.get(name)
        if rule is None:
            return True
        error = validate_value(self._fields[name].value, rule)
        self._update(name, error=error)
        return error is None

    def validate_form(self) -> bool:
        result = validate_record(self.values, self._rules)
        messages = result.as_dict()
        self._commit(
            {name: replace(state, error=messages.get(name)) for name, state in self._fields.items()}
        )
        return result.is_valid

    def set_error(self, name: str, error: str) -> None:
        self._update(name, error=error)

    def clear_error(self, name: str) -> None:
        self._update(name, error=None)

    def clear_all_errors(self) -> None:
        self._commit({name: replace(state, error=None) for name, state in self._fields.items()})

    def reset(self, new_initial_values: Mapping[str, Any] | None = None) -> None:
        overrides = dict(new_initial_values or {})
        unknown = set(overrides) - set(self._fields)
        if unknown:
            raise UnknownFieldError(f"Unknown form field(s): {', '.join(sorted(unknown))}")
        self._generation += 1
        self._fields = self._build_fields({**self._initial_values, **overrides})
        self._notify()

    def get_field_props(self, name: str) -> FieldProps:
        state = self.field(name)
        return FieldProps(
            value="" if state.value is None else state.value,
            on_change=self.handle_change(name),
            on_blur=lambda: self.handle_blur(name),
            error=state.error,
        )

    def _build_fields(self, values: Mapping[str, Any]) -> Mapping[str, FormField]:
        names = list(values) + [name for name in self._rules if name not in values]
        return MappingProxyType({name: FormField(value=values.get(name)) for name in names})

    def _run_scheduled_validation(self, name: str, generation: int) -> None:
        # A reset in between supersedes the edit that scheduled this run.
        if generation != self._generation:
            return
        self.validate_field(name)

    def _require(self, name: str) -> None:
        if name not in self._fields:
            raise UnknownFieldError(f"Unknown form field: {name!r}")

    def _update(self, name: str, **changes: Any) -> None:
        self._require(name)
        self._commit({name: replace(self._fields[name], **changes)})

    def _commit(self, updates: Mapping[str, FormField]) -> None:
        merged = dict(self._fields)
        merged.update(updates)
        self._fields = MappingProxyType(merged)
        self._notify()

    def _notify(self) -> None:
        snapshot = self._fields
        for listener in list(self._listeners):
            listener(snapshot)
