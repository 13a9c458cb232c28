"""Rule-based validation of single values and whole records.

A ``ValidationRule`` is checked in a fixed order: required presence, length,
numeric bounds, pattern and finally the custom callable. The first failing
check produces the field's message. Rules are normalised and checked when
they are built, so a malformed rule never reaches ``validate_field``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, fields
from typing import Any, NamedTuple

from app.domain.errors import RuleSetError
from app.domain.rules.validators import is_blank, to_number

CustomCheck = Callable[[Any], "str | None"]

DEFAULT_REQUIRED_MESSAGE = "This field is required"
DEFAULT_NUMBER_MESSAGE = "Please enter a valid number"
DEFAULT_PATTERN_MESSAGE = "Invalid format"


class Limit(NamedTuple):
    value: Any
    message: str


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


@dataclass(frozen=True)
class FormValidationResult:
    is_valid: bool
    errors: tuple[ValidationError, ...]

    def as_dict(self) -> dict[str, str]:
        return {error.field: error.message for error in self.errors}


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _length_limit(raw: int | Limit | None, template: str, name: str) -> Limit | None:
    if raw is None:
        return None
    limit = raw if isinstance(raw, Limit) else Limit(raw, template.format(raw))
    if isinstance(limit.value, bool) or not isinstance(limit.value, int) or limit.value < 0:
        raise RuleSetError(f"{name} must be a non-negative integer, got {limit.value!r}")
    return limit


def _value_limit(raw: float | Limit | None, template: str, name: str) -> Limit | None:
    if raw is None:
        return None
    value = raw.value if isinstance(raw, Limit) else raw
    if to_number(value) is None:
        raise RuleSetError(f"{name} must be a finite number, got {value!r}")
    if isinstance(raw, Limit):
        return raw
    return Limit(value, template.format(_format_number(value)))


def _pattern_limit(raw: str | re.Pattern[str] | Limit | None) -> Limit | None:
    if raw is None:
        return None
    source, message = (raw.value, raw.message) if isinstance(raw, Limit) else (raw, DEFAULT_PATTERN_MESSAGE)
    if isinstance(source, re.Pattern):
        return Limit(source, message)
    if not isinstance(source, str):
        raise RuleSetError(f"pattern must be a string or compiled regex, got {type(source).__name__}")
    try:
        compiled = re.compile(source)
    except re.error as exc:
        raise RuleSetError(f"Invalid pattern {source!r}: {exc}") from exc
    return Limit(compiled, message)


@dataclass(frozen=True, kw_only=True)
class ValidationRule:
    required: bool | str = False
    min_length: int | Limit | None = None
    max_length: int | Limit | None = None
    min_value: float | Limit | None = None
    max_value: float | Limit | None = None
    pattern: str | re.Pattern[str] | Limit | None = None
    custom: CustomCheck | None = None

    def __post_init__(self) -> None:
        if isinstance(self.required, str) and not self.required.strip():
            raise RuleSetError("required message must not be empty")
        if not isinstance(self.required, bool | str):
            raise RuleSetError(f"required must be a bool or message, got {self.required!r}")
        if self.custom is not None and not callable(self.custom):
            raise RuleSetError("custom validator must be callable")

        min_len = _length_limit(self.min_length, "Must be at least {} characters", "min_length")
        max_len = _length_limit(self.max_length, "Must be no more than {} characters", "max_length")
        if min_len and max_len and min_len.value > max_len.value:
            raise RuleSetError("min_length is greater than max_length")

        min_val = _value_limit(self.min_value, "Must be at least {}", "min_value")
        max_val = _value_limit(self.max_value, "Must be no more than {}", "max_value")
        if min_val and max_val and to_number(min_val.value) > to_number(max_val.value):  # type: ignore[operator]
            raise RuleSetError("min_value is greater than max_value")

        object.__setattr__(self, "min_length", min_len)
        object.__setattr__(self, "max_length", max_len)
        object.__setattr__(self, "min_value", min_val)
        object.__setattr__(self, "max_value", max_val)
        object.__setattr__(self, "pattern", _pattern_limit(self.pattern))

    @property
    def required_message(self) -> str:
        return self.required if isinstance(self.required, str) else DEFAULT_REQUIRED_MESSAGE

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ValidationRule:
        known = {item.name for item in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise RuleSetError(f"Unknown rule keys: {', '.join(sorted(unknown))}")
        return cls(**data)


def _coerce_rule(name: str, rule: ValidationRule | Mapping[str, Any]) -> ValidationRule:
    if isinstance(rule, ValidationRule):
        return rule
    if isinstance(rule, Mapping):
        return ValidationRule.from_mapping(rule)
    raise RuleSetError(f"Rule for field {name!r} must be a ValidationRule or mapping")


class RuleSet(Mapping[str, ValidationRule]):
    """Read-only, ordered mapping of field name to rule."""

    def __init__(self, rules: Mapping[str, ValidationRule | Mapping[str, Any]] | None = None) -> None:
        compiled: dict[str, ValidationRule] = {}
        for name, rule in (rules or {}).items():
            if not isinstance(name, str) or not name:
                raise RuleSetError(f"Field names must be non-empty strings, got {name!r}")
            compiled[name] = _coerce_rule(name, rule)
        self._rules = compiled

    def __getitem__(self, name: str) -> ValidationRule:
        return self._rules[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({list(self._rules)!r})"


def build_rule_set(rules: Mapping[str, ValidationRule | Mapping[str, Any]] | None) -> RuleSet:
    if isinstance(rules, RuleSet):
        return rules
    return RuleSet(rules)


def _check_length(value: Any, rule: ValidationRule) -> str | None:
    if not isinstance(value, str | list | tuple | set | frozenset):
        return None
    size = len(value)
    min_len = rule.min_length
    max_len = rule.max_length
    if isinstance(min_len, Limit) and size < min_len.value:
        return min_len.message
    if isinstance(max_len, Limit) and size > max_len.value:
        return max_len.message
    return None


def _check_bounds(value: Any, rule: ValidationRule) -> str | None:
    min_val = rule.min_value
    max_val = rule.max_value
    if min_val is None and max_val is None:
        return None
    parsed = to_number(value)
    if parsed is None:
        return DEFAULT_NUMBER_MESSAGE
    if isinstance(min_val, Limit) and parsed < to_number(min_val.value):  # type: ignore[operator]
        return min_val.message
    if isinstance(max_val, Limit) and parsed > to_number(max_val.value):  # type: ignore[operator]
        return max_val.message
    return None


def _check_pattern(value: Any, rule: ValidationRule) -> str | None:
    limit = rule.pattern
    if isinstance(limit, Limit) and limit.value.search(str(value)) is None:
        return limit.message
    return None


def validate_field(value: Any, rule: ValidationRule) -> str | None:
    if is_blank(value):
        return rule.required_message if rule.required else None
    for check in (_check_length, _check_bounds, _check_pattern):
        error = check(value, rule)
        if error:
            return error
    if rule.custom is not None:
        return rule.custom(value) or None
    return None


def validate_form(
    record: Mapping[str, Any],
    rules: Mapping[str, ValidationRule | Mapping[str, Any]],
) -> FormValidationResult:
    rule_set = build_rule_set(rules)
    errors = tuple(
        ValidationError(field=name, message=message)
        for name, rule in rule_set.items()
        if (message := validate_field(record.get(name), rule)) is not None
    )
    return FormValidationResult(is_valid=not errors, errors=errors)
