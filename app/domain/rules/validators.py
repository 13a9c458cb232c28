from __future__ import annotations

import math
import re
from collections.abc import Callable
from decimal import Decimal
from typing import Any

Validator = Callable[[Any], "str | None"]

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+\Z")
PHONE_RE = re.compile(r"^[+]?[\d\s\-()]{10,15}\Z")
GST_RE = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]\Z")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | tuple | set | frozenset | dict):
        return len(value) == 0
    return False


def to_number(value: Any) -> float | None:
    """Parse ``value`` as a finite number, ``None`` when it is not one.

    Booleans, NaN and infinities are rejected so that numeric rules never
    pass on a coerced value.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        number = float(value)
    elif isinstance(value, int | float):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def required(message: str = "This field is required") -> Validator:
    def _check(value: Any) -> str | None:
        return message if is_blank(value) else None

    return _check


def min_length(limit: int, message: str | None = None) -> Validator:
    def _check(value: Any) -> str | None:
        if is_blank(value):
            return None
        if len(str(value)) < limit:
            return message or f"Must be at least {limit} characters"
        return None

    return _check


def max_length(limit: int, message: str | None = None) -> Validator:
    def _check(value: Any) -> str | None:
        if is_blank(value):
            return None
        if len(str(value)) > limit:
            return message or f"Must be no more than {limit} characters"
        return None

    return _check


def pattern(regex: str | re.Pattern[str], message: str = "Invalid format") -> Validator:
    compiled = re.compile(regex) if isinstance(regex, str) else regex

    def _check(value: Any) -> str | None:
        if is_blank(value):
            return None
        if compiled.search(str(value)) is None:
            return message
        return None

    return _check


def email(message: str = "Please enter a valid email address") -> Validator:
    return pattern(EMAIL_RE, message)


def number(message: str = "Please enter a valid number") -> Validator:
    def _check(value: Any) -> str | None:
        if is_blank(value):
            return None
        return message if to_number(value) is None else None

    return _check


def _numeric_guard(accept: Callable[[float], bool], message: str) -> Validator:
    def _check(value: Any) -> str | None:
        if is_blank(value):
            return None
        parsed = to_number(value)
        if parsed is None or not accept(parsed):
            return message
        return None

    return _check


def positive_number(message: str = "Please enter a positive number") -> Validator:
    return _numeric_guard(lambda n: n > 0, message)


def non_zero_positive(message: str = "Value must be greater than zero") -> Validator:
    return _numeric_guard(lambda n: n > 0, message)


def non_negative(message: str = "Value cannot be negative") -> Validator:
    return _numeric_guard(lambda n: n >= 0, message)


def quantity(message: str = "Please enter a valid quantity greater than zero") -> Validator:
    return _numeric_guard(lambda n: n > 0 and n.is_integer(), message)


def cost(message: str = "Please enter a valid cost greater than zero") -> Validator:
    return _numeric_guard(lambda n: n > 0, message)


def chain(*validators: Validator) -> Validator:
    """Run ``validators`` in order and return the first message."""

    def _check(value: Any) -> str | None:
        for validator in validators:
            error = validator(value)
            if error:
                return error
        return None

    return _check
