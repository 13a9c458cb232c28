from __future__ import annotations

from decimal import Decimal

import pytest

from app.domain.rules import validators


@pytest.mark.parametrize("value", [None, "", "   ", [], {}, set()])
def test_is_blank(value: object) -> None:
    assert validators.is_blank(value) is True


@pytest.mark.parametrize("value", [0, False, "0", ["x"]])
def test_is_not_blank(value: object) -> None:
    assert validators.is_blank(value) is False


def test_to_number() -> None:
    assert validators.to_number(" 2.5 ") == 2.5
    assert validators.to_number(Decimal("3")) == 3.0
    assert validators.to_number(True) is None
    assert validators.to_number("nan") is None
    assert validators.to_number(float("inf")) is None
    assert validators.to_number("12abc") is None
    assert validators.to_number(Decimal("sNaN")) is None
    assert validators.to_number(Decimal("NaN")) is None
    assert validators.to_number(Decimal("Infinity")) is None
    assert validators.to_number(10**400) is None


def test_email() -> None:
    check = validators.email()

    assert check("ops@gsr.in") is None
    assert check("") is None
    assert check("not-an-email") == "Please enter a valid email address"
    assert check("a b@c.d") == "Please enter a valid email address"
    assert check("ops@gsr.in\n") == "Please enter a valid email address"


def test_phone_pattern() -> None:
    check = validators.pattern(validators.PHONE_RE, "Please enter a valid phone number")

    assert check("+91 98765 43210") is None
    assert check("12345") == "Please enter a valid phone number"


def test_gst_pattern() -> None:
    check = validators.pattern(validators.GST_RE, "Invalid GST number")

    assert check("27AAPFU0939F1ZV") is None
    assert check("27aapfu0939f1zv") == "Invalid GST number"
    assert check("27AAPFU0939F1ZV\n") == "Invalid GST number"


def test_quantity_requires_positive_integer() -> None:
    check = validators.quantity()

    assert check(3) is None
    assert check("4") is None
    assert check(2.5) is not None
    assert check(0) is not None
    assert check(-1) is not None


def test_cost_non_negative_and_non_zero_positive() -> None:
    assert validators.cost()(0) is not None
    assert validators.cost()(0.01) is None
    assert validators.non_negative()(0) is None
    assert validators.non_negative()(-0.5) == "Value cannot be negative"
    assert validators.non_zero_positive()(0) == "Value must be greater than zero"
    assert validators.positive_number()("x") == "Please enter a positive number"


def test_number() -> None:
    assert validators.number()("1e3") is None
    assert validators.number()("ten") == "Please enter a valid number"


def test_length_validators() -> None:
    assert validators.min_length(3)("ab") == "Must be at least 3 characters"
    assert validators.max_length(3, "Too long")("abcd") == "Too long"
    assert validators.min_length(3)("") is None


def test_chain_returns_first_failure() -> None:
    check = validators.chain(
        validators.required("Required"),
        validators.min_length(4, "Too short"),
        validators.pattern(r"^\d+$", "Digits only"),
    )

    assert check("") == "Required"
    assert check("12") == "Too short"
    assert check("12ab") == "Digits only"
    assert check("1234") is None
