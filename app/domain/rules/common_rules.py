from __future__ import annotations

from typing import Final

from app.domain.rules import validators
from app.domain.rules.validation import Limit, RuleSet, ValidationRule
from app.domain.rules.validators import EMAIL_RE

NAME_CHARS_RE = r"^[a-zA-Z0-9\s'-]+\Z"

EMAIL: Final = ValidationRule(
    required=True,
    pattern=Limit(EMAIL_RE, "Please enter a valid email address"),
)
PASSWORD: Final = ValidationRule(
    required=True,
    min_length=Limit(8, "Password must be at least 8 characters"),
)
NAME: Final = ValidationRule(
    required=True,
    min_length=Limit(2, "Name must be at least 2 characters"),
    max_length=Limit(50, "Name must be no more than 50 characters"),
)
DESCRIPTION: Final = ValidationRule(
    max_length=Limit(500, "Description must be no more than 500 characters"),
)
QUANTITY: Final = ValidationRule(
    required=True,
    custom=validators.quantity("Please enter a valid quantity greater than zero"),
)
COST: Final = ValidationRule(
    required=True,
    custom=validators.cost("Please enter a valid cost greater than zero"),
)
UNIT_PRICE: Final = ValidationRule(
    required=True,
    custom=validators.cost("Please enter a valid unit price greater than zero"),
)
OPTIONAL_QUANTITY: Final = ValidationRule(
    custom=validators.non_zero_positive("Quantity must be greater than zero if provided"),
)
OPTIONAL_COST: Final = ValidationRule(
    custom=validators.non_negative("Cost cannot be negative"),
)

PROFILE_RULES: Final = RuleSet(
    {
        "name": ValidationRule(
            required=True,
            min_length=Limit(2, "Name must be at least 2 characters"),
            max_length=Limit(100, "Name must be no more than 100 characters"),
            pattern=Limit(
                NAME_CHARS_RE,
                "Name can only contain letters, numbers, spaces, hyphens, and apostrophes",
            ),
        ),
        "designation": ValidationRule(
            max_length=Limit(50, "Designation must be no more than 50 characters"),
            pattern=Limit(
                NAME_CHARS_RE,
                "Designation can only contain letters, numbers, spaces, hyphens, and apostrophes",
            ),
        ),
        "display_name": ValidationRule(
            max_length=Limit(100, "Display name must be no more than 100 characters"),
        ),
        "title": ValidationRule(
            max_length=Limit(50, "Title must be no more than 50 characters"),
        ),
        "department": ValidationRule(
            max_length=Limit(50, "Department must be no more than 50 characters"),
        ),
    }
)

LOGIN_RULES: Final = RuleSet({"email": EMAIL, "password": ValidationRule(required="Enter your password")})
