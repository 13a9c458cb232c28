from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, FiniteFloat, ValidationInfo, field_validator

from app.domain.constants import BatchStatus, OrderStatus, UserRole
from app.domain.rules import validators
from app.domain.rules.validation import Limit, ValidationRule, validate_field
from app.domain.rules.validators import EMAIL_RE, GST_RE, PHONE_RE


def _checked(rule: ValidationRule) -> AfterValidator:
    def _check(value: Any) -> Any:
        error = validate_field(value, rule)
        if error:
            raise ValueError(error)
        return value

    return AfterValidator(_check)


def _choice(allowed: Iterable[str], message: str) -> AfterValidator:
    options = {str(item) for item in allowed}
    return _checked(
        ValidationRule(required=message, custom=lambda value: None if value in options else message)
    )


def _positive_at_most(limit: float, positive_message: str, limit_message: str) -> AfterValidator:
    return _checked(
        ValidationRule(
            max_value=Limit(limit, limit_message),
            custom=validators.non_zero_positive(positive_message),
        )
    )


def _required_text(message: str, min_len: Limit | None = None, max_len: Limit | None = None) -> AfterValidator:
    return _checked(ValidationRule(required=message, min_length=min_len, max_length=max_len))


def _optional_text(limit: int, message: str) -> AfterValidator:
    return _checked(ValidationRule(max_length=Limit(limit, message)))


_EMAIL = _checked(
    ValidationRule(
        pattern=Limit(EMAIL_RE, "Please enter a valid email address"),
        max_length=Limit(255, "Email cannot exceed 255 characters"),
    )
)
_PHONE = _checked(ValidationRule(pattern=Limit(PHONE_RE, "Please enter a valid phone number")))
_REQUIRED_PHONE = _checked(
    ValidationRule(required=True, pattern=Limit(PHONE_RE, "Please enter a valid phone number"))
)
_GST = _checked(ValidationRule(pattern=Limit(GST_RE, "Please enter a valid GST number")))
_NAME = _required_text(
    "Name is required",
    Limit(2, "Name must be at least 2 characters"),
    Limit(100, "Name cannot exceed 100 characters"),
)


class _Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class MaterialIntakeRequest(_Schema):
    supplier_id: Annotated[str, _required_text("Please select a supplier")]
    raw_material_id: Annotated[str, _required_text("Please select a raw material")]
    quantity: Annotated[
        FiniteFloat,
        _positive_at_most(100_000, "Quantity must be greater than zero", "Quantity cannot exceed 100,000 units"),
    ]
    cost_per_unit: Annotated[
        FiniteFloat,
        _positive_at_most(10_000, "Cost per unit must be greater than zero", "Cost per unit cannot exceed 10,000"),
    ]
    lot_number: str | None = None
    intake_date: date
    expiry_date: date | None = None
    quality_notes: Annotated[str | None, _optional_text(500, "Quality notes cannot exceed 500 characters")] = None

    @field_validator("expiry_date")
    @classmethod
    def _expiry_after_intake(cls, value: date | None, info: ValidationInfo) -> date | None:
        intake = info.data.get("intake_date")
        if value is not None and intake is not None and value <= intake:
            raise ValueError("Expiry date must be after intake date")
        return value


class ProductionInputRequest(_Schema):
    material_intake_id: Annotated[str, _required_text("Please select a material")]
    quantity_used: Annotated[
        FiniteFloat,
        _positive_at_most(10_000, "Quantity used must be greater than zero", "Quantity used cannot exceed 10,000 kg"),
    ]


class ProductionBatchRequest(_Schema):
    batch_number: Annotated[
        str,
        _required_text(
            "Batch number is required",
            Limit(3, "Batch number must be at least 3 characters"),
            Limit(50, "Batch number cannot exceed 50 characters"),
        ),
    ]
    production_date: date
    output_litres: Annotated[
        FiniteFloat,
        _positive_at_most(50_000, "Output must be greater than zero", "Output cannot exceed 50,000 litres"),
    ]
    quality_notes: Annotated[str | None, _optional_text(1000, "Quality notes cannot exceed 1000 characters")] = None
    status: Annotated[
        str,
        _choice(BatchStatus, "Please select a valid status"),
    ] = BatchStatus.IN_PROGRESS.value
    inputs: Annotated[
        list[ProductionInputRequest],
        _checked(
            ValidationRule(
                required="At least one input material is required",
                max_length=Limit(20, "Cannot have more than 20 input materials"),
            )
        ),
    ]

    @field_validator("production_date")
    @classmethod
    def _within_last_year(cls, value: date) -> date:
        today = date.today()
        if value > today or value < today - timedelta(days=365):
            raise ValueError("Production date must be within the last year and not in the future")
        return value


class OrderItemRequest(_Schema):
    batch_id: Annotated[str, _required_text("Please select a batch")]
    quantity: Annotated[
        FiniteFloat,
        _positive_at_most(10_000, "Quantity must be greater than zero", "Quantity cannot exceed 10,000 litres"),
    ]
    unit_price: Annotated[
        FiniteFloat,
        _positive_at_most(1_000, "Unit price must be greater than zero", "Unit price cannot exceed 1,000 per litre"),
    ]


class OrderRequest(_Schema):
    customer_id: Annotated[str, _required_text("Please select a customer")]
    order_date: date
    delivery_date: date | None = None
    status: Annotated[
        str,
        _choice(OrderStatus, "Please select a valid status"),
    ] = OrderStatus.DRAFT.value
    notes: Annotated[str | None, _optional_text(500, "Notes cannot exceed 500 characters")] = None
    items: Annotated[
        list[OrderItemRequest],
        _checked(
            ValidationRule(
                required="At least one order item is required",
                max_length=Limit(50, "Cannot have more than 50 order items"),
            )
        ),
    ]

    @field_validator("delivery_date")
    @classmethod
    def _delivery_not_before_order(cls, value: date | None, info: ValidationInfo) -> date | None:
        ordered = info.data.get("order_date")
        if value is not None and ordered is not None and value < ordered:
            raise ValueError("Delivery date must be on or after order date")
        return value

    @property
    def total_amount(self) -> float:
        return sum(item.quantity * item.unit_price for item in self.items)


class CreditNoteRequest(_Schema):
    invoice_id: Annotated[str, _required_text("Please select an invoice")]
    amount: Annotated[
        FiniteFloat,
        _positive_at_most(1_000_000, "Amount must be greater than zero", "Amount cannot exceed 10,00,000"),
    ]
    reason: Annotated[
        str,
        _required_text(
            "Please provide a reason for the credit note",
            Limit(10, "Reason must be at least 10 characters"),
            Limit(500, "Reason cannot exceed 500 characters"),
        ),
    ]
    issue_date: date


class UserProfileRequest(_Schema):
    name: Annotated[str, _NAME]
    email: Annotated[str, _EMAIL]
    phone: Annotated[str | None, _PHONE] = None
    department: str | None = None
    designation: str | None = None
    role: Annotated[
        str,
        _choice(UserRole, "Please select a valid role"),
    ]


class CustomerRequest(_Schema):
    name: Annotated[
        str,
        _required_text(
            "Customer name is required",
            Limit(2, "Name must be at least 2 characters"),
            Limit(100, "Name cannot exceed 100 characters"),
        ),
    ]
    email: Annotated[str | None, _EMAIL] = None
    phone: Annotated[str, _REQUIRED_PHONE]
    address: Annotated[str | None, _optional_text(500, "Address cannot exceed 500 characters")] = None
    gst_number: Annotated[str | None, _GST] = None
    credit_limit: Annotated[
        FiniteFloat | None,
        _checked(ValidationRule(custom=validators.non_negative("Credit limit cannot be negative"))),
    ] = None
    payment_terms: Annotated[str | None, _optional_text(100, "Payment terms cannot exceed 100 characters")] = None


class SupplierRequest(_Schema):
    name: Annotated[
        str,
        _required_text(
            "Supplier name is required",
            Limit(2, "Name must be at least 2 characters"),
            Limit(100, "Name cannot exceed 100 characters"),
        ),
    ]
    contact_person: Annotated[
        str | None, _optional_text(100, "Contact person name cannot exceed 100 characters")
    ] = None
    email: Annotated[str | None, _EMAIL] = None
    phone: Annotated[str, _REQUIRED_PHONE]
    address: Annotated[str | None, _optional_text(500, "Address cannot exceed 500 characters")] = None
    gst_number: Annotated[str | None, _GST] = None
    payment_terms: Annotated[str | None, _optional_text(100, "Payment terms cannot exceed 100 characters")] = None


class RawMaterialRequest(_Schema):
    name: Annotated[
        str,
        _required_text(
            "Material name is required",
            Limit(2, "Name must be at least 2 characters"),
            Limit(100, "Name cannot exceed 100 characters"),
        ),
    ]
    unit: Annotated[str, _required_text("Unit is required", max_len=Limit(20, "Unit cannot exceed 20 characters"))]
    description: Annotated[str | None, _optional_text(500, "Description cannot exceed 500 characters")] = None
    minimum_stock_level: Annotated[
        FiniteFloat | None,
        _checked(ValidationRule(custom=validators.non_negative("Minimum stock level cannot be negative"))),
    ] = None
