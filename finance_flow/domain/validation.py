"""Input checks shared by the expense and income managers"""

from typing import Optional, Sequence

from finance_flow.domain.exceptions import ValidationError
from finance_flow.domain.models import PAYMENT_METHODS, SourceRef


def validate_common(
    operation: str,
    description: str,
    amount_cents: int,
    source: SourceRef,
    allowed_source_types: Sequence[str],
) -> None:
    if not description or not description.strip():
        raise ValidationError(f"{operation}: description is required")
    if amount_cents is None or amount_cents <= 0:
        raise ValidationError(f"{operation}: amount must be positive, got {amount_cents}")
    if source is None or not source.id:
        raise ValidationError(f"{operation}: source is required")
    if source.type not in allowed_source_types:
        raise ValidationError(
            f"{operation}: source type '{source.type}' not allowed, expected one of {', '.join(allowed_source_types)}"
        )


def validate_method(operation: str, method: str) -> None:
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"{operation}: unknown payment method '{method}'")


def validate_installments(operation: str, installments: Optional[int], amount_cents: int, method: str) -> None:
    if installments is None:
        return
    if installments < 1:
        raise ValidationError(f"{operation}: installments must be at least 1, got {installments}")
    # Every member of a split must carry at least one cent
    if method == "credit" and installments > amount_cents:
        raise ValidationError(
            f"{operation}: {amount_cents} cents cannot be split into {installments} installments"
        )
