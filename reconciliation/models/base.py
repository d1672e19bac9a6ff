"""Base model for all records handled by the reconciliation layer.

This module provides a base Pydantic model with common configuration
and the numeric coercion shared by every record type.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


def coerce_optional_decimal(value: Any) -> Optional[Decimal]:
    """Convert a raw store value into an optional Decimal.

    Store rows carry untyped numbers (floats, ints, numeric strings) and
    frequently nulls. Nulls and empty strings stay ``None`` so the
    calculators can apply their resolve-or-default policy.

    Args:
        value: The raw value from a record

    Returns:
        The value as a Decimal, or None when absent

    Raises:
        ValueError: If the value is present but not numeric

    Example:
        >>> coerce_optional_decimal(85.5)
        Decimal('85.5')
        >>> coerce_optional_decimal("") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert boolean {value} to Decimal")
    if isinstance(value, str) and not value.strip():
        return None
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Cannot convert {value!r} to Decimal: {e}")


class BaseDataModel(BaseModel):
    """Base class for all data models.

    Provides common configuration for:
    - Validation with type checking
    - Serialization to/from dictionaries
    - Tolerance for extra store columns (created_at, joined names, ...)

    Example:
        >>> class Member(BaseDataModel):
        ...     name: str
        >>> Member.model_validate({"name": "Alice", "created_at": "2025-01-01"})
        Member(name='Alice')
    """

    model_config = ConfigDict(
        # Allow arbitrary types like Decimal, date
        arbitrary_types_allowed=True,
        # Validate on assignment to catch errors early
        validate_assignment=True,
        strict=False,
        # Store rows carry columns this layer does not use
        extra="ignore",
        frozen=False,
        use_enum_values=False,
    )
