"""
Scale model: bounds, canonical labels and percentage conversion for dimensions.

Every dimension measures on its own native scale (Likert 1-5, percentage,
yes/no, ...). Aggregation across dimensions happens in normalized
percentage space, so the conversions here are the single place where a raw
score gets its meaning.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from numbers import Real
from typing import TYPE_CHECKING, Any

from ..infrastructure.exceptions import OutOfRangeError, ProtectedEntityError, ValidationError
from .enums import ScaleFamily

if TYPE_CHECKING:
    from .models import Dimension


@dataclass(frozen=True, slots=True)
class ScaleDefaults:
    labels: dict[int, str]
    min_value: float
    max_value: float


_LIKERT_5 = ScaleDefaults(
    labels={1: "Insufficient", 2: "Needs improvement", 3: "Adequate", 4: "Good", 5: "Excellent"},
    min_value=1.0,
    max_value=5.0,
)

_DEFAULTS: dict[ScaleFamily, ScaleDefaults] = {
    ScaleFamily.LIKERT_3: ScaleDefaults(
        labels={1: "Below expectations", 2: "Meets expectations", 3: "Exceeds expectations"},
        min_value=1.0,
        max_value=3.0,
    ),
    ScaleFamily.LIKERT_5: _LIKERT_5,
    ScaleFamily.LIKERT_7: ScaleDefaults(
        labels={
            1: "Very poor",
            2: "Poor",
            3: "Needs improvement",
            4: "Average",
            5: "Good",
            6: "Very good",
            7: "Excellent",
        },
        min_value=1.0,
        max_value=7.0,
    ),
    ScaleFamily.LIKERT_10: ScaleDefaults(
        labels={level: str(level) for level in range(1, 11)},
        min_value=1.0,
        max_value=10.0,
    ),
    ScaleFamily.PERCENTAGE: ScaleDefaults(
        labels={0: "0%", 25: "25%", 50: "50%", 75: "75%", 100: "100%"},
        min_value=0.0,
        max_value=100.0,
    ),
    ScaleFamily.YES_NO: ScaleDefaults(labels={0: "No", 1: "Yes"}, min_value=0.0, max_value=1.0),
    ScaleFamily.RATING_STARS: ScaleDefaults(
        labels={stars: "★" * stars for stars in range(1, 6)},
        min_value=1.0,
        max_value=5.0,
    ),
    # Families without a canonical shape start from the 5-point Likert set
    ScaleFamily.NUMERIC: _LIKERT_5,
    ScaleFamily.CUSTOM: _LIKERT_5,
}


def default_label_set(scale_family: ScaleFamily) -> ScaleDefaults:
    """
    Canonical labels and bounds for a scale family.

    Only used to seed a new dimension; evaluation never falls back to it.

    Example:
        >>> d = default_label_set(ScaleFamily.YES_NO)
        >>> (d.min_value, d.max_value, d.labels[1])
        (0.0, 1.0, 'Yes')
    """
    defaults = _DEFAULTS[ScaleFamily(scale_family)]
    return ScaleDefaults(dict(defaults.labels), defaults.min_value, defaults.max_value)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_bounds(min_value: Any, max_value: Any) -> None:
    """
    Reject scale bounds that cannot support normalization.

    Raises:
        ValidationError: If either bound is not a finite number or min_value >= max_value
    """
    if not _is_number(min_value):
        raise ValidationError("min_value", "must be a finite number", min_value)
    if not _is_number(max_value):
        raise ValidationError("max_value", "must be a finite number", max_value)
    if min_value >= max_value:
        raise ValidationError(
            "max_value",
            f"must be greater than min_value ({min_value})",
            max_value,
        )


def is_in_range(dimension: Dimension, value: Any) -> bool:
    """True when value is a finite number inside the dimension's inclusive bounds."""
    if not _is_number(value):
        return False
    return dimension.min_value <= value <= dimension.max_value


def normalize(dimension: Dimension, raw_value: Any) -> float:
    """
    Convert a raw score on the dimension's scale into a 0-100 percentage.

    Raises:
        OutOfRangeError: If raw_value is missing, non-finite or outside [min_value, max_value]

    Example:
        >>> normalize(Dimension(id=1, name="Teamwork"), 4)
        75.0
    """
    if not is_in_range(dimension, raw_value):
        raise OutOfRangeError(
            raw_value, dimension.min_value, dimension.max_value, dimension_id=dimension.id
        )
    span = dimension.max_value - dimension.min_value
    return (raw_value - dimension.min_value) / span * 100.0


def denormalize(dimension: Dimension, percentage: Any) -> float:
    """
    Convert a 0-100 percentage back onto the dimension's native scale.

    Raises:
        OutOfRangeError: If percentage is missing, non-finite or outside [0, 100]
    """
    if not _is_number(percentage) or not 0 <= percentage <= 100:
        raise OutOfRangeError(
            percentage, 0.0, 100.0, dimension_id=dimension.id, kind="percentage"
        )
    span = dimension.max_value - dimension.min_value
    return dimension.min_value + (percentage / 100.0) * span


def rescale(dimension: Dimension, min_value: float, max_value: float) -> Dimension:
    """
    Return a copy of the dimension with new scale bounds.

    Raises:
        ProtectedEntityError: If the dimension is system-protected
        ValidationError: If the new bounds are invalid
    """
    if dimension.system_protected:
        raise ProtectedEntityError("dimension", dimension.id, "rescale")
    validate_bounds(min_value, max_value)
    return replace(dimension, min_value=float(min_value), max_value=float(max_value))


def label_for(dimension: Dimension, raw_value: Any) -> str | None:
    """Ordinal label for a raw value that sits exactly on a labelled point, else None."""
    if not is_in_range(dimension, raw_value) or float(raw_value) != int(raw_value):
        return None
    return dimension.labels.get(int(raw_value))
