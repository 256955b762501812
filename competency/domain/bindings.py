"""
Dimension weight bindings: how much a dimension counts toward one success profile.

All functions are pure. Profile-level operations return a new SuccessProfile
snapshot and leave the input untouched, so a failed validation never leaves a
half-applied change behind.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from ..infrastructure.config import EngineConfig, get_settings
from ..infrastructure.exceptions import (
    BindingNotFoundError,
    DuplicateBindingError,
    InvalidThresholdError,
    ValidationError,
)
from .enums import PerformanceStatus
from .models import Dimension, DimensionWeightBinding, SuccessProfile
from .scales import is_in_range, normalize


def _engine_defaults(defaults: EngineConfig | None) -> EngineConfig:
    return defaults if defaults is not None else get_settings().engine


def validate_binding(binding: DimensionWeightBinding) -> None:
    """
    Check a binding's weight and thresholds against its dimension.

    Raises:
        ValidationError: If weight is outside [0, 100]
        InvalidThresholdError: If a threshold is outside the dimension range or min > target
    """
    dimension = binding.dimension
    if not 0 <= binding.weight <= 100:
        raise ValidationError("weight", "must be between 0 and 100", binding.weight)

    for field_name in ("min_score", "target_score"):
        value = getattr(binding, field_name)
        if not is_in_range(dimension, value):
            raise InvalidThresholdError(
                field_name,
                f"must lie within [{dimension.min_value:g}, {dimension.max_value:g}]",
                value,
                dimension_id=dimension.id,
            )

    if binding.min_score > binding.target_score:
        raise InvalidThresholdError(
            "min_score",
            f"cannot exceed target_score ({binding.target_score:g})",
            binding.min_score,
            dimension_id=dimension.id,
        )


def _default_target(dimension: Dimension, ratio: float) -> float:
    # Offset and negative scales can push max_value * ratio outside the range
    return min(dimension.max_value, max(dimension.min_value, dimension.max_value * ratio))


def create_binding(
    profile: SuccessProfile,
    dimension: Dimension,
    weight: float | None = None,
    min_score: float | None = None,
    target_score: float | None = None,
    is_critical: bool = False,
    *,
    notes: str | None = None,
    display_order: int | None = None,
    binding_id: int | None = None,
    defaults: EngineConfig | None = None,
) -> DimensionWeightBinding:
    """
    Build a validated binding of ``dimension`` to ``profile``.

    Omitted values default to the configured weight, the dimension's minimum
    as min_score and ``max_value * default_target_ratio``, clamped into the
    dimension's range, as target_score.

    Raises:
        DuplicateBindingError: If the profile already binds the dimension
        InvalidThresholdError: If thresholds are inconsistent or out of scale
        ValidationError: If weight is outside [0, 100]
    """
    if profile.binding_for(dimension.id) is not None:
        raise DuplicateBindingError(profile.id, dimension.id)

    engine = _engine_defaults(defaults)
    if display_order is None:
        display_order = max((b.display_order for b in profile.bindings), default=-1) + 1

    binding = DimensionWeightBinding(
        id=binding_id,
        profile_id=profile.id,
        dimension=dimension,
        weight=engine.default_binding_weight if weight is None else weight,
        min_score=dimension.min_value if min_score is None else min_score,
        target_score=(
            _default_target(dimension, engine.default_target_ratio)
            if target_score is None
            else target_score
        ),
        is_critical=is_critical,
        notes=notes,
        display_order=display_order,
    )
    validate_binding(binding)
    return binding


def performance_status(binding: DimensionWeightBinding, raw_score: Any) -> PerformanceStatus:
    """
    Classify a raw score against the binding's thresholds.

    Every in-range score falls in exactly one of BELOW_MINIMUM, MEETS_MINIMUM or
    EXCEEDS_TARGET; missing and out-of-range scores are INVALID.
    """
    if not is_in_range(binding.dimension, raw_score):
        return PerformanceStatus.INVALID
    if raw_score < binding.min_score:
        return PerformanceStatus.BELOW_MINIMUM
    if raw_score >= binding.target_score:
        return PerformanceStatus.EXCEEDS_TARGET
    return PerformanceStatus.MEETS_MINIMUM


def is_critical_failure(binding: DimensionWeightBinding, raw_score: Any) -> bool:
    return (
        binding.is_critical
        and performance_status(binding, raw_score) is PerformanceStatus.BELOW_MINIMUM
    )


def weighted_contribution(binding: DimensionWeightBinding, raw_score: Any) -> float:
    """Normalized score scaled by weight/100; 0 for a missing or out-of-range score."""
    if not is_in_range(binding.dimension, raw_score):
        return 0.0
    return normalize(binding.dimension, raw_score) * (binding.weight / 100.0)


def target_gap(binding: DimensionWeightBinding, raw_score: Any) -> float | None:
    if not is_in_range(binding.dimension, raw_score):
        return None
    return max(0.0, binding.target_score - raw_score)


def improvement_suggestion(binding: DimensionWeightBinding, raw_score: Any) -> str:
    if raw_score is None:
        return "Not yet assessed"

    status = performance_status(binding, raw_score)
    if status is PerformanceStatus.BELOW_MINIMUM:
        return f"Development needed in this dimension. Minimum: {binding.min_score:.1f}"
    if status is PerformanceStatus.MEETS_MINIMUM:
        return (
            f"Good performance. {target_gap(binding, raw_score):.1f} more points "
            f"needed to reach the target"
        )
    if status is PerformanceStatus.EXCEEDS_TARGET:
        return "Excellent performance. Focus can shift to other dimensions"
    return "Assessment result is inconclusive"


def bind_dimension(
    profile: SuccessProfile, dimension: Dimension, **options: Any
) -> SuccessProfile:
    """Return a copy of ``profile`` with ``dimension`` bound; see ``create_binding`` for options."""
    binding = create_binding(profile, dimension, **options)
    return replace(profile, bindings=profile.bindings + (binding,))


def unbind_dimension(profile: SuccessProfile, dimension_id: int | None) -> SuccessProfile:
    """
    Return a copy of ``profile`` without the binding for ``dimension_id``.

    Raises:
        BindingNotFoundError: If the profile does not bind the dimension
    """
    if profile.binding_for(dimension_id) is None:
        raise BindingNotFoundError(profile.id, dimension_id)
    remaining = tuple(b for b in profile.bindings if b.dimension_id != dimension_id)
    return replace(profile, bindings=remaining)


_UPDATABLE_FIELDS = (
    "weight",
    "min_score",
    "target_score",
    "is_critical",
    "active",
    "notes",
    "display_order",
)


def update_binding(
    profile: SuccessProfile, dimension_id: int | None, **changes: Any
) -> SuccessProfile:
    """
    Partially update one binding and return the new profile snapshot.

    Only non-None values in ``changes`` are applied. The merged binding is
    validated as a whole, so a new min_score is checked against the stored
    target_score and vice versa.

    Raises:
        BindingNotFoundError: If the profile does not bind the dimension
        ValidationError: If an unknown field is passed or the merged binding is invalid
    """
    current = profile.binding_for(dimension_id)
    if current is None:
        raise BindingNotFoundError(profile.id, dimension_id)

    unknown = set(changes) - set(_UPDATABLE_FIELDS)
    if unknown:
        field_name = sorted(unknown)[0]
        raise ValidationError(field_name, "is not an updatable binding field", changes[field_name])

    updated = replace(current, **{k: v for k, v in changes.items() if v is not None})
    validate_binding(updated)
    bindings = tuple(updated if b is current else b for b in profile.bindings)
    return replace(profile, bindings=bindings)
