"""
Success-profile evaluator.

Aggregates a respondent's raw scores into a single 0-100 success score for a
profile. Observations map dimension id to raw score; a missing key or a None
value means the dimension was not observed.

Unobserved dimensions are left out of both the weighted sum and the weight
denominator, so a respondent is not penalised for dimensions nobody scored.
An observed score outside its dimension's range is reported as INVALID and
contributes 0 while its weight stays in the denominator.
A critical failure is reported next to the aggregate outcome and never
overrides it; whether it vetoes a pass is the caller's decision.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from .bindings import is_critical_failure, performance_status, target_gap, weighted_contribution
from .enums import PerformanceStatus
from .models import SuccessProfile
from .scales import is_in_range, normalize

Observations = Mapping[int, float | None]


@dataclass(frozen=True, slots=True)
class DimensionOutcome:
    dimension_id: int | None
    status: PerformanceStatus
    raw_score: float | None
    normalized_score: float | None
    weight: float
    is_critical: bool
    target_gap: float | None


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    success_score: float
    meets_minimum: bool
    meets_target: bool
    critical_failures: tuple[int, ...]
    per_dimension: tuple[DimensionOutcome, ...]

    @property
    def has_critical_failure(self) -> bool:
        return bool(self.critical_failures)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DimensionUsage:
    dimension_id: int
    profile_count: int
    usage_count: int
    average_weight: float
    average_min_score: float
    profile_ids: tuple[int, ...]


def calculate_success_score(profile: SuccessProfile, observations: Observations) -> float:
    """
    Weighted mean of normalized scores over the observed active bindings.

    An observation outside its dimension's range contributes nothing but its
    weight still counts. Returns 0.0 when the profile has no active bindings
    or none of them is observed.
    """
    weighted_sum = 0.0
    effective_weight = 0.0

    for binding in profile.active_bindings:
        raw = observations.get(binding.dimension_id)
        if raw is None:
            continue
        # weighted_contribution is on a weight/100 scale
        weighted_sum += weighted_contribution(binding, raw) * 100.0
        effective_weight += binding.weight

    return weighted_sum / effective_weight if effective_weight > 0 else 0.0


def meets_success_criteria(profile: SuccessProfile, observations: Observations) -> bool:
    return calculate_success_score(profile, observations) >= profile.min_success_score


def meets_target_criteria(profile: SuccessProfile, observations: Observations) -> bool:
    return calculate_success_score(profile, observations) >= profile.target_success_score


def critical_failures(profile: SuccessProfile, observations: Observations) -> tuple[int, ...]:
    """Dimension ids of active critical bindings observed below their minimum."""
    return tuple(
        binding.dimension_id
        for binding in profile.active_bindings
        if is_critical_failure(binding, observations.get(binding.dimension_id))
    )


def has_critical_failure(profile: SuccessProfile, observations: Observations) -> bool:
    return bool(critical_failures(profile, observations))


def evaluate(profile: SuccessProfile, observations: Observations) -> EvaluationResult:
    """
    Full evaluation of one respondent against a profile.

    Example:
        >>> result = evaluate(profile, {1: 4, 2: 3})
        >>> result.success_score, result.meets_minimum
        (67.5, True)
    """
    score = calculate_success_score(profile, observations)

    outcomes = []
    for binding in profile.active_bindings:
        raw = observations.get(binding.dimension_id)
        in_range = is_in_range(binding.dimension, raw)
        outcomes.append(
            DimensionOutcome(
                dimension_id=binding.dimension_id,
                status=performance_status(binding, raw),
                raw_score=raw,
                normalized_score=normalize(binding.dimension, raw) if in_range else None,
                weight=binding.weight,
                is_critical=binding.is_critical,
                target_gap=target_gap(binding, raw),
            )
        )

    return EvaluationResult(
        success_score=score,
        meets_minimum=score >= profile.min_success_score,
        meets_target=score >= profile.target_success_score,
        critical_failures=critical_failures(profile, observations),
        per_dimension=tuple(outcomes),
    )


def dimension_usage(dimension_id: int, profiles: Iterable[SuccessProfile]) -> DimensionUsage:
    """
    How a dimension is used across success profiles.

    ``usage_count`` and the averages cover every active binding of the
    dimension; ``profile_count`` only counts active profiles.
    """
    usages = []
    profile_ids = []
    for profile in profiles:
        binding = profile.binding_for(dimension_id)
        if binding is None or not binding.active:
            continue
        usages.append(binding)
        if profile.active and profile.id is not None:
            profile_ids.append(profile.id)

    count = len(usages)
    return DimensionUsage(
        dimension_id=dimension_id,
        profile_count=len(profile_ids),
        usage_count=count,
        average_weight=sum(b.weight for b in usages) / count if count else 0.0,
        average_min_score=sum(b.min_score for b in usages) / count if count else 0.0,
        profile_ids=tuple(profile_ids),
    )
