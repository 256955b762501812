from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from ..infrastructure.exceptions import ValidationError
from .enums import (
    DimensionCategory,
    ProfileScope,
    QuestionType,
    ResponseStatus,
    ScaleFamily,
    SurveyStatus,
    SurveyType,
    TargetGroup,
)
from .scales import validate_bounds


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the ORM stores datetimes."""
    return datetime.now(UTC).replace(tzinfo=None)


def _check_percentage(field_name: str, value: Any) -> None:
    if not 0 <= value <= 100:
        raise ValidationError(field_name, "must be between 0 and 100", value)


@dataclass(frozen=True, slots=True)
class Dimension:
    id: int | None
    name: str
    category: DimensionCategory = DimensionCategory.TECHNICAL
    scale_family: ScaleFamily = ScaleFamily.LIKERT_5
    min_value: float = 1.0
    max_value: float = 5.0
    labels: dict[int, str] = field(default_factory=dict)
    display_weight: float = 1.0
    active: bool = True
    system_protected: bool = False
    description: str | None = None
    display_order: int = 0

    def __post_init__(self) -> None:
        validate_bounds(self.min_value, self.max_value)
        _check_percentage("display_weight", self.display_weight)


@dataclass(frozen=True, slots=True)
class DimensionWeightBinding:
    id: int | None
    profile_id: int | None
    dimension: Dimension
    weight: float
    min_score: float
    target_score: float
    is_critical: bool = False
    active: bool = True
    notes: str | None = None
    display_order: int = 0

    @property
    def dimension_id(self) -> int | None:
        return self.dimension.id


@dataclass(frozen=True, slots=True)
class SuccessProfile:
    """
    Evaluation template: pass/target thresholds plus the weighted dimensions that matter.

    Thresholds are percentages in [0, 100] with min_success_score <= target_success_score.
    Bindings are an immutable snapshot; use the functions in ``bindings`` to derive
    a new profile with changed bindings.
    """

    id: int | None
    name: str
    scope: ProfileScope = ProfileScope.COMPANY_WIDE
    min_success_score: float = 70.0
    target_success_score: float = 85.0
    active: bool = True
    system_protected: bool = False
    description: str | None = None
    position_id: int | None = None
    department_id: int | None = None
    bindings: tuple[DimensionWeightBinding, ...] = ()

    def __post_init__(self) -> None:
        _check_percentage("min_success_score", self.min_success_score)
        _check_percentage("target_success_score", self.target_success_score)
        if self.min_success_score > self.target_success_score:
            raise ValidationError(
                "min_success_score",
                f"cannot exceed target_success_score ({self.target_success_score})",
                self.min_success_score,
            )

    @property
    def active_bindings(self) -> tuple[DimensionWeightBinding, ...]:
        active = [b for b in self.bindings if b.active]
        return tuple(sorted(active, key=lambda b: b.display_order))

    @property
    def total_weight(self) -> float:
        return sum(b.weight for b in self.active_bindings)

    @property
    def active_binding_count(self) -> int:
        return len(self.active_bindings)

    def binding_for(self, dimension_id: int | None) -> DimensionWeightBinding | None:
        """Binding for a dimension regardless of its active flag."""
        for binding in self.bindings:
            if binding.dimension_id == dimension_id:
                return binding
        return None

    def has_dimension(self, dimension_id: int | None) -> bool:
        return any(b.dimension_id == dimension_id for b in self.active_bindings)

    def dimension_weight(self, dimension_id: int | None) -> float:
        for binding in self.active_bindings:
            if binding.dimension_id == dimension_id:
                return binding.weight
        return 0.0

    def summary(self) -> str:
        return (
            f"{self.name} ({self.scope.display_name}): {self.active_binding_count} dimensions, "
            f"min {self.min_success_score:g}%, target {self.target_success_score:g}%"
        )


@dataclass(frozen=True, slots=True)
class Question:
    id: int | None
    survey_id: int | None
    text: str
    question_type: QuestionType = QuestionType.LIKERT_5
    display_order: int = 0
    required: bool = True
    active: bool = True
    options: tuple[str, ...] = ()
    min_value: float | None = None
    max_value: float | None = None
    dimension_id: int | None = None
    weight: float = 1.0


@dataclass(frozen=True, slots=True)
class Survey:
    id: int | None
    title: str
    status: SurveyStatus = SurveyStatus.DRAFT
    survey_type: SurveyType = SurveyType.PERFORMANCE
    target_group: TargetGroup = TargetGroup.ALL_EMPLOYEES
    start_date: datetime | None = None
    end_date: datetime | None = None
    max_responses: int | None = None
    anonymous: bool = False
    repeatable: bool = False
    active: bool = True
    system_protected: bool = False
    description: str | None = None
    questions: tuple[Question, ...] = ()
    response_count: int = 0

    def __post_init__(self) -> None:
        if self.max_responses is not None and self.max_responses < 1:
            raise ValidationError("max_responses", "must be at least 1", self.max_responses)

    @property
    def question_count(self) -> int:
        return sum(1 for q in self.questions if q.active)

    @property
    def completion_rate(self) -> float | None:
        """Responses collected as a percentage of max_responses; None when uncapped."""
        if not self.max_responses:
            return None
        return self.response_count / self.max_responses * 100.0

    def remaining_days(self, now: datetime | None = None) -> int | None:
        if self.end_date is None:
            return None
        now = now or utcnow()
        if now > self.end_date:
            return 0
        return (self.end_date - now).days


@dataclass(frozen=True, slots=True)
class SurveyResponse:
    id: int | None
    survey_id: int | None
    respondent_id: int | None
    status: ResponseStatus = ResponseStatus.STARTED
    completion_percentage: float = 0.0
    started_at: datetime | None = None
    submitted_at: datetime | None = None
    completion_minutes: int | None = None
    total_score: float | None = None
    weighted_score: float | None = None
