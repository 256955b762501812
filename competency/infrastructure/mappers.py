"""Conversion from ORM rows to immutable domain snapshots."""

from __future__ import annotations

from ..domain.enums import (
    DimensionCategory,
    ProfileScope,
    QuestionType,
    ResponseStatus,
    ScaleFamily,
    SurveyStatus,
    SurveyType,
    TargetGroup,
)
from ..domain.models import (
    Dimension,
    DimensionWeightBinding,
    Question,
    SuccessProfile,
    Survey,
    SurveyResponse,
)
from .models import (
    DimensionORM,
    DimensionWeightBindingORM,
    QuestionORM,
    SuccessProfileORM,
    SurveyORM,
    SurveyResponseORM,
)


def to_dimension(row: DimensionORM) -> Dimension:
    return Dimension(
        id=row.id,
        name=row.name,
        category=DimensionCategory(row.category),
        scale_family=ScaleFamily(row.scale_family),
        min_value=row.min_value,
        max_value=row.max_value,
        labels={int(k): v for k, v in (row.labels or {}).items()},
        display_weight=row.display_weight,
        active=row.active,
        system_protected=row.system_protected,
        description=row.description,
        display_order=row.display_order,
    )


def to_binding(row: DimensionWeightBindingORM) -> DimensionWeightBinding:
    return DimensionWeightBinding(
        id=row.id,
        profile_id=row.profile_id,
        dimension=to_dimension(row.dimension),
        weight=row.weight,
        min_score=row.min_score,
        target_score=row.target_score,
        is_critical=row.is_critical,
        active=row.active,
        notes=row.notes,
        display_order=row.display_order,
    )


def to_profile(row: SuccessProfileORM) -> SuccessProfile:
    return SuccessProfile(
        id=row.id,
        name=row.name,
        scope=ProfileScope(row.scope),
        min_success_score=row.min_success_score,
        target_success_score=row.target_success_score,
        active=row.active,
        system_protected=row.system_protected,
        description=row.description,
        position_id=row.position_id,
        department_id=row.department_id,
        bindings=tuple(to_binding(b) for b in row.bindings),
    )


def to_question(row: QuestionORM) -> Question:
    return Question(
        id=row.id,
        survey_id=row.survey_id,
        text=row.text,
        question_type=QuestionType(row.question_type),
        display_order=row.display_order,
        required=row.required,
        active=row.active,
        options=tuple(row.options or ()),
        min_value=row.min_value,
        max_value=row.max_value,
        dimension_id=row.dimension_id,
        weight=row.weight,
    )


def to_survey(row: SurveyORM, response_count: int | None = None) -> Survey:
    """Snapshot a survey; pass ``response_count`` to avoid loading the responses collection."""
    return Survey(
        id=row.id,
        title=row.title,
        status=SurveyStatus(row.status),
        survey_type=SurveyType(row.survey_type),
        target_group=TargetGroup(row.target_group),
        start_date=row.start_date,
        end_date=row.end_date,
        max_responses=row.max_responses,
        anonymous=row.anonymous,
        repeatable=row.repeatable,
        active=row.active,
        system_protected=row.system_protected,
        description=row.description,
        questions=tuple(to_question(q) for q in row.questions),
        response_count=len(row.responses) if response_count is None else response_count,
    )


def to_response(row: SurveyResponseORM) -> SurveyResponse:
    return SurveyResponse(
        id=row.id,
        survey_id=row.survey_id,
        respondent_id=row.respondent_id,
        status=ResponseStatus(row.status),
        completion_percentage=row.completion_percentage,
        started_at=row.started_at,
        submitted_at=row.submitted_at,
        completion_minutes=row.completion_minutes,
        total_score=row.total_score,
        weighted_score=row.weighted_score,
    )
