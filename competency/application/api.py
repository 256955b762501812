"""
Application API layer.

Session-bound operations for the application shell: load snapshots through
the repositories, run the pure engine functions, persist the result. Every
operation validates its input, logs with evaluation context and reports
failures as CompetencyEngineError subclasses.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any

import pandas as pd
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..domain import bindings as binding_rules
from ..domain import scales, survey_lifecycle
from ..domain.enums import (
    DimensionCategory,
    PerformanceStatus,
    ProfileScope,
    QuestionType,
    ResponseStatus,
    ScaleFamily,
    SurveyStatus,
    SurveyType,
    TargetGroup,
)
from ..domain.evaluator import DimensionUsage, EvaluationResult, Observations, dimension_usage, evaluate
from ..domain.models import Dimension, Question, SuccessProfile, Survey, SurveyResponse
from ..domain.schemas import (
    BindingInput,
    BindingUpdateInput,
    DimensionInput,
    QuestionInput,
    SuccessProfileInput,
    SurveyInput,
    validate_input,
)
from ..infrastructure.config import get_settings
from ..infrastructure.exceptions import (
    CompetencyEngineError,
    ConfigurationError,
    MultipleValidationError,
    ProfileInactiveError,
    ProtectedEntityError,
    ValidationError,
    create_user_friendly_error_message,
    log_error_details,
)
from ..infrastructure.logging import LogContext, get_logger, log_operation
from ..infrastructure.mappers import to_dimension, to_profile, to_question, to_response, to_survey
from ..infrastructure.models import SurveyORM
from ..infrastructure.repositories import DimensionRepo, ProfileRepo, ResponseRepo, SurveyRepo
from ..utils import exports, seed

logger = get_logger(__name__)


@contextmanager
def _reported(action: str, **context: Any) -> Iterator[None]:
    """Log failures of ``action`` and wrap anything that is not already an engine error."""
    try:
        yield
    except CompetencyEngineError as e:
        logger.warning(f"Failed to {action}: {e.message}", extra=log_error_details(e, context))
        raise
    except Exception as e:
        error_details = log_error_details(e, context)
        logger.error(f"Failed to {action}", extra=error_details)
        raise CompetencyEngineError(
            f"Failed to {action}: {str(e)}",
            details=error_details,
            user_message=create_user_friendly_error_message(e),
        ) from e


def _validated(schema_class: type[BaseModel], data: dict[str, Any]) -> dict[str, Any]:
    result = validate_input(schema_class, data)
    if not result.success:
        errors = [ValidationError(e.field, e.message, e.value) for e in result.errors]
        logger.warning(
            f"{schema_class.__name__} validation failed: "
            + "; ".join(f"{e.field}: {e.message}" for e in errors)
        )
        if len(errors) == 1:
            raise errors[0]
        raise MultipleValidationError(errors)
    return result.data or {}


def _survey_snapshot(session: Session, row: SurveyORM) -> Survey:
    return to_survey(row, ResponseRepo(session).count_for_survey(row.id))


# ---------------------------------------------------------------- dimensions


@log_operation("create_dimension")
def create_dimension(
    session: Session,
    name: str,
    category: DimensionCategory | str = DimensionCategory.TECHNICAL,
    scale_family: ScaleFamily | str = ScaleFamily.LIKERT_5,
    min_value: float | None = None,
    max_value: float | None = None,
    labels: dict[int, str] | None = None,
    display_weight: float = 1.0,
    description: str | None = None,
    display_order: int = 0,
    system_protected: bool = False,
) -> Dimension:
    """
    Create a dimension, seeding bounds and labels from its scale family when omitted.

    Raises:
        ValidationError: If input data is invalid
        IntegrityError: If a dimension with the same name exists

    Example:
        >>> teamwork = create_dimension(session, "Teamwork", scale_family="LIKERT_5")
        >>> (teamwork.min_value, teamwork.max_value)
        (1.0, 5.0)
    """
    data = _validated(
        DimensionInput,
        {
            "name": name,
            "category": category,
            "scale_family": scale_family,
            "min_value": min_value,
            "max_value": max_value,
            "labels": labels,
            "display_weight": display_weight,
            "description": description,
            "display_order": display_order,
        },
    )
    defaults = scales.default_label_set(data["scale_family"])

    with _reported("create dimension", dimension_name=name):
        dimension = Dimension(
            id=None,
            name=data["name"],
            category=data["category"],
            scale_family=data["scale_family"],
            min_value=defaults.min_value if data["min_value"] is None else data["min_value"],
            max_value=defaults.max_value if data["max_value"] is None else data["max_value"],
            labels=data["labels"] if data["labels"] is not None else defaults.labels,
            display_weight=data["display_weight"],
            system_protected=system_protected,
            description=data["description"],
            display_order=data["display_order"],
        )
        row = DimensionRepo(session).add(dimension)
        logger.info(f"Created dimension '{row.name}' with ID {row.id}")
        return to_dimension(row)


@log_operation("list_dimensions")
def list_dimensions(session: Session, active_only: bool = True) -> list[Dimension]:
    repo = DimensionRepo(session)
    rows = repo.list_active() if active_only else repo.list()
    return [to_dimension(r) for r in rows]


@log_operation("rescale_dimension")
def rescale_dimension(
    session: Session, dimension_id: int, min_value: float, max_value: float
) -> Dimension:
    """
    Change a dimension's scale bounds.

    Existing bindings must still fit the new range, otherwise nothing changes.

    Raises:
        DimensionNotFoundError: If the dimension does not exist
        ProtectedEntityError: If the dimension is system-protected
        ValidationError: If the bounds are invalid
        InvalidThresholdError: If a binding's thresholds fall outside the new range
    """
    with LogContext(dimension_id=dimension_id), _reported(
        "rescale dimension", dimension_id=dimension_id
    ):
        repo = DimensionRepo(session)
        current = to_dimension(repo.get_by_id_required(dimension_id))
        rescaled = scales.rescale(current, min_value, max_value)

        for profile_row in ProfileRepo(session).list_using_dimension(dimension_id):
            binding = to_profile(profile_row).binding_for(dimension_id)
            binding_rules.validate_binding(replace(binding, dimension=rescaled))

        row = repo.save(rescaled)
        logger.info(f"Rescaled dimension {dimension_id} to [{min_value}, {max_value}]")
        return to_dimension(row)


@log_operation("delete_dimension")
def delete_dimension(session: Session, dimension_id: int) -> Dimension:
    """
    Deactivate a dimension. Rows are kept so historical bindings stay readable.

    Raises:
        DimensionNotFoundError: If the dimension does not exist
        ProtectedEntityError: If the dimension is system-protected
    """
    with LogContext(dimension_id=dimension_id), _reported(
        "delete dimension", dimension_id=dimension_id
    ):
        repo = DimensionRepo(session)
        row = repo.get_by_id_required(dimension_id)
        if row.system_protected:
            raise ProtectedEntityError("dimension", dimension_id, "delete")

        row = repo.update(row, active=False)
        logger.info(f"Deactivated dimension {dimension_id}")
        return to_dimension(row)


@log_operation("seed_default_dimensions")
def seed_default_dimensions(session: Session) -> list[Dimension]:
    with _reported("seed default dimensions"):
        return seed.seed_default_dimensions(session)


# ---------------------------------------------------------------- profiles


@log_operation("create_success_profile")
def create_success_profile(
    session: Session,
    name: str,
    scope: ProfileScope | str = ProfileScope.COMPANY_WIDE,
    min_success_score: float | None = None,
    target_success_score: float | None = None,
    description: str | None = None,
    position_id: int | None = None,
    department_id: int | None = None,
) -> SuccessProfile:
    """
    Create an empty success profile.

    Omitted thresholds fall back to the configured engine defaults (70 / 85).

    Raises:
        ValidationError: If input data is invalid
    """
    data = _validated(
        SuccessProfileInput,
        {
            "name": name,
            "scope": scope,
            "min_success_score": min_success_score,
            "target_success_score": target_success_score,
            "description": description,
            "position_id": position_id,
            "department_id": department_id,
        },
    )
    engine = get_settings().engine

    with _reported("create success profile", profile_name=name):
        profile = SuccessProfile(
            id=None,
            name=data["name"],
            scope=data["scope"],
            min_success_score=(
                engine.default_min_success_score
                if data["min_success_score"] is None
                else data["min_success_score"]
            ),
            target_success_score=(
                engine.default_target_success_score
                if data["target_success_score"] is None
                else data["target_success_score"]
            ),
            description=data["description"],
            position_id=data["position_id"],
            department_id=data["department_id"],
        )
        row = ProfileRepo(session).add(profile)
        logger.info(f"Created success profile '{row.name}' with ID {row.id}")
        return to_profile(row)


@log_operation("get_success_profile")
def get_success_profile(session: Session, profile_id: int) -> SuccessProfile:
    with _reported("load success profile", profile_id=profile_id):
        return to_profile(ProfileRepo(session).get_by_id_required(profile_id))


@log_operation("bind_dimension")
def bind_dimension(
    session: Session,
    profile_id: int,
    dimension_id: int,
    weight: float | None = None,
    min_score: float | None = None,
    target_score: float | None = None,
    is_critical: bool = False,
    notes: str | None = None,
) -> SuccessProfile:
    """
    Bind a dimension to a profile and return the updated profile.

    Raises:
        ProfileNotFoundError / DimensionNotFoundError: If either does not exist
        ValidationError: If the dimension is inactive or input is invalid
        DuplicateBindingError: If the profile already binds the dimension
        InvalidThresholdError: If thresholds are inconsistent or out of scale

    Example:
        >>> profile = bind_dimension(session, profile_id=1, dimension_id=4, weight=70,
        ...                          min_score=2, target_score=4, is_critical=True)
    """
    data = _validated(
        BindingInput,
        {
            "profile_id": profile_id,
            "dimension_id": dimension_id,
            "weight": weight,
            "min_score": min_score,
            "target_score": target_score,
            "is_critical": is_critical,
            "notes": notes,
        },
    )

    with LogContext(profile_id=profile_id, dimension_id=dimension_id), _reported(
        "bind dimension", profile_id=profile_id, dimension_id=dimension_id
    ):
        profile_repo = ProfileRepo(session)
        row = profile_repo.get_by_id_required(profile_id)
        dimension = to_dimension(DimensionRepo(session).get_by_id_required(dimension_id))
        if not dimension.active:
            raise ValidationError("dimension_id", "dimension is inactive", dimension_id)

        updated = binding_rules.bind_dimension(
            to_profile(row),
            dimension,
            weight=data["weight"],
            min_score=data["min_score"],
            target_score=data["target_score"],
            is_critical=data["is_critical"],
            notes=data["notes"],
            defaults=get_settings().engine,
        )
        row = profile_repo.sync_bindings(row, updated)
        logger.info(f"Bound dimension {dimension_id} to profile {profile_id}")
        return to_profile(row)


@log_operation("unbind_dimension")
def unbind_dimension(session: Session, profile_id: int, dimension_id: int) -> SuccessProfile:
    """
    Raises:
        ProfileNotFoundError: If the profile does not exist
        BindingNotFoundError: If the profile does not bind the dimension
    """
    with LogContext(profile_id=profile_id, dimension_id=dimension_id), _reported(
        "unbind dimension", profile_id=profile_id, dimension_id=dimension_id
    ):
        profile_repo = ProfileRepo(session)
        row = profile_repo.get_by_id_required(profile_id)
        updated = binding_rules.unbind_dimension(to_profile(row), dimension_id)
        row = profile_repo.sync_bindings(row, updated)
        logger.info(f"Unbound dimension {dimension_id} from profile {profile_id}")
        return to_profile(row)


@log_operation("update_binding")
def update_binding(
    session: Session, profile_id: int, dimension_id: int, **changes: Any
) -> SuccessProfile:
    """
    Partially update a binding. Keys not passed, or passed as None, stay unchanged.

    Raises:
        ProfileNotFoundError: If the profile does not exist
        BindingNotFoundError: If the profile does not bind the dimension
        ValidationError / InvalidThresholdError: If the merged binding is invalid
    """
    data = _validated(BindingUpdateInput, changes)
    # unknown keys pass through so the domain rejects them by name
    requested = {k: data.get(k, v) for k, v in changes.items() if v is not None}

    with LogContext(profile_id=profile_id, dimension_id=dimension_id), _reported(
        "update binding", profile_id=profile_id, dimension_id=dimension_id
    ):
        profile_repo = ProfileRepo(session)
        row = profile_repo.get_by_id_required(profile_id)
        updated = binding_rules.update_binding(to_profile(row), dimension_id, **requested)
        row = profile_repo.sync_bindings(row, updated)
        logger.info(f"Updated binding of dimension {dimension_id} in profile {profile_id}")
        return to_profile(row)


@log_operation("evaluate_profile")
def evaluate_profile(
    session: Session, profile_id: int, observations: Observations
) -> EvaluationResult:
    """
    Evaluate one respondent's raw scores against a profile.

    Raises:
        ProfileNotFoundError: If the profile does not exist
        ProfileInactiveError: If the profile is inactive
    """
    with LogContext(profile_id=profile_id), _reported("evaluate profile", profile_id=profile_id):
        profile = to_profile(ProfileRepo(session).get_by_id_required(profile_id))
        if not profile.active:
            raise ProfileInactiveError(profile_id)

        result = evaluate(profile, observations)
        invalid = [
            o.dimension_id
            for o in result.per_dimension
            if o.raw_score is not None and o.status is PerformanceStatus.INVALID
        ]
        if invalid:
            logger.warning(f"Out-of-range observations scored as 0 for dimensions {invalid}")
        logger.info(
            f"Profile {profile_id} scored {result.success_score:.2f} "
            f"(minimum met: {result.meets_minimum}, critical failures: {len(result.critical_failures)})"
        )
        return result


@log_operation("evaluate_cohort")
def evaluate_cohort(
    session: Session, profile_id: int, cohort: Mapping[Any, Observations]
) -> pd.DataFrame:
    """
    Evaluate many respondents at once and return one row per respondent.

    Raises:
        ConfigurationError: If cohort export is disabled
        ProfileNotFoundError / ProfileInactiveError: As for ``evaluate_profile``

    Example:
        >>> df = evaluate_cohort(session, 1, {"emp-1": {4: 4, 5: 3}, "emp-2": {4: 2}})
        >>> df[["RespondentID", "SuccessScore", "MeetsMinimum"]]
    """
    settings = get_settings()
    if not settings.app.enable_cohort_export:
        raise ConfigurationError("Cohort export is disabled", config_key="APP_ENABLE_COHORT_EXPORT")

    with LogContext(profile_id=profile_id), _reported("evaluate cohort", profile_id=profile_id):
        profile = to_profile(ProfileRepo(session).get_by_id_required(profile_id))
        if not profile.active:
            raise ProfileInactiveError(profile_id)

        df = exports.cohort_frame(profile, cohort, precision=settings.engine.score_precision)
        logger.info(f"Evaluated {len(df)} respondents against profile {profile_id}")
        return df


@log_operation("dimension_usage_analysis")
def dimension_usage_analysis(session: Session, dimension_id: int) -> DimensionUsage:
    with LogContext(dimension_id=dimension_id), _reported(
        "analyse dimension usage", dimension_id=dimension_id
    ):
        DimensionRepo(session).get_by_id_required(dimension_id)
        profiles = [to_profile(r) for r in ProfileRepo(session).list_using_dimension(dimension_id)]
        return dimension_usage(dimension_id, profiles)


# ---------------------------------------------------------------- surveys


@log_operation("create_survey")
def create_survey(
    session: Session,
    title: str,
    survey_type: SurveyType | str = SurveyType.PERFORMANCE,
    target_group: TargetGroup | str = TargetGroup.ALL_EMPLOYEES,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    max_responses: int | None = None,
    anonymous: bool = False,
    repeatable: bool = False,
    description: str | None = None,
) -> Survey:
    """
    Create a survey in DRAFT.

    Raises:
        ValidationError: If input data is invalid
    """
    data = _validated(
        SurveyInput,
        {
            "title": title,
            "survey_type": survey_type,
            "target_group": target_group,
            "start_date": start_date,
            "end_date": end_date,
            "max_responses": max_responses,
            "anonymous": anonymous,
            "repeatable": repeatable,
            "description": description,
        },
    )

    with _reported("create survey", survey_title=title):
        row = SurveyRepo(session).add(Survey(id=None, status=SurveyStatus.DRAFT, **data))
        logger.info(f"Created survey '{row.title}' with ID {row.id}")
        return to_survey(row, response_count=0)


@log_operation("get_survey")
def get_survey(session: Session, survey_id: int) -> Survey:
    with _reported("load survey", survey_id=survey_id):
        return _survey_snapshot(session, SurveyRepo(session).get_by_id_required(survey_id))


def get_survey_version(session: Session, survey_id: int) -> int:
    """Current optimistic-lock version, for passing back as ``expected_version``."""
    return SurveyRepo(session).get_by_id_required(survey_id).version_id


@log_operation("transition_survey")
def transition_survey(
    session: Session,
    survey_id: int,
    to_status: SurveyStatus | str,
    expected_version: int | None = None,
    now: datetime | None = None,
) -> Survey:
    """
    Move a survey through its lifecycle.

    The write is version-checked: if another transaction changed the survey
    after it was read here, this one fails instead of overwriting it.

    Raises:
        SurveyNotFoundError: If the survey does not exist
        IllegalTransitionError: If the transition is not allowed
        ConcurrentModificationError: If the survey changed concurrently

    Example:
        >>> transition_survey(session, 3, SurveyStatus.PUBLISHED)
        >>> transition_survey(session, 3, SurveyStatus.ACTIVE).start_date is not None
        True
    """
    with LogContext(survey_id=survey_id), _reported(
        "transition survey", survey_id=survey_id, to_status=str(to_status)
    ):
        repo = SurveyRepo(session)
        row = repo.get_by_id_required(survey_id)
        current = _survey_snapshot(session, row)
        updated = survey_lifecycle.apply_transition(current, SurveyStatus(to_status), now)
        repo.save_state(row, updated, expected_version=expected_version)
        logger.info(f"Survey {survey_id} moved {current.status} -> {updated.status}")
        return _survey_snapshot(session, row)


@log_operation("add_question_to_survey")
def add_question_to_survey(
    session: Session,
    survey_id: int,
    text: str,
    question_type: QuestionType | str = QuestionType.LIKERT_5,
    required: bool = True,
    options: list[str] | None = None,
    min_value: float | None = None,
    max_value: float | None = None,
    dimension_id: int | None = None,
    weight: float = 1.0,
    display_order: int = 0,
) -> Question:
    """
    Add a question to a DRAFT or PUBLISHED survey.

    Raises:
        SurveyNotFoundError / DimensionNotFoundError: If a referenced entity does not exist
        SurveyLockedError: If the survey is past PUBLISHED
        ValidationError: If input data is invalid
    """
    data = _validated(
        QuestionInput,
        {
            "text": text,
            "question_type": question_type,
            "required": required,
            "options": options,
            "min_value": min_value,
            "max_value": max_value,
            "dimension_id": dimension_id,
            "weight": weight,
            "display_order": display_order,
        },
    )

    with LogContext(survey_id=survey_id), _reported("add question", survey_id=survey_id):
        repo = SurveyRepo(session)
        row = repo.get_by_id_required(survey_id)
        if data["dimension_id"] is not None:
            DimensionRepo(session).get_by_id_required(data["dimension_id"])

        question = Question(
            id=None,
            survey_id=survey_id,
            text=data["text"],
            question_type=data["question_type"],
            display_order=data["display_order"],
            required=data["required"],
            options=tuple(data["options"] or ()),
            min_value=data["min_value"],
            max_value=data["max_value"],
            dimension_id=data["dimension_id"],
            weight=data["weight"],
        )
        updated = survey_lifecycle.add_question(_survey_snapshot(session, row), question)
        question_row = repo.add_question(row, updated.questions[-1])
        logger.info(f"Added question {question_row.id} to survey {survey_id}")
        return to_question(question_row)


@log_operation("remove_question_from_survey")
def remove_question_from_survey(session: Session, survey_id: int, question_id: int) -> Survey:
    """
    Remove a question from a DRAFT or PUBLISHED survey.

    Raises:
        SurveyNotFoundError: If the survey does not exist
        SurveyLockedError: If the survey is past PUBLISHED
        ValidationError: If the question does not belong to the survey
    """
    with LogContext(survey_id=survey_id), _reported("remove question", survey_id=survey_id):
        repo = SurveyRepo(session)
        row = repo.get_by_id_required(survey_id)
        survey_lifecycle.remove_question(_survey_snapshot(session, row), question_id)
        repo.remove_question(row, question_id)
        logger.info(f"Removed question {question_id} from survey {survey_id}")
        return _survey_snapshot(session, row)


@log_operation("start_survey_response")
def start_survey_response(
    session: Session,
    survey_id: int,
    respondent_id: int | None = None,
    now: datetime | None = None,
) -> SurveyResponse:
    """
    Raises:
        SurveyNotFoundError: If the survey does not exist
        SurveyClosedError: If the survey is not currently active
        SurveyFullError: If the survey reached max_responses
        DuplicateResponseError: If the respondent already answered a non-repeatable survey
        ConcurrentModificationError: If another response was admitted since the survey was read
    """
    with LogContext(survey_id=survey_id, respondent_id=respondent_id), _reported(
        "start survey response", survey_id=survey_id, respondent_id=respondent_id
    ):
        row = SurveyRepo(session).get_by_id_required(survey_id)
        response_repo = ResponseRepo(session)
        existing = [to_response(r) for r in response_repo.list_for_survey(survey_id)]
        survey = to_survey(row, response_count=len(existing))

        response = survey_lifecycle.start_response(survey, respondent_id, existing, now)
        SurveyRepo(session).record_response(row)
        response_row = response_repo.add(response)
        logger.info(f"Started response {response_row.id} on survey {survey_id}")
        return to_response(response_row)


@log_operation("advance_survey_response")
def advance_survey_response(
    session: Session,
    response_id: int,
    to_status: ResponseStatus | str,
    answered_questions: int | None = None,
    now: datetime | None = None,
) -> SurveyResponse:
    """
    Save progress on, complete, submit, expire or cancel a response.

    ``answered_questions`` updates the completion percentage against the
    survey's active question count before the status change.

    Raises:
        ResponseNotFoundError: If the response does not exist
        IllegalResponseTransitionError: If the status change is not allowed
        SurveyClosedError: If progressing while the survey is not currently active
    """
    with _reported("advance survey response", response_id=response_id):
        response_repo = ResponseRepo(session)
        response_row = response_repo.get_by_id_required(response_id)
        survey_row = SurveyRepo(session).get_by_id_required(response_row.survey_id)
        survey = _survey_snapshot(session, survey_row)

        with LogContext(survey_id=survey.id, respondent_id=response_row.respondent_id):
            response = to_response(response_row)
            if answered_questions is not None:
                response = survey_lifecycle.update_completion(
                    response, survey.question_count, answered_questions
                )
            response = survey_lifecycle.advance_response(
                survey, response, ResponseStatus(to_status), now
            )
            response_row = response_repo.save(response_row, response)
            logger.info(f"Response {response_id} is now {response.status}")
            return to_response(response_row)


@log_operation("survey_statistics")
def survey_statistics(
    session: Session, survey_id: int, now: datetime | None = None
) -> dict[str, Any]:
    """
    Summary figures for one survey.

    Example:
        >>> stats = survey_statistics(session, 3)
        >>> stats["total_responses"], stats["is_currently_active"]
        (12, True)
    """
    with LogContext(survey_id=survey_id), _reported("compute survey statistics", survey_id=survey_id):
        row = SurveyRepo(session).get_by_id_required(survey_id)
        response_repo = ResponseRepo(session)
        survey = _survey_snapshot(session, row)

        stats: dict[str, Any] = {
            "survey_id": survey.id,
            "title": survey.title,
            "status": survey.status.value,
            "total_questions": survey.question_count,
            "total_responses": survey.response_count,
            "submitted_responses": response_repo.count_for_survey(
                survey_id, ResponseStatus.SUBMITTED
            ),
            "completed_responses": response_repo.count_for_survey(
                survey_id, ResponseStatus.COMPLETED, ResponseStatus.SUBMITTED
            ),
            "response_rate": survey.completion_rate,
            "is_currently_active": survey_lifecycle.is_currently_active(survey, now),
            "is_full": survey_lifecycle.is_full(survey),
            "remaining_days": survey.remaining_days(now),
        }
        stats.update(response_repo.averages(survey_id))
        return stats
