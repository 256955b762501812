"""
Survey lifecycle state machine and response admission rules.

The transition tables are the single authority on which status changes are
allowed. Every function here is pure: it validates against a survey snapshot
and returns a new snapshot. Persisting a transition under a per-survey
version check is the repository's job.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from ..infrastructure.exceptions import (
    DuplicateResponseError,
    IllegalResponseTransitionError,
    IllegalTransitionError,
    SurveyClosedError,
    SurveyFullError,
    SurveyLockedError,
    ValidationError,
)
from .enums import QuestionType, ResponseStatus, SurveyStatus
from .models import Question, Survey, SurveyResponse, utcnow

SURVEY_TRANSITIONS: dict[SurveyStatus, frozenset[SurveyStatus]] = {
    SurveyStatus.DRAFT: frozenset({SurveyStatus.PUBLISHED, SurveyStatus.CANCELLED}),
    SurveyStatus.PUBLISHED: frozenset({SurveyStatus.ACTIVE, SurveyStatus.CANCELLED}),
    SurveyStatus.ACTIVE: frozenset(
        {SurveyStatus.PAUSED, SurveyStatus.COMPLETED, SurveyStatus.CANCELLED}
    ),
    SurveyStatus.PAUSED: frozenset({SurveyStatus.ACTIVE, SurveyStatus.CANCELLED}),
    SurveyStatus.COMPLETED: frozenset({SurveyStatus.ARCHIVED}),
    SurveyStatus.ARCHIVED: frozenset(),
    SurveyStatus.CANCELLED: frozenset(),
}

RESPONSE_TRANSITIONS: dict[ResponseStatus, frozenset[ResponseStatus]] = {
    ResponseStatus.STARTED: frozenset(
        {
            ResponseStatus.IN_PROGRESS,
            ResponseStatus.COMPLETED,
            ResponseStatus.SUBMITTED,
            ResponseStatus.EXPIRED,
            ResponseStatus.CANCELLED,
        }
    ),
    # Saving progress again keeps the response IN_PROGRESS
    ResponseStatus.IN_PROGRESS: frozenset(
        {
            ResponseStatus.IN_PROGRESS,
            ResponseStatus.COMPLETED,
            ResponseStatus.SUBMITTED,
            ResponseStatus.EXPIRED,
            ResponseStatus.CANCELLED,
        }
    ),
    ResponseStatus.COMPLETED: frozenset({ResponseStatus.SUBMITTED, ResponseStatus.CANCELLED}),
    ResponseStatus.SUBMITTED: frozenset(),
    ResponseStatus.EXPIRED: frozenset(),
    ResponseStatus.CANCELLED: frozenset(),
}

_EDITABLE_STATUSES = frozenset({SurveyStatus.DRAFT, SurveyStatus.PUBLISHED})

# Closing a response is allowed even after the survey window has shut
_CLOSING_RESPONSE_STATUSES = frozenset({ResponseStatus.EXPIRED, ResponseStatus.CANCELLED})

_AGREEMENT_5 = (
    "Strongly disagree",
    "Disagree",
    "Neutral",
    "Agree",
    "Strongly agree",
)
_AGREEMENT_7 = (
    "Strongly disagree",
    "Disagree",
    "Somewhat disagree",
    "Neutral",
    "Somewhat agree",
    "Agree",
    "Strongly agree",
)

DEFAULT_QUESTION_OPTIONS: dict[QuestionType, tuple[tuple[str, ...], float, float]] = {
    QuestionType.LIKERT_5: (_AGREEMENT_5, 1.0, 5.0),
    QuestionType.LIKERT_7: (_AGREEMENT_7, 1.0, 7.0),
    QuestionType.LIKERT_10: (tuple(str(n) for n in range(1, 11)), 1.0, 10.0),
    QuestionType.YES_NO: (("No", "Yes"), 0.0, 1.0),
    QuestionType.RATING_STARS: (tuple("★" * n for n in range(1, 6)), 1.0, 5.0),
}


def can_transition(from_status: SurveyStatus, to_status: SurveyStatus) -> bool:
    return SurveyStatus(to_status) in SURVEY_TRANSITIONS[SurveyStatus(from_status)]


def allowed_transitions(status: SurveyStatus) -> frozenset[SurveyStatus]:
    return SURVEY_TRANSITIONS[SurveyStatus(status)]


def apply_transition(
    survey: Survey, to_status: SurveyStatus, now: datetime | None = None
) -> Survey:
    """
    Move a survey to ``to_status`` and apply the entry side effects.

    Entering ACTIVE sets start_date and entering COMPLETED sets end_date when
    they are unset; entering CANCELLED clears the active flag.

    Raises:
        IllegalTransitionError: If the transition table does not allow the change
    """
    to_status = SurveyStatus(to_status)
    if not can_transition(survey.status, to_status):
        raise IllegalTransitionError(survey.status, to_status, survey.id)

    now = now or utcnow()
    changes: dict[str, object] = {"status": to_status}
    if to_status is SurveyStatus.ACTIVE and survey.start_date is None:
        changes["start_date"] = now
    elif to_status is SurveyStatus.COMPLETED and survey.end_date is None:
        changes["end_date"] = now
    elif to_status is SurveyStatus.CANCELLED:
        changes["active"] = False
    return replace(survey, **changes)


def can_add_question(survey: Survey) -> bool:
    return survey.status in _EDITABLE_STATUSES


def add_question(survey: Survey, question: Question) -> Survey:
    """
    Append a question, assigning the next display order when none is set.

    Scale-like question types without options get the default answer labels
    and bounds for their type.

    Raises:
        SurveyLockedError: If the survey is past PUBLISHED
    """
    if not can_add_question(survey):
        raise SurveyLockedError(survey.id, survey.status)

    changes: dict[str, object] = {"survey_id": survey.id, "active": True}
    if not question.display_order:
        changes["display_order"] = max((q.display_order for q in survey.questions), default=0) + 1
    if not question.options and question.question_type in DEFAULT_QUESTION_OPTIONS:
        options, min_value, max_value = DEFAULT_QUESTION_OPTIONS[question.question_type]
        changes.update(options=options, min_value=min_value, max_value=max_value)

    return replace(survey, questions=survey.questions + (replace(question, **changes),))


def remove_question(survey: Survey, question_id: int) -> Survey:
    """
    Drop a question by id.

    Raises:
        SurveyLockedError: If the survey is past PUBLISHED
        ValidationError: If the survey has no question with that id
    """
    if not can_add_question(survey):
        raise SurveyLockedError(survey.id, survey.status)
    if not any(q.id == question_id for q in survey.questions):
        raise ValidationError("question_id", "is not part of this survey", question_id)
    return replace(survey, questions=tuple(q for q in survey.questions if q.id != question_id))


def is_currently_active(survey: Survey, now: datetime | None = None) -> bool:
    """Active flag set, status ACTIVE and ``now`` inside the start/end window."""
    if not survey.active or survey.status != SurveyStatus.ACTIVE:
        return False
    now = now or utcnow()
    if survey.start_date is not None and now < survey.start_date:
        return False
    if survey.end_date is not None and now > survey.end_date:
        return False
    return True


def is_full(survey: Survey) -> bool:
    return survey.max_responses is not None and survey.response_count >= survey.max_responses


def start_response(
    survey: Survey,
    respondent_id: int | None,
    existing_responses: Iterable[SurveyResponse] = (),
    now: datetime | None = None,
) -> SurveyResponse:
    """
    Admit a new response to a survey.

    Anonymous surveys never record the respondent. ``existing_responses`` are
    the survey's responses so far and are only consulted for non-repeatable,
    non-anonymous surveys.

    Raises:
        SurveyClosedError: If the survey is not currently active
        SurveyFullError: If the survey reached max_responses
        ValidationError: If a non-anonymous survey gets no respondent
        DuplicateResponseError: If the respondent already answered a non-repeatable survey
    """
    now = now or utcnow()
    if not is_currently_active(survey, now):
        raise SurveyClosedError(survey.id)
    if is_full(survey):
        raise SurveyFullError(survey.id, survey.max_responses)

    if survey.anonymous:
        respondent_id = None
    elif respondent_id is None:
        raise ValidationError("respondent_id", "is required for non-anonymous surveys")
    elif not survey.repeatable and any(
        r.respondent_id == respondent_id and r.survey_id == survey.id for r in existing_responses
    ):
        raise DuplicateResponseError(survey.id, respondent_id)

    return SurveyResponse(
        id=None,
        survey_id=survey.id,
        respondent_id=respondent_id,
        status=ResponseStatus.STARTED,
        completion_percentage=0.0,
        started_at=now,
    )


def _elapsed_minutes(response: SurveyResponse, now: datetime) -> int | None:
    if response.started_at is None:
        return None
    return int((now - response.started_at).total_seconds() // 60)


def advance_response(
    survey: Survey,
    response: SurveyResponse,
    to_status: ResponseStatus,
    now: datetime | None = None,
) -> SurveyResponse:
    """
    Progress a response: save progress, complete, submit, expire or cancel.

    Raises:
        ValidationError: If the response does not belong to the survey
        IllegalResponseTransitionError: If the response table does not allow the change
        SurveyClosedError: If progressing while the survey is not currently active
    """
    to_status = ResponseStatus(to_status)
    if response.survey_id != survey.id:
        raise ValidationError("survey_id", "response belongs to a different survey", response.survey_id)
    if to_status not in RESPONSE_TRANSITIONS[response.status]:
        raise IllegalResponseTransitionError(response.status, to_status, response.id)

    now = now or utcnow()
    if to_status not in _CLOSING_RESPONSE_STATUSES and not is_currently_active(survey, now):
        raise SurveyClosedError(survey.id)

    changes: dict[str, object] = {"status": to_status}
    if to_status is not ResponseStatus.IN_PROGRESS:
        changes["completion_minutes"] = _elapsed_minutes(response, now)
    if to_status in (ResponseStatus.COMPLETED, ResponseStatus.SUBMITTED):
        changes["completion_percentage"] = 100.0
    if to_status is ResponseStatus.SUBMITTED:
        changes["submitted_at"] = now
    return replace(response, **changes)


def update_completion(
    response: SurveyResponse, total_questions: int, answered_questions: int
) -> SurveyResponse:
    if answered_questions < 0 or answered_questions > max(total_questions, 0):
        raise ValidationError(
            "answered_questions",
            f"must be between 0 and {total_questions}",
            answered_questions,
        )
    if total_questions == 0:
        return replace(response, completion_percentage=0.0)
    return replace(response, completion_percentage=answered_questions / total_questions * 100.0)
