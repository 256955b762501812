# competency/infrastructure/repositories_survey.py
from __future__ import annotations

import builtins
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..domain.enums import ResponseStatus
from ..domain.models import Question, Survey, SurveyResponse, utcnow
from .exceptions import ConcurrentModificationError, ResponseNotFoundError, SurveyNotFoundError
from .logging import log_database_operation as log_op
from .models import QuestionORM, SurveyORM, SurveyResponseORM
from .repositories_base import BaseRepository as GenericBaseRepository


class SurveyRepo(GenericBaseRepository[SurveyORM]):
    """
    Repository for surveys and their questions.

    Every write to a survey row goes through SQLAlchemy's version counter, so
    a write based on a stale read fails with ConcurrentModificationError
    instead of silently overwriting a newer status.

    Example:
        >>> repo = SurveyRepo(session)
        >>> row = repo.get_by_id_required(7)
        >>> repo.save_state(row, apply_transition(to_survey(row), SurveyStatus.PUBLISHED))
    """

    model = SurveyORM
    not_found = SurveyNotFoundError

    @log_op("survey.get")
    def get(self, id_: Any) -> SurveyORM | None:
        return super().get(id_)

    @log_op("survey.list_by_status")
    def list_by_status(self, *statuses: str) -> builtins.list[SurveyORM]:
        return self.list(SurveyORM.status.in_(statuses), order_by=[SurveyORM.id])

    @log_op("survey.add")
    def add(self, survey: Survey) -> SurveyORM:
        try:
            return super().create(
                title=survey.title,
                description=survey.description,
                status=survey.status.value,
                survey_type=survey.survey_type.value,
                target_group=survey.target_group.value,
                start_date=survey.start_date,
                end_date=survey.end_date,
                max_responses=survey.max_responses,
                anonymous=survey.anonymous,
                repeatable=survey.repeatable,
                active=survey.active,
                system_protected=survey.system_protected,
            )
        except SQLAlchemyError as e:
            self._handle_error(e, "create_survey")

    def _flush_versioned(self, row: SurveyORM, operation: str) -> None:
        try:
            self.s.flush()
        except StaleDataError as e:
            self.logger.warning("Stale survey %s during %s: %s", row.id, operation, e)
            raise ConcurrentModificationError("survey", row.id) from e
        except SQLAlchemyError as e:
            self._handle_error(e, operation)

    @log_op("survey.save_state")
    def save_state(
        self, row: SurveyORM, survey: Survey, expected_version: int | None = None
    ) -> SurveyORM:
        """
        Persist status, window and active flag from a transitioned snapshot.

        Raises:
            ConcurrentModificationError: If the row changed since it was read
                or does not carry ``expected_version``
        """
        if expected_version is not None and row.version_id != expected_version:
            raise ConcurrentModificationError("survey", row.id)

        row.status = survey.status.value
        row.start_date = survey.start_date
        row.end_date = survey.end_date
        row.active = survey.active
        self._flush_versioned(row, "save_survey_state")
        return row

    @log_op("survey.add_question")
    def add_question(self, row: SurveyORM, question: Question) -> QuestionORM:
        """
        Insert a question and bump the survey version.

        The version bump makes a question added from a stale DRAFT/PUBLISHED
        read conflict with a concurrent transition to ACTIVE.
        """
        question_row = QuestionORM(
            text=question.text,
            question_type=question.question_type.value,
            display_order=question.display_order,
            required=question.required,
            active=question.active,
            options=list(question.options) or None,
            min_value=question.min_value,
            max_value=question.max_value,
            dimension_id=question.dimension_id,
            weight=question.weight,
        )
        row.questions.append(question_row)
        row.updated_at = utcnow()
        self._flush_versioned(row, "add_question")
        return question_row

    @log_op("survey.record_response")
    def record_response(self, row: SurveyORM) -> None:
        """
        Bump the survey version for a response admitted from ``row``.

        Capacity and duplicate checks read the survey; two admissions from the
        same read cannot both commit.
        """
        row.updated_at = utcnow()
        self._flush_versioned(row, "record_response")

    @log_op("survey.remove_question")
    def remove_question(self, row: SurveyORM, question_id: int) -> None:
        for question_row in list(row.questions):
            if question_row.id == question_id:
                row.questions.remove(question_row)
        row.updated_at = utcnow()
        self._flush_versioned(row, "remove_question")


class ResponseRepo(GenericBaseRepository[SurveyResponseORM]):
    """Repository for survey responses and their aggregate statistics."""

    model = SurveyResponseORM
    not_found = ResponseNotFoundError

    @log_op("response.get")
    def get(self, id_: Any) -> SurveyResponseORM | None:
        return super().get(id_)

    @log_op("response.list_for_survey")
    def list_for_survey(self, survey_id: int) -> builtins.list[SurveyResponseORM]:
        return self.list(
            SurveyResponseORM.survey_id == survey_id, order_by=[SurveyResponseORM.id]
        )

    @log_op("response.count_for_survey")
    def count_for_survey(self, survey_id: int, *statuses: ResponseStatus) -> int:
        filters = [SurveyResponseORM.survey_id == survey_id]
        if statuses:
            filters.append(SurveyResponseORM.status.in_([s.value for s in statuses]))
        return self.count(*filters)

    @log_op("response.add")
    def add(self, response: SurveyResponse) -> SurveyResponseORM:
        try:
            return super().create(**self._fields(response))
        except SQLAlchemyError as e:
            self._handle_error(e, "create_response")

    @log_op("response.save")
    def save(self, row: SurveyResponseORM, response: SurveyResponse) -> SurveyResponseORM:
        try:
            return super().update(row, **self._fields(response))
        except SQLAlchemyError as e:
            self._handle_error(e, "update_response")

    @log_op("response.averages")
    def averages(self, survey_id: int) -> dict[str, float | None]:
        """Average completion minutes, total score and completion percentage."""
        row = (
            self.s.query(
                func.avg(SurveyResponseORM.completion_minutes),
                func.avg(SurveyResponseORM.total_score),
                func.avg(SurveyResponseORM.completion_percentage),
            )
            .filter(SurveyResponseORM.survey_id == survey_id)
            .one()
        )
        minutes, score, completion = row
        return {
            "average_completion_minutes": float(minutes) if minutes is not None else None,
            "average_score": float(score) if score is not None else None,
            "average_completion_percentage": (
                float(completion) if completion is not None else None
            ),
        }

    @staticmethod
    def _fields(response: SurveyResponse) -> dict[str, Any]:
        return {
            "survey_id": response.survey_id,
            "respondent_id": response.respondent_id,
            "status": response.status.value,
            "completion_percentage": response.completion_percentage,
            "started_at": response.started_at,
            "submitted_at": response.submitted_at,
            "completion_minutes": response.completion_minutes,
            "total_score": response.total_score,
            "weighted_score": response.weighted_score,
        }
