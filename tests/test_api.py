from datetime import timedelta

import pandas as pd
import pytest

from competency.application import api
from competency.domain.enums import PerformanceStatus, ResponseStatus, ScaleFamily, SurveyStatus
from competency.domain.models import utcnow
from competency.infrastructure.config import reset_settings
from competency.infrastructure.exceptions import (
    BindingNotFoundError,
    ConcurrentModificationError,
    ConfigurationError,
    DimensionNotFoundError,
    DuplicateBindingError,
    DuplicateResponseError,
    IllegalTransitionError,
    IntegrityError,
    InvalidThresholdError,
    MultipleValidationError,
    ProfileInactiveError,
    ProtectedEntityError,
    SurveyClosedError,
    SurveyFullError,
    SurveyLockedError,
    ValidationError,
)
from competency.infrastructure.repositories import ProfileRepo


@pytest.fixture
def profile_with_bindings(session):
    a = api.create_dimension(session, "Technical Competency")
    b = api.create_dimension(session, "Communication", category="COMMUNICATION")
    profile = api.create_success_profile(
        session, "Backend engineer", min_success_score=60, target_success_score=85
    )
    api.bind_dimension(session, profile.id, a.id, weight=70, min_score=2, target_score=4)
    profile = api.bind_dimension(session, profile.id, b.id, weight=30, min_score=3, target_score=4)
    return profile, a, b


def open_survey(session, **kwargs):
    survey = api.create_survey(session, "Quarterly pulse", **kwargs)
    api.add_question_to_survey(session, survey.id, "How do you rate collaboration?")
    api.add_question_to_survey(session, survey.id, "Anything else?", question_type="TEXT_LONG")
    api.transition_survey(session, survey.id, SurveyStatus.PUBLISHED)
    return api.transition_survey(session, survey.id, SurveyStatus.ACTIVE)


class TestDimensions:
    def test_create_seeds_family_defaults(self, session):
        d = api.create_dimension(session, "Availability", scale_family=ScaleFamily.PERCENTAGE)
        assert (d.min_value, d.max_value) == (0.0, 100.0)
        assert d.labels[100] == "100%"

        custom = api.create_dimension(session, "Depth", min_value=0, max_value=10, labels={0: "None"})
        assert (custom.min_value, custom.max_value) == (0.0, 10.0)
        assert custom.labels == {0: "None"}

    def test_create_rejects_invalid_input(self, session):
        with pytest.raises(ValidationError):
            api.create_dimension(session, "Depth", min_value=3, max_value=3)
        with pytest.raises(MultipleValidationError):
            api.create_dimension(session, "", display_weight=150)

    def test_duplicate_name(self, session):
        api.create_dimension(session, "Teamwork")
        with pytest.raises(IntegrityError):
            api.create_dimension(session, "Teamwork")

    def test_rescale_checks_existing_bindings(self, session, profile_with_bindings):
        _, a, _ = profile_with_bindings
        with pytest.raises(InvalidThresholdError):
            api.rescale_dimension(session, a.id, 3, 10)
        wider = api.rescale_dimension(session, a.id, 0, 10)
        assert wider.max_value == 10.0

    def test_protected_dimensions_cannot_change(self, session):
        seeded = api.seed_default_dimensions(session)
        assert len(seeded) == 8
        with pytest.raises(ProtectedEntityError):
            api.rescale_dimension(session, seeded[0].id, 0, 10)
        with pytest.raises(ProtectedEntityError):
            api.delete_dimension(session, seeded[0].id)

    def test_delete_is_soft(self, session):
        d = api.create_dimension(session, "Legacy skill")
        assert api.delete_dimension(session, d.id).active is False
        assert [x.name for x in api.list_dimensions(session)] == []
        assert [x.name for x in api.list_dimensions(session, active_only=False)] == ["Legacy skill"]

    def test_unknown_dimension(self, session):
        with pytest.raises(DimensionNotFoundError):
            api.rescale_dimension(session, 999, 0, 10)


class TestProfiles:
    def test_profile_defaults_from_settings(self, session, monkeypatch):
        profile = api.create_success_profile(session, "Analyst")
        assert (profile.min_success_score, profile.target_success_score) == (70, 85)

        monkeypatch.setenv("ENGINE_DEFAULT_MIN_SUCCESS_SCORE", "50")
        reset_settings()
        assert api.create_success_profile(session, "Intern").min_success_score == 50

    def test_bind_defaults_and_duplicates(self, session):
        d = api.create_dimension(session, "Teamwork")
        profile = api.create_success_profile(session, "Analyst")
        profile = api.bind_dimension(session, profile.id, d.id)
        binding = profile.binding_for(d.id)
        assert (binding.weight, binding.min_score, binding.target_score) == (10, 1, 4)

        with pytest.raises(DuplicateBindingError):
            api.bind_dimension(session, profile.id, d.id, weight=20)

    def test_bind_rejects_inactive_dimension_and_bad_thresholds(self, session):
        d = api.create_dimension(session, "Teamwork")
        profile = api.create_success_profile(session, "Analyst")
        with pytest.raises(InvalidThresholdError):
            api.bind_dimension(session, profile.id, d.id, min_score=0, target_score=4)
        with pytest.raises(ValidationError):
            api.bind_dimension(session, profile.id, d.id, min_score=4, target_score=2)

        api.delete_dimension(session, d.id)
        with pytest.raises(ValidationError):
            api.bind_dimension(session, profile.id, d.id)

    def test_update_and_unbind(self, session, profile_with_bindings):
        profile, a, b = profile_with_bindings
        updated = api.update_binding(session, profile.id, a.id, weight=50, is_critical=True)
        assert updated.binding_for(a.id).weight == 50
        assert updated.binding_for(a.id).is_critical

        with pytest.raises(ValidationError):
            api.update_binding(session, profile.id, a.id, colour="blue")

        remaining = api.unbind_dimension(session, profile.id, b.id)
        assert [x.dimension_id for x in remaining.bindings] == [a.id]
        with pytest.raises(BindingNotFoundError):
            api.unbind_dimension(session, profile.id, b.id)

    def test_evaluate_profile(self, session, profile_with_bindings):
        profile, a, b = profile_with_bindings
        result = api.evaluate_profile(session, profile.id, {a.id: 4, b.id: 3})
        assert result.success_score == pytest.approx(67.5)
        assert result.meets_minimum and not result.meets_target

        assert api.evaluate_profile(session, profile.id, {a.id: 4}).success_score == pytest.approx(75)
        invalid = api.evaluate_profile(session, profile.id, {a.id: 9, b.id: 3})
        assert invalid.success_score == pytest.approx(15.0)
        assert invalid.per_dimension[0].status is PerformanceStatus.INVALID

    def test_inactive_profile_cannot_be_evaluated(self, session, profile_with_bindings):
        profile, a, _ = profile_with_bindings
        ProfileRepo(session).update(ProfileRepo(session).get_by_id_required(profile.id), active=False)
        with pytest.raises(ProfileInactiveError):
            api.evaluate_profile(session, profile.id, {a.id: 4})

    def test_evaluate_cohort(self, session, profile_with_bindings):
        profile, a, b = profile_with_bindings
        df = api.evaluate_cohort(session, profile.id, {"emp-1": {a.id: 4, b.id: 3}, "emp-2": {a.id: 1}})
        assert isinstance(df, pd.DataFrame)
        assert list(df["RespondentID"]) == ["emp-1", "emp-2"]
        assert df.loc[0, "SuccessScore"] == pytest.approx(67.5)
        assert bool(df.loc[1, "MeetsMinimum"]) is False
        assert pd.isna(df.loc[1, "Communication (%)"])

    def test_cohort_export_flag(self, session, profile_with_bindings, monkeypatch):
        profile, a, _ = profile_with_bindings
        monkeypatch.setenv("APP_ENABLE_COHORT_EXPORT", "false")
        reset_settings()
        with pytest.raises(ConfigurationError):
            api.evaluate_cohort(session, profile.id, {"emp-1": {a.id: 4}})

    def test_dimension_usage(self, session, profile_with_bindings):
        profile, a, _ = profile_with_bindings
        other = api.create_success_profile(session, "Architect")
        api.bind_dimension(session, other.id, a.id, weight=30, min_score=3, target_score=5)
        usage = api.dimension_usage_analysis(session, a.id)
        assert usage.usage_count == 2
        assert usage.average_weight == pytest.approx(50)
        assert set(usage.profile_ids) == {profile.id, other.id}


class TestSurveys:
    def test_lifecycle_and_locking(self, session):
        survey = open_survey(session)
        assert survey.status is SurveyStatus.ACTIVE
        assert survey.start_date is not None
        assert survey.question_count == 2
        assert survey.questions[0].options[0] == "Strongly disagree"

        with pytest.raises(SurveyLockedError):
            api.add_question_to_survey(session, survey.id, "Too late")
        with pytest.raises(IllegalTransitionError):
            api.transition_survey(session, survey.id, SurveyStatus.DRAFT)

        done = api.transition_survey(session, survey.id, SurveyStatus.COMPLETED)
        assert done.end_date is not None
        assert api.transition_survey(session, survey.id, "ARCHIVED").status is SurveyStatus.ARCHIVED

    def test_expected_version(self, session):
        survey = api.create_survey(session, "Versioned")
        version = api.get_survey_version(session, survey.id)
        api.transition_survey(session, survey.id, SurveyStatus.PUBLISHED, expected_version=version)
        with pytest.raises(ConcurrentModificationError):
            api.transition_survey(session, survey.id, SurveyStatus.ACTIVE, expected_version=version)

    def test_create_survey_validation(self, session):
        start = utcnow()
        with pytest.raises(ValidationError):
            api.create_survey(session, "Backwards", start_date=start, end_date=start - timedelta(days=1))

    def test_text_question_cannot_link_dimension(self, session):
        d = api.create_dimension(session, "Teamwork")
        survey = api.create_survey(session, "Pulse")
        with pytest.raises(ValidationError):
            api.add_question_to_survey(session, survey.id, "Why?", question_type="TEXT_SHORT", dimension_id=d.id)
        q = api.add_question_to_survey(session, survey.id, "Rate teamwork", dimension_id=d.id)
        assert q.dimension_id == d.id

    def test_response_flow(self, session):
        survey = open_survey(session)
        response = api.start_survey_response(session, survey.id, respondent_id=7)
        assert response.status is ResponseStatus.STARTED

        with pytest.raises(DuplicateResponseError):
            api.start_survey_response(session, survey.id, respondent_id=7)

        response = api.advance_survey_response(
            session, response.id, ResponseStatus.IN_PROGRESS, answered_questions=1
        )
        assert response.completion_percentage == 50.0
        response = api.advance_survey_response(session, response.id, ResponseStatus.SUBMITTED)
        assert response.completion_percentage == 100.0
        assert response.submitted_at is not None

        stats = api.survey_statistics(session, survey.id)
        assert stats["total_questions"] == 2
        assert stats["total_responses"] == 1
        assert stats["submitted_responses"] == 1
        assert stats["completed_responses"] == 1
        assert stats["is_currently_active"] is True
        assert stats["response_rate"] is None
        assert stats["average_completion_percentage"] == 100.0

    def test_capacity_and_closed_survey(self, session):
        survey = open_survey(session, max_responses=1, anonymous=True)
        first = api.start_survey_response(session, survey.id, respondent_id=7)
        assert first.respondent_id is None
        with pytest.raises(SurveyFullError):
            api.start_survey_response(session, survey.id)

        api.transition_survey(session, survey.id, SurveyStatus.PAUSED)
        with pytest.raises(SurveyClosedError):
            api.advance_survey_response(session, first.id, ResponseStatus.SUBMITTED)
        expired = api.advance_survey_response(session, first.id, ResponseStatus.EXPIRED)
        assert expired.status is ResponseStatus.EXPIRED

        stats = api.survey_statistics(session, survey.id)
        assert stats["response_rate"] == 100.0
        assert stats["is_full"] is True

    def test_remove_question_only_before_activation(self, session):
        survey = api.create_survey(session, "Onboarding check-in")
        first = api.add_question_to_survey(session, survey.id, "How was your first week?")
        second = api.add_question_to_survey(
            session, survey.id, "Anything missing?", question_type="TEXT_LONG"
        )
        version = api.get_survey_version(session, survey.id)

        trimmed = api.remove_question_from_survey(session, survey.id, first.id)
        assert [q.id for q in trimmed.questions] == [second.id]
        assert api.get_survey_version(session, survey.id) == version + 1

        with pytest.raises(ValidationError):
            api.remove_question_from_survey(session, survey.id, first.id)

        api.transition_survey(session, survey.id, SurveyStatus.PUBLISHED)
        api.transition_survey(session, survey.id, SurveyStatus.ACTIVE)
        with pytest.raises(SurveyLockedError):
            api.remove_question_from_survey(session, survey.id, second.id)

    def test_starting_a_response_bumps_survey_version(self, session):
        survey = open_survey(session)
        version = api.get_survey_version(session, survey.id)
        api.start_survey_response(session, survey.id, respondent_id=3)
        assert api.get_survey_version(session, survey.id) == version + 1
