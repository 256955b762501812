import pytest

from competency.domain.bindings import update_binding
from competency.domain.enums import PerformanceStatus
from competency.domain.evaluator import (
    calculate_success_score,
    critical_failures,
    dimension_usage,
    evaluate,
    has_critical_failure,
    meets_success_criteria,
    meets_target_criteria,
)
from competency.domain.models import SuccessProfile
from competency.domain.scales import normalize


def test_weighted_score_over_all_observed(two_dimension_profile):
    observations = {1: 4, 2: 3}
    assert calculate_success_score(two_dimension_profile, observations) == pytest.approx(67.5)
    assert meets_success_criteria(two_dimension_profile, observations)
    assert not meets_target_criteria(two_dimension_profile, observations)


def test_unobserved_dimension_is_excluded_from_denominator(two_dimension_profile):
    assert calculate_success_score(two_dimension_profile, {1: 4}) == pytest.approx(75.0)
    assert calculate_success_score(two_dimension_profile, {1: 4, 2: None}) == pytest.approx(75.0)


def test_no_observations_or_no_bindings_score_zero(two_dimension_profile):
    assert calculate_success_score(two_dimension_profile, {}) == 0.0
    empty = SuccessProfile(id=9, name="Empty")
    assert calculate_success_score(empty, {1: 5}) == 0.0
    assert not meets_success_criteria(empty, {1: 5})


def test_observations_for_unbound_dimensions_are_ignored(two_dimension_profile):
    assert calculate_success_score(two_dimension_profile, {1: 4, 2: 3, 99: 1}) == pytest.approx(
        67.5
    )


def test_out_of_range_observation_contributes_zero_but_keeps_its_weight(two_dimension_profile):
    # 75 * 70 / (70 + 30)
    assert calculate_success_score(two_dimension_profile, {1: 4, 2: 7}) == pytest.approx(52.5)
    assert calculate_success_score(two_dimension_profile, {2: 7}) == 0.0


def test_evaluate_marks_out_of_range_observation_invalid(two_dimension_profile):
    result = evaluate(two_dimension_profile, {1: 4, 2: 9})
    assert result.success_score == pytest.approx(52.5)
    communication = result.per_dimension[1]
    assert communication.status is PerformanceStatus.INVALID
    assert communication.raw_score == 9
    assert communication.normalized_score is None
    assert communication.target_gap is None


@pytest.mark.parametrize("weight", [1, 12.5, 50, 100])
def test_single_binding_at_target_scores_normalized_target(make_dimension, make_profile, weight):
    dimension = make_dimension(1, min_value=1, max_value=7)
    profile = make_profile((dimension, weight, 2, 6, False))
    assert calculate_success_score(profile, {1: 6}) == pytest.approx(normalize(dimension, 6))


def test_inactive_bindings_do_not_contribute(two_dimension_profile):
    profile = update_binding(two_dimension_profile, 2, active=False)
    assert calculate_success_score(profile, {1: 4, 2: 1}) == pytest.approx(75.0)


def test_uniform_weight_scaling_leaves_score_unchanged(make_dimension, make_profile):
    a, b = make_dimension(1), make_dimension(2)
    small = make_profile((a, 7, 2, 4, False), (b, 3, 3, 4, False))
    large = make_profile((a, 70, 2, 4, False), (b, 30, 3, 4, False))
    observations = {1: 4, 2: 3}
    assert calculate_success_score(small, observations) == pytest.approx(
        calculate_success_score(large, observations)
    )


def test_zero_total_weight_scores_zero(make_dimension, make_profile):
    profile = make_profile((make_dimension(1), 0, 2, 4, False))
    assert calculate_success_score(profile, {1: 5}) == 0.0


def test_score_stays_within_percentage_bounds(make_dimension, make_profile):
    profile = make_profile(
        (make_dimension(1), 60, 2, 4, False),
        (make_dimension(2, min_value=0, max_value=100), 40, 50, 80, False),
    )
    assert calculate_success_score(profile, {1: 5, 2: 100}) == pytest.approx(100.0)
    assert calculate_success_score(profile, {1: 1, 2: 0}) == 0.0


def test_critical_failure_is_reported_independently(make_dimension, make_profile):
    profile = make_profile(
        (make_dimension(1), 90, 2, 4, False),
        (make_dimension(3), 10, 3, 4, True),
        min_success_score=60,
    )
    observations = {1: 5, 3: 2}
    result = evaluate(profile, observations)
    assert result.meets_minimum
    assert result.critical_failures == (3,)
    assert result.has_critical_failure
    assert has_critical_failure(profile, observations)


def test_unobserved_critical_dimension_is_not_a_failure(make_dimension, make_profile):
    profile = make_profile((make_dimension(3), 100, 3, 4, True))
    assert critical_failures(profile, {}) == ()


def test_evaluate_reports_each_active_dimension(two_dimension_profile):
    result = evaluate(two_dimension_profile, {1: 4})
    assert result.success_score == pytest.approx(75.0)
    assert result.meets_minimum and not result.meets_target

    first, second = result.per_dimension
    assert first.dimension_id == 1
    assert first.status is PerformanceStatus.EXCEEDS_TARGET
    assert first.normalized_score == pytest.approx(75.0)
    assert first.target_gap == 0
    assert second.status is PerformanceStatus.INVALID
    assert second.normalized_score is None

    payload = result.to_dict()
    assert payload["success_score"] == pytest.approx(75.0)
    assert len(payload["per_dimension"]) == 2


def test_dimension_usage_across_profiles(make_dimension, make_profile):
    shared = make_dimension(1)
    p1 = make_profile((shared, 40, 2, 4, False), profile_id=10)
    p2 = make_profile((shared, 60, 3, 4, False), profile_id=11)
    p3 = make_profile((make_dimension(2), 50, 2, 4, False), profile_id=12)

    usage = dimension_usage(1, [p1, p2, p3])
    assert usage.usage_count == 2
    assert usage.profile_count == 2
    assert usage.profile_ids == (10, 11)
    assert usage.average_weight == pytest.approx(50.0)
    assert usage.average_min_score == pytest.approx(2.5)


def test_dimension_usage_unused():
    usage = dimension_usage(5, [])
    assert usage.usage_count == 0
    assert usage.average_weight == 0.0
