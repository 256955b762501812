import pytest

from competency.domain.bindings import (
    bind_dimension,
    create_binding,
    improvement_suggestion,
    is_critical_failure,
    performance_status,
    target_gap,
    unbind_dimension,
    update_binding,
    weighted_contribution,
)
from competency.domain.enums import PerformanceStatus
from competency.domain.models import SuccessProfile
from competency.infrastructure.config import EngineConfig
from competency.infrastructure.exceptions import (
    BindingNotFoundError,
    DuplicateBindingError,
    InvalidThresholdError,
    ValidationError,
)


@pytest.fixture
def empty_profile():
    return SuccessProfile(id=1, name="Engineer")


def test_create_binding_applies_defaults(empty_profile, make_dimension, engine_defaults):
    binding = create_binding(empty_profile, make_dimension(), defaults=engine_defaults)
    assert binding.weight == 10.0
    assert binding.min_score == 1.0
    assert binding.target_score == pytest.approx(4.0)
    assert binding.is_critical is False
    assert binding.display_order == 0


def test_create_binding_uses_configured_defaults(empty_profile, make_dimension):
    defaults = EngineConfig(default_binding_weight=25, default_target_ratio=0.6)
    binding = create_binding(empty_profile, make_dimension(max_value=10), defaults=defaults)
    assert binding.weight == 25
    assert binding.target_score == pytest.approx(6.0)


@pytest.mark.parametrize(
    "min_value,max_value,expected_target",
    [(90, 100, 90.0), (-10, -2, -2.0), (0, 100, 80.0)],
    ids=["offset-scale", "negative-scale", "zero-based"],
)
def test_default_target_is_clamped_into_scale(
    empty_profile, make_dimension, engine_defaults, min_value, max_value, expected_target
):
    dimension = make_dimension(2, name="Offset", min_value=min_value, max_value=max_value)
    binding = create_binding(empty_profile, dimension, defaults=engine_defaults)
    assert binding.min_score == min_value
    assert binding.target_score == pytest.approx(expected_target)


@pytest.mark.parametrize(
    "min_score,target_score",
    [(0, 4), (2, 6), (4, 3)],
    ids=["min-below-scale", "target-above-scale", "min-above-target"],
)
def test_create_binding_rejects_bad_thresholds(empty_profile, make_dimension, min_score, target_score):
    with pytest.raises(InvalidThresholdError) as exc:
        create_binding(
            empty_profile,
            make_dimension(id_=3),
            weight=50,
            min_score=min_score,
            target_score=target_score,
        )
    assert exc.value.dimension_id == 3


@pytest.mark.parametrize("weight", [-1, 100.5])
def test_create_binding_rejects_bad_weight(empty_profile, make_dimension, weight):
    with pytest.raises(ValidationError):
        create_binding(empty_profile, make_dimension(), weight=weight, min_score=2, target_score=4)


def test_weight_at_bounds_is_allowed(empty_profile, make_dimension):
    assert create_binding(empty_profile, make_dimension(), weight=0, min_score=2, target_score=4)
    assert create_binding(empty_profile, make_dimension(), weight=100, min_score=2, target_score=4)


def test_bind_dimension_rejects_duplicates(empty_profile, make_dimension):
    dimension = make_dimension()
    profile = bind_dimension(empty_profile, dimension, weight=50, min_score=2, target_score=4)
    assert profile.active_binding_count == 1
    assert empty_profile.bindings == ()

    with pytest.raises(DuplicateBindingError):
        bind_dimension(profile, dimension, weight=20, min_score=2, target_score=4)


def test_duplicate_check_includes_inactive_bindings(empty_profile, make_dimension):
    dimension = make_dimension()
    profile = bind_dimension(empty_profile, dimension, weight=50, min_score=2, target_score=4)
    profile = update_binding(profile, dimension.id, active=False)
    assert not profile.has_dimension(dimension.id)
    with pytest.raises(DuplicateBindingError):
        bind_dimension(profile, dimension)


def test_display_order_increments(empty_profile, make_dimension):
    profile = bind_dimension(empty_profile, make_dimension(1), min_score=2, target_score=4)
    profile = bind_dimension(profile, make_dimension(2), min_score=2, target_score=4)
    assert [b.display_order for b in profile.active_bindings] == [0, 1]


def test_unbind_dimension(two_dimension_profile):
    profile = unbind_dimension(two_dimension_profile, 1)
    assert [b.dimension_id for b in profile.bindings] == [2]
    with pytest.raises(BindingNotFoundError):
        unbind_dimension(profile, 1)


def test_update_binding_validates_merged_result(two_dimension_profile):
    updated = update_binding(two_dimension_profile, 1, weight=40, min_score=None)
    binding = updated.binding_for(1)
    assert binding.weight == 40
    assert binding.min_score == 2

    # New min checked against the stored target of 4
    with pytest.raises(InvalidThresholdError):
        update_binding(two_dimension_profile, 1, min_score=4.5)
    assert two_dimension_profile.binding_for(1).weight == 70


def test_update_binding_rejects_unknown_fields_and_missing_binding(two_dimension_profile):
    with pytest.raises(ValidationError):
        update_binding(two_dimension_profile, 1, dimension="other")
    with pytest.raises(BindingNotFoundError):
        update_binding(two_dimension_profile, 99, weight=10)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (1, PerformanceStatus.BELOW_MINIMUM),
        (1.99, PerformanceStatus.BELOW_MINIMUM),
        (2, PerformanceStatus.MEETS_MINIMUM),
        (3.5, PerformanceStatus.MEETS_MINIMUM),
        (4, PerformanceStatus.EXCEEDS_TARGET),
        (5, PerformanceStatus.EXCEEDS_TARGET),
        (None, PerformanceStatus.INVALID),
        (6, PerformanceStatus.INVALID),
    ],
)
def test_performance_status_partitions_the_scale(two_dimension_profile, raw, expected):
    assert performance_status(two_dimension_profile.binding_for(1), raw) is expected


def test_critical_failure_only_for_critical_bindings_below_minimum(make_dimension, make_profile):
    profile = make_profile(
        (make_dimension(1), 50, 3, 4, True),
        (make_dimension(2), 50, 3, 4, False),
    )
    critical, plain = profile.binding_for(1), profile.binding_for(2)
    assert is_critical_failure(critical, 2)
    assert not is_critical_failure(critical, 3)
    assert not is_critical_failure(critical, None)
    assert not is_critical_failure(plain, 1)


def test_weighted_contribution_and_gap(two_dimension_profile):
    binding = two_dimension_profile.binding_for(1)
    assert weighted_contribution(binding, 4) == pytest.approx(52.5)
    assert weighted_contribution(binding, None) == 0.0
    assert target_gap(binding, 3) == 1
    assert target_gap(binding, 5) == 0
    assert target_gap(binding, None) is None


def test_improvement_suggestion_texts(two_dimension_profile):
    binding = two_dimension_profile.binding_for(1)
    assert improvement_suggestion(binding, None) == "Not yet assessed"
    assert improvement_suggestion(binding, 1).startswith("Development needed")
    assert "1.0 more points" in improvement_suggestion(binding, 3)
    assert improvement_suggestion(binding, 5).startswith("Excellent performance")


def test_profile_summary_and_weights(two_dimension_profile):
    assert two_dimension_profile.total_weight == 100
    assert two_dimension_profile.dimension_weight(2) == 30
    assert two_dimension_profile.dimension_weight(42) == 0.0
    assert "2 dimensions" in two_dimension_profile.summary()
