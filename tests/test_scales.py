import math

import pytest

from competency.domain.enums import ScaleFamily
from competency.domain.models import Dimension
from competency.domain.scales import (
    default_label_set,
    denormalize,
    is_in_range,
    label_for,
    normalize,
    rescale,
    validate_bounds,
)
from competency.infrastructure.exceptions import (
    OutOfRangeError,
    ProtectedEntityError,
    ValidationError,
)


def test_normalize_likert_bounds_and_midpoint(make_dimension):
    d = make_dimension()
    assert normalize(d, 1) == 0.0
    assert normalize(d, 5) == 100.0
    assert normalize(d, 4) == 75.0
    assert normalize(d, 3) == 50.0


def test_normalize_non_unit_origin(make_dimension):
    d = make_dimension(min_value=0, max_value=10)
    assert normalize(d, 2.5) == 25.0


@pytest.mark.parametrize("raw", [0, 5.01, -1, None, float("nan"), float("inf"), "3", True])
def test_normalize_rejects_out_of_range_and_non_numbers(make_dimension, raw):
    with pytest.raises(OutOfRangeError) as exc:
        normalize(make_dimension(id_=7), raw)
    assert exc.value.dimension_id == 7


def test_denormalize_inverts_normalize(make_dimension):
    d = make_dimension(min_value=1, max_value=7)
    for raw in (1, 2.5, 4, 7):
        assert math.isclose(denormalize(d, normalize(d, raw)), raw)


@pytest.mark.parametrize("pct", [-0.1, 100.5, None])
def test_denormalize_rejects_invalid_percentage(make_dimension, pct):
    with pytest.raises(OutOfRangeError) as exc:
        denormalize(make_dimension(), pct)
    assert exc.value.kind == "percentage"


def test_is_in_range_is_inclusive(make_dimension):
    d = make_dimension()
    assert is_in_range(d, 1)
    assert is_in_range(d, 5)
    assert not is_in_range(d, 0.999)
    assert not is_in_range(d, None)


@pytest.mark.parametrize("lo,hi", [(5, 5), (6, 1), (None, 5), (1, float("nan"))])
def test_validate_bounds_rejects_degenerate_ranges(lo, hi):
    with pytest.raises(ValidationError):
        validate_bounds(lo, hi)


def test_dimension_construction_enforces_bounds():
    with pytest.raises(ValidationError):
        Dimension(id=1, name="Broken", min_value=3, max_value=3)


def test_default_label_sets():
    likert = default_label_set(ScaleFamily.LIKERT_5)
    assert (likert.min_value, likert.max_value) == (1.0, 5.0)
    assert likert.labels[1] == "Insufficient"
    assert likert.labels[5] == "Excellent"

    pct = default_label_set(ScaleFamily.PERCENTAGE)
    assert (pct.min_value, pct.max_value) == (0.0, 100.0)

    yes_no = default_label_set("YES_NO")
    assert yes_no.labels == {0: "No", 1: "Yes"}

    assert default_label_set(ScaleFamily.CUSTOM).max_value == 5.0


def test_default_label_set_returns_a_copy():
    first = default_label_set(ScaleFamily.LIKERT_5)
    first.labels[1] = "Changed"
    assert default_label_set(ScaleFamily.LIKERT_5).labels[1] == "Insufficient"


def test_rescale_returns_new_dimension(make_dimension):
    d = make_dimension()
    wider = rescale(d, 0, 10)
    assert (wider.min_value, wider.max_value) == (0.0, 10.0)
    assert (d.min_value, d.max_value) == (1.0, 5.0)


def test_rescale_refuses_protected_and_invalid(make_dimension):
    with pytest.raises(ProtectedEntityError):
        rescale(make_dimension(system_protected=True), 0, 10)
    with pytest.raises(ValidationError):
        rescale(make_dimension(), 10, 0)


def test_label_for(make_dimension):
    d = make_dimension(labels={1: "Insufficient", 5: "Excellent"})
    assert label_for(d, 5) == "Excellent"
    assert label_for(d, 3) is None
    assert label_for(d, 4.5) is None
    assert label_for(d, 9) is None
