from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import pandas as pd

from ..domain.evaluator import EvaluationResult, Observations, evaluate
from ..domain.models import SuccessProfile

COHORT_COLUMNS = [
    "RespondentID",
    "SuccessScore",
    "MeetsMinimum",
    "MeetsTarget",
    "CriticalFailure",
    "CriticalDimensions",
]


def _to_iso(val):
    if hasattr(val, "isoformat"):
        return val.isoformat()
    return val


def _dimension_column(name: str) -> str:
    return f"{name} (%)"


def cohort_frame(
    profile: SuccessProfile,
    cohort: Mapping[Any, Observations],
    precision: int = 4,
) -> pd.DataFrame:
    """
    Evaluate many respondents against one profile.

    One row per respondent with the aggregate outcome followed by one column
    of normalized scores per active dimension, in binding display order.
    Unobserved and out-of-range dimensions are NaN.
    """
    dimension_columns = [_dimension_column(b.dimension.name) for b in profile.active_bindings]
    records = []
    for respondent_id, observations in cohort.items():
        result = evaluate(profile, observations)
        record: dict[str, Any] = {
            "RespondentID": respondent_id,
            "SuccessScore": round(result.success_score, precision),
            "MeetsMinimum": result.meets_minimum,
            "MeetsTarget": result.meets_target,
            "CriticalFailure": result.has_critical_failure,
            "CriticalDimensions": ",".join(str(d) for d in result.critical_failures),
        }
        for column, outcome in zip(dimension_columns, result.per_dimension, strict=True):
            record[column] = (
                round(outcome.normalized_score, precision)
                if outcome.normalized_score is not None
                else float("nan")
            )
        records.append(record)

    return pd.DataFrame(records, columns=COHORT_COLUMNS + dimension_columns)


def outcome_frame(profile: SuccessProfile, result: EvaluationResult) -> pd.DataFrame:
    """Per-dimension table for a single evaluation."""
    names = {b.dimension_id: b.dimension.name for b in profile.active_bindings}
    rows = [
        {
            "DimensionID": o.dimension_id,
            "Dimension": names.get(o.dimension_id),
            "Status": o.status.display_name,
            "RawScore": o.raw_score,
            "NormalizedScore": o.normalized_score,
            "Weight": o.weight,
            "Critical": o.is_critical,
            "TargetGap": o.target_gap,
        }
        for o in result.per_dimension
    ]
    return pd.DataFrame(
        rows,
        columns=[
            "DimensionID",
            "Dimension",
            "Status",
            "RawScore",
            "NormalizedScore",
            "Weight",
            "Critical",
            "TargetGap",
        ],
    )


def make_json_export_payload(profile: SuccessProfile, cohort_df: pd.DataFrame) -> str:
    payload = {
        "profile_id": profile.id,
        "profile": profile.name,
        "min_success_score": profile.min_success_score,
        "target_success_score": profile.target_success_score,
        # NaN is not valid JSON
        "respondents": cohort_df.astype(object)
        .where(cohort_df.notna(), None)
        .map(_to_iso)
        .to_dict(orient="records"),
    }
    return json.dumps(payload, indent=2, default=str)


def make_csv_export_bytes(cohort_df: pd.DataFrame) -> bytes:
    return cohort_df.to_csv(index=False).encode("utf-8")
