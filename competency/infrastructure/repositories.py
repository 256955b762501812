"""
Repository entry point.

Re-exports the split repository modules so callers can write
``from competency.infrastructure.repositories import ProfileRepo``.
"""

from __future__ import annotations

from .repositories_dimension import DimensionRepo  # re-export
from .repositories_profile import ProfileRepo  # re-export
from .repositories_survey import ResponseRepo, SurveyRepo  # re-export

# Tell linters/formatters these imports are intentional (exported API)
__all__ = [
    "DimensionRepo",
    "ProfileRepo",
    "SurveyRepo",
    "ResponseRepo",
]
