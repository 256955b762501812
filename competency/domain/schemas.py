"""
Pydantic schemas for input validation at the application boundary.

These schemas check shape and ranges of caller-supplied data before it is
turned into domain snapshots; rules that need other entities (duplicate
bindings, thresholds against a dimension's scale, survey status) are enforced
by the domain functions themselves.
"""

from __future__ import annotations

import re
from datetime import datetime
from html import unescape
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import (
    DimensionCategory,
    ProfileScope,
    QuestionType,
    ScaleFamily,
    SurveyType,
    TargetGroup,
)


class BaseValidationSchema(BaseModel):
    """Base schema with common validation utilities."""

    class Config:
        str_strip_whitespace = True
        validate_assignment = True

    @field_validator("*", mode="before")
    def sanitize_strings(cls, v):
        """Strip markup and control characters from string inputs."""
        if isinstance(v, str):
            cleaned = unescape(v.strip())
            cleaned = re.sub(
                r"<\s*script[^>]*>.*?<\s*/\s*script\s*>",
                "",
                cleaned,
                flags=re.IGNORECASE | re.DOTALL,
            )
            cleaned = re.sub(r"<[^>]+>", "", cleaned)
            cleaned = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]", "", cleaned)
            return cleaned
        return v


class DimensionInput(BaseValidationSchema):
    """Validation schema for creating a dimension."""

    name: str = Field(..., min_length=1, max_length=100)
    category: DimensionCategory = DimensionCategory.TECHNICAL
    scale_family: ScaleFamily = ScaleFamily.LIKERT_5
    min_value: float | None = None
    max_value: float | None = None
    labels: dict[int, str] | None = None
    display_weight: float = Field(1.0, ge=0, le=100)
    description: str | None = Field(None, max_length=500)
    display_order: int = Field(0, ge=0)

    @field_validator("name")
    def validate_dimension_name(cls, v):
        if not re.match(r"^[\w\s\-&().,/]+$", v):
            raise ValueError("Dimension name contains invalid characters")
        return v.strip()

    @model_validator(mode="after")
    def validate_bounds_pair(self):
        """Explicit bounds come in pairs with min_value < max_value."""
        if (self.min_value is None) != (self.max_value is None):
            raise ValueError("min_value and max_value must be given together")
        if self.min_value is not None and self.min_value >= self.max_value:
            raise ValueError("min_value must be less than max_value")
        return self


class SuccessProfileInput(BaseValidationSchema):
    """Validation schema for creating a success profile."""

    name: str = Field(..., min_length=1, max_length=100)
    scope: ProfileScope = ProfileScope.COMPANY_WIDE
    min_success_score: float | None = Field(None, ge=0, le=100)
    target_success_score: float | None = Field(None, ge=0, le=100)
    description: str | None = Field(None, max_length=1000)
    position_id: int | None = Field(None, gt=0)
    department_id: int | None = Field(None, gt=0)

    @model_validator(mode="after")
    def validate_thresholds(self):
        if (
            self.min_success_score is not None
            and self.target_success_score is not None
            and self.min_success_score > self.target_success_score
        ):
            raise ValueError("min_success_score cannot exceed target_success_score")
        return self


class BindingInput(BaseValidationSchema):
    """Validation schema for binding a dimension to a profile."""

    profile_id: int = Field(..., gt=0)
    dimension_id: int = Field(..., gt=0)
    weight: float | None = Field(None, ge=0, le=100)
    min_score: float | None = None
    target_score: float | None = None
    is_critical: bool = False
    notes: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def validate_threshold_order(self):
        if (
            self.min_score is not None
            and self.target_score is not None
            and self.min_score > self.target_score
        ):
            raise ValueError("min_score cannot exceed target_score")
        return self


class BindingUpdateInput(BaseValidationSchema):
    """Partial update of an existing binding; None leaves a field unchanged."""

    weight: float | None = Field(None, ge=0, le=100)
    min_score: float | None = None
    target_score: float | None = None
    is_critical: bool | None = None
    active: bool | None = None
    notes: str | None = Field(None, max_length=500)
    display_order: int | None = Field(None, ge=0)


class SurveyInput(BaseValidationSchema):
    """Validation schema for creating a survey."""

    title: str = Field(..., min_length=1, max_length=200)
    survey_type: SurveyType = SurveyType.PERFORMANCE
    target_group: TargetGroup = TargetGroup.ALL_EMPLOYEES
    start_date: datetime | None = None
    end_date: datetime | None = None
    max_responses: int | None = Field(None, ge=1)
    anonymous: bool = False
    repeatable: bool = False
    description: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def validate_window(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class QuestionInput(BaseValidationSchema):
    """Validation schema for adding a question to a survey."""

    text: str = Field(..., min_length=1, max_length=1000)
    question_type: QuestionType = QuestionType.LIKERT_5
    required: bool = True
    options: list[str] | None = None
    min_value: float | None = None
    max_value: float | None = None
    dimension_id: int | None = Field(None, gt=0)
    weight: float = Field(1.0, ge=0)
    display_order: int = Field(0, ge=0)

    @field_validator("options", mode="after")
    def sanitise_options(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        cleaned = [item.strip() for item in value if item and item.strip()]
        return cleaned or None

    @model_validator(mode="after")
    def validate_dimension_link(self):
        """Only numeric answers can roll up into a dimension score."""
        if self.dimension_id is not None and not self.question_type.is_numeric:
            raise ValueError(
                f"{self.question_type.value} questions cannot be linked to a dimension"
            )
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value >= self.max_value
        ):
            raise ValueError("min_value must be less than max_value")
        return self


class RespondentObservations(BaseValidationSchema):
    """One respondent's raw scores keyed by dimension id."""

    respondent_id: int | str
    scores: dict[int, float | None]


class ValidationErrorDetail(BaseModel):
    """Schema for validation error details."""

    field: str
    message: str
    value: Any = None


class ValidationResponse(BaseModel):
    """Schema for validation responses."""

    success: bool
    errors: list[ValidationErrorDetail] = []
    data: dict[str, Any] | None = None


def validate_input(schema_class: type[BaseModel], data: dict[str, Any]) -> ValidationResponse:
    """
    Centralized validation function that returns structured validation results.

    Args:
        schema_class: Pydantic model class to use for validation
        data: Input data to validate

    Returns:
        ValidationResponse with success status and any errors

    Example:
        >>> result = validate_input(DimensionInput, {"name": "Teamwork"})
        >>> if result.success:
        ...     validated_data = result.data
        >>> else:
        ...     for error in result.errors:
        ...         print(f"Error in {error.field}: {error.message}")
    """
    try:
        validated = schema_class(**data)
        return ValidationResponse(success=True, data=validated.model_dump())
    except Exception as e:
        errors = []
        if hasattr(e, "errors"):  # Pydantic validation errors
            for error in e.errors():
                errors.append(
                    ValidationErrorDetail(
                        field=".".join(str(x) for x in error["loc"]) or "general",
                        message=error["msg"],
                        value=error.get("input"),
                    )
                )
        else:  # Other validation errors
            errors.append(ValidationErrorDetail(field="general", message=str(e)))

        return ValidationResponse(success=False, errors=errors)
