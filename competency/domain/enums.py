"""Closed enumerations used across the engine, each with an exhaustive display-name table."""

from __future__ import annotations

from enum import StrEnum


class DimensionCategory(StrEnum):
    TECHNICAL = "TECHNICAL"
    BEHAVIORAL = "BEHAVIORAL"
    LEADERSHIP = "LEADERSHIP"
    CORE_COMPETENCY = "CORE_COMPETENCY"
    FUNCTIONAL = "FUNCTIONAL"
    SOFT_SKILLS = "SOFT_SKILLS"
    COMMUNICATION = "COMMUNICATION"
    PROBLEM_SOLVING = "PROBLEM_SOLVING"
    TEAMWORK = "TEAMWORK"
    CUSTOMER_FOCUS = "CUSTOMER_FOCUS"
    INNOVATION = "INNOVATION"
    ADAPTABILITY = "ADAPTABILITY"

    @property
    def display_name(self) -> str:
        return _CATEGORY_NAMES[self]


class ScaleFamily(StrEnum):
    LIKERT_3 = "LIKERT_3"
    LIKERT_5 = "LIKERT_5"
    LIKERT_7 = "LIKERT_7"
    LIKERT_10 = "LIKERT_10"
    PERCENTAGE = "PERCENTAGE"
    NUMERIC = "NUMERIC"
    YES_NO = "YES_NO"
    RATING_STARS = "RATING_STARS"
    CUSTOM = "CUSTOM"

    @property
    def display_name(self) -> str:
        return _SCALE_NAMES[self]


class ProfileScope(StrEnum):
    POSITION_SPECIFIC = "POSITION_SPECIFIC"
    DEPARTMENT_WIDE = "DEPARTMENT_WIDE"
    COMPANY_WIDE = "COMPANY_WIDE"
    ROLE_BASED = "ROLE_BASED"
    LEVEL_BASED = "LEVEL_BASED"
    CUSTOM = "CUSTOM"

    @property
    def display_name(self) -> str:
        return _SCOPE_NAMES[self]


class PerformanceStatus(StrEnum):
    INVALID = "INVALID"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    MEETS_MINIMUM = "MEETS_MINIMUM"
    EXCEEDS_TARGET = "EXCEEDS_TARGET"

    @property
    def display_name(self) -> str:
        return _PERFORMANCE_NAMES[self]


class SurveyStatus(StrEnum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"
    CANCELLED = "CANCELLED"

    @property
    def display_name(self) -> str:
        return _SURVEY_STATUS_NAMES[self]


class ResponseStatus(StrEnum):
    STARTED = "STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    SUBMITTED = "SUBMITTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"

    @property
    def display_name(self) -> str:
        return _RESPONSE_STATUS_NAMES[self]


class SurveyType(StrEnum):
    PERFORMANCE = "PERFORMANCE"
    FEEDBACK_360 = "FEEDBACK_360"
    SATISFACTION = "SATISFACTION"
    EXIT_INTERVIEW = "EXIT_INTERVIEW"
    ENGAGEMENT = "ENGAGEMENT"
    TRAINING_EVALUATION = "TRAINING_EVALUATION"
    CLIMATE_SURVEY = "CLIMATE_SURVEY"
    PULSE_SURVEY = "PULSE_SURVEY"
    ONBOARDING = "ONBOARDING"
    COMPETENCY = "COMPETENCY"
    LEADERSHIP = "LEADERSHIP"
    CUSTOM = "CUSTOM"

    @property
    def display_name(self) -> str:
        return _SURVEY_TYPE_NAMES[self]


class TargetGroup(StrEnum):
    ALL_EMPLOYEES = "ALL_EMPLOYEES"
    DEPARTMENT = "DEPARTMENT"
    POSITION = "POSITION"
    ROLE = "ROLE"
    MANAGER_LEVEL = "MANAGER_LEVEL"
    NEW_EMPLOYEES = "NEW_EMPLOYEES"
    REMOTE_EMPLOYEES = "REMOTE_EMPLOYEES"
    CUSTOM = "CUSTOM"

    @property
    def display_name(self) -> str:
        return _TARGET_GROUP_NAMES[self]


class QuestionType(StrEnum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    MULTIPLE_SELECT = "MULTIPLE_SELECT"
    LIKERT_5 = "LIKERT_5"
    LIKERT_7 = "LIKERT_7"
    LIKERT_10 = "LIKERT_10"
    TEXT_SHORT = "TEXT_SHORT"
    TEXT_LONG = "TEXT_LONG"
    YES_NO = "YES_NO"
    RATING_STARS = "RATING_STARS"
    RATING_NUMERIC = "RATING_NUMERIC"
    SLIDER = "SLIDER"
    DROPDOWN = "DROPDOWN"
    RANKING = "RANKING"
    MATRIX = "MATRIX"
    DATE = "DATE"
    TIME = "TIME"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    NUMBER = "NUMBER"
    FILE_UPLOAD = "FILE_UPLOAD"
    IMAGE_CHOICE = "IMAGE_CHOICE"
    NET_PROMOTER_SCORE = "NET_PROMOTER_SCORE"
    CUSTOM = "CUSTOM"

    @property
    def display_name(self) -> str:
        return _QUESTION_TYPE_NAMES[self]

    @property
    def is_numeric(self) -> bool:
        """Answers to this question type can roll up into a dimension score."""
        return self in _NUMERIC_QUESTION_TYPES


_CATEGORY_NAMES: dict[DimensionCategory, str] = {
    DimensionCategory.TECHNICAL: "Technical Competencies",
    DimensionCategory.BEHAVIORAL: "Behavioral Competencies",
    DimensionCategory.LEADERSHIP: "Leadership Competencies",
    DimensionCategory.CORE_COMPETENCY: "Core Competencies",
    DimensionCategory.FUNCTIONAL: "Functional Competencies",
    DimensionCategory.SOFT_SKILLS: "Soft Skills",
    DimensionCategory.COMMUNICATION: "Communication Skills",
    DimensionCategory.PROBLEM_SOLVING: "Problem Solving",
    DimensionCategory.TEAMWORK: "Teamwork",
    DimensionCategory.CUSTOMER_FOCUS: "Customer Focus",
    DimensionCategory.INNOVATION: "Innovation",
    DimensionCategory.ADAPTABILITY: "Adaptability",
}

_SCALE_NAMES: dict[ScaleFamily, str] = {
    ScaleFamily.LIKERT_3: "3-point Likert (1-3)",
    ScaleFamily.LIKERT_5: "5-point Likert (1-5)",
    ScaleFamily.LIKERT_7: "7-point Likert (1-7)",
    ScaleFamily.LIKERT_10: "10-point Likert (1-10)",
    ScaleFamily.PERCENTAGE: "Percentage (0-100)",
    ScaleFamily.NUMERIC: "Numeric (custom range)",
    ScaleFamily.YES_NO: "Yes / No",
    ScaleFamily.RATING_STARS: "Star rating (1-5)",
    ScaleFamily.CUSTOM: "Custom scale",
}

_SCOPE_NAMES: dict[ProfileScope, str] = {
    ProfileScope.POSITION_SPECIFIC: "Position specific",
    ProfileScope.DEPARTMENT_WIDE: "Department wide",
    ProfileScope.COMPANY_WIDE: "Company wide",
    ProfileScope.ROLE_BASED: "Role based",
    ProfileScope.LEVEL_BASED: "Level based",
    ProfileScope.CUSTOM: "Custom",
}

_PERFORMANCE_NAMES: dict[PerformanceStatus, str] = {
    PerformanceStatus.INVALID: "Invalid",
    PerformanceStatus.BELOW_MINIMUM: "Below minimum",
    PerformanceStatus.MEETS_MINIMUM: "Meets minimum",
    PerformanceStatus.EXCEEDS_TARGET: "Exceeds target",
}

_SURVEY_STATUS_NAMES: dict[SurveyStatus, str] = {
    SurveyStatus.DRAFT: "Draft",
    SurveyStatus.PUBLISHED: "Published",
    SurveyStatus.ACTIVE: "Active",
    SurveyStatus.PAUSED: "Paused",
    SurveyStatus.COMPLETED: "Completed",
    SurveyStatus.ARCHIVED: "Archived",
    SurveyStatus.CANCELLED: "Cancelled",
}

_RESPONSE_STATUS_NAMES: dict[ResponseStatus, str] = {
    ResponseStatus.STARTED: "Started",
    ResponseStatus.IN_PROGRESS: "In progress",
    ResponseStatus.COMPLETED: "Completed",
    ResponseStatus.SUBMITTED: "Submitted",
    ResponseStatus.EXPIRED: "Expired",
    ResponseStatus.CANCELLED: "Cancelled",
}

_SURVEY_TYPE_NAMES: dict[SurveyType, str] = {
    SurveyType.PERFORMANCE: "Performance review",
    SurveyType.FEEDBACK_360: "360-degree feedback",
    SurveyType.SATISFACTION: "Employee satisfaction",
    SurveyType.EXIT_INTERVIEW: "Exit interview",
    SurveyType.ENGAGEMENT: "Employee engagement",
    SurveyType.TRAINING_EVALUATION: "Training evaluation",
    SurveyType.CLIMATE_SURVEY: "Workplace climate",
    SurveyType.PULSE_SURVEY: "Pulse survey",
    SurveyType.ONBOARDING: "Onboarding",
    SurveyType.COMPETENCY: "Competency assessment",
    SurveyType.LEADERSHIP: "Leadership assessment",
    SurveyType.CUSTOM: "Custom survey",
}

_TARGET_GROUP_NAMES: dict[TargetGroup, str] = {
    TargetGroup.ALL_EMPLOYEES: "All employees",
    TargetGroup.DEPARTMENT: "Specific department",
    TargetGroup.POSITION: "Specific position",
    TargetGroup.ROLE: "Specific role",
    TargetGroup.MANAGER_LEVEL: "Manager level",
    TargetGroup.NEW_EMPLOYEES: "New employees",
    TargetGroup.REMOTE_EMPLOYEES: "Remote employees",
    TargetGroup.CUSTOM: "Custom selection",
}

_QUESTION_TYPE_NAMES: dict[QuestionType, str] = {
    QuestionType.MULTIPLE_CHOICE: "Multiple choice (single)",
    QuestionType.MULTIPLE_SELECT: "Multiple choice (multi)",
    QuestionType.LIKERT_5: "5-point Likert",
    QuestionType.LIKERT_7: "7-point Likert",
    QuestionType.LIKERT_10: "10-point Likert",
    QuestionType.TEXT_SHORT: "Short text",
    QuestionType.TEXT_LONG: "Long text",
    QuestionType.YES_NO: "Yes / No",
    QuestionType.RATING_STARS: "Star rating",
    QuestionType.RATING_NUMERIC: "Numeric rating",
    QuestionType.SLIDER: "Slider",
    QuestionType.DROPDOWN: "Dropdown",
    QuestionType.RANKING: "Ranking",
    QuestionType.MATRIX: "Matrix",
    QuestionType.DATE: "Date",
    QuestionType.TIME: "Time",
    QuestionType.EMAIL: "Email",
    QuestionType.PHONE: "Phone",
    QuestionType.NUMBER: "Number",
    QuestionType.FILE_UPLOAD: "File upload",
    QuestionType.IMAGE_CHOICE: "Image choice",
    QuestionType.NET_PROMOTER_SCORE: "Net Promoter Score",
    QuestionType.CUSTOM: "Custom",
}

_NUMERIC_QUESTION_TYPES = frozenset(
    {
        QuestionType.LIKERT_5,
        QuestionType.LIKERT_7,
        QuestionType.LIKERT_10,
        QuestionType.YES_NO,
        QuestionType.RATING_STARS,
        QuestionType.RATING_NUMERIC,
        QuestionType.SLIDER,
        QuestionType.NUMBER,
        QuestionType.NET_PROMOTER_SCORE,
    }
)
