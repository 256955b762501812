"""
Custom exception classes for the competency evaluation engine.

Provides structured error handling with user-friendly messages and proper
error categorization for configuration, evaluation and survey lifecycle
failures.
"""

from __future__ import annotations

from typing import Any


class CompetencyEngineError(Exception):
    """Base exception for all engine errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.user_message = user_message or self._get_default_user_message()

    def _get_default_user_message(self) -> str:
        """Provide a user-friendly version of the error message."""
        return "An unexpected error occurred. Please try again."

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


class ValidationError(CompetencyEngineError):
    """Raised when input validation fails."""

    def __init__(
        self, field: str, message: str, value: Any = None, details: dict[str, Any] | None = None
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=f"Validation failed for field '{field}': {message}",
            details=details or {"field": field, "value": value},
            user_message=f"Invalid {field.replace('_', ' ')}: {message}",
        )

    def _get_default_user_message(self) -> str:
        return f"Please check your input for {self.field.replace('_', ' ')} and try again."


class MultipleValidationError(CompetencyEngineError):
    """Raised when multiple validation errors occur."""

    def __init__(self, errors: list[ValidationError]):
        self.validation_errors = errors
        messages = [f"{e.field}: {e.message}" for e in errors]
        super().__init__(
            message=f"Multiple validation errors: {'; '.join(messages)}",
            details={
                "errors": [
                    {"field": e.field, "message": e.message, "value": e.value} for e in errors
                ]
            },
            user_message="Please correct the following errors and try again.",
        )


class InvalidThresholdError(ValidationError):
    """Raised when a binding's min/target scores are inconsistent or out of scale."""

    def __init__(
        self,
        field: str,
        message: str,
        value: Any = None,
        dimension_id: int | None = None,
    ):
        self.dimension_id = dimension_id
        super().__init__(
            field,
            message,
            value=value,
            details={"field": field, "value": value, "dimension_id": dimension_id},
        )


class OutOfRangeError(CompetencyEngineError):
    """Raised when a raw score or percentage lies outside its defined domain."""

    def __init__(
        self,
        value: Any,
        lower: float,
        upper: float,
        dimension_id: int | None = None,
        kind: str = "score",
    ):
        self.value = value
        self.lower = lower
        self.upper = upper
        self.dimension_id = dimension_id
        self.kind = kind
        where = f" for dimension {dimension_id}" if dimension_id is not None else ""
        super().__init__(
            message=f"{kind.capitalize()} {value!r} is outside [{lower}, {upper}]{where}",
            details={
                "value": value,
                "lower": lower,
                "upper": upper,
                "dimension_id": dimension_id,
                "kind": kind,
            },
            user_message=f"The {kind} must be between {lower:g} and {upper:g}.",
        )


class BusinessLogicError(CompetencyEngineError):
    """Raised when business logic constraints are violated."""

    def __init__(
        self,
        message: str,
        rule: str | None = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        self.rule = rule
        super().__init__(
            message=message,
            details=details or {"rule": rule},
            user_message=user_message
            or "This operation cannot be completed due to business rules.",
        )


class DuplicateBindingError(BusinessLogicError):
    """Raised when a profile already binds the given dimension."""

    def __init__(self, profile_id: int | None, dimension_id: int | None):
        self.profile_id = profile_id
        self.dimension_id = dimension_id
        super().__init__(
            message=f"Profile {profile_id} already binds dimension {dimension_id}",
            rule="unique_profile_dimension",
            details={"profile_id": profile_id, "dimension_id": dimension_id},
            user_message="This dimension is already part of the success profile.",
        )


class BindingNotFoundError(BusinessLogicError):
    """Raised when a profile does not bind the given dimension."""

    def __init__(self, profile_id: int | None, dimension_id: int | None):
        self.profile_id = profile_id
        self.dimension_id = dimension_id
        super().__init__(
            message=f"Profile {profile_id} does not bind dimension {dimension_id}",
            rule="binding_exists",
            details={"profile_id": profile_id, "dimension_id": dimension_id},
            user_message="This dimension is not part of the success profile.",
        )


class IllegalTransitionError(BusinessLogicError):
    """Raised when a survey status change is not permitted by the transition table."""

    def __init__(self, from_status: Any, to_status: Any, survey_id: int | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.survey_id = survey_id
        from_name = getattr(from_status, "value", from_status)
        to_name = getattr(to_status, "value", to_status)
        super().__init__(
            message=f"Illegal survey transition {from_name} -> {to_name}",
            rule="survey_transition",
            details={"from": from_name, "to": to_name, "survey_id": survey_id},
            user_message=f"A survey cannot move from {from_name} to {to_name}.",
        )


class SurveyLockedError(BusinessLogicError):
    """Raised when structural mutation is attempted outside DRAFT/PUBLISHED."""

    def __init__(self, survey_id: int | None, status: Any):
        self.survey_id = survey_id
        self.status = status
        status_name = getattr(status, "value", status)
        super().__init__(
            message=f"Survey {survey_id} is locked for structural changes in status {status_name}",
            rule="survey_structure_lock",
            details={"survey_id": survey_id, "status": status_name},
            user_message="Questions can only be changed while the survey is a draft or published.",
        )


class SurveyClosedError(BusinessLogicError):
    """Raised when a response is started or progressed on a survey that is not currently active."""

    def __init__(self, survey_id: int | None):
        self.survey_id = survey_id
        super().__init__(
            message=f"Survey {survey_id} is not currently accepting responses",
            rule="survey_currently_active",
            details={"survey_id": survey_id},
            user_message="This survey is not accepting responses right now.",
        )


class SurveyFullError(BusinessLogicError):
    """Raised when a survey has reached its maximum number of responses."""

    def __init__(self, survey_id: int | None, max_responses: int | None):
        self.survey_id = survey_id
        self.max_responses = max_responses
        super().__init__(
            message=f"Survey {survey_id} reached its limit of {max_responses} responses",
            rule="survey_capacity",
            details={"survey_id": survey_id, "max_responses": max_responses},
            user_message="This survey has reached its maximum number of responses.",
        )


class DuplicateResponseError(BusinessLogicError):
    """Raised when a respondent already answered a non-repeatable survey."""

    def __init__(self, survey_id: int | None, respondent_id: int | None):
        self.survey_id = survey_id
        self.respondent_id = respondent_id
        super().__init__(
            message=f"Respondent {respondent_id} already has a response for survey {survey_id}",
            rule="unique_survey_respondent",
            details={"survey_id": survey_id, "respondent_id": respondent_id},
            user_message="You have already responded to this survey.",
        )


class IllegalResponseTransitionError(BusinessLogicError):
    """Raised when a survey response status change is not permitted."""

    def __init__(self, from_status: Any, to_status: Any, response_id: int | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.response_id = response_id
        from_name = getattr(from_status, "value", from_status)
        to_name = getattr(to_status, "value", to_status)
        super().__init__(
            message=f"Illegal response transition {from_name} -> {to_name}",
            rule="response_transition",
            details={"from": from_name, "to": to_name, "response_id": response_id},
        )


class ProtectedEntityError(BusinessLogicError):
    """Raised when a system-protected entity would be modified or deleted."""

    def __init__(self, entity: str, entity_id: int | None, operation: str):
        self.entity = entity
        self.entity_id = entity_id
        self.operation = operation
        super().__init__(
            message=f"System {entity} {entity_id} cannot be subject to {operation}",
            rule="system_protected",
            details={"entity": entity, "entity_id": entity_id, "operation": operation},
            user_message=f"System {entity}s cannot be changed this way.",
        )


class ProfileInactiveError(BusinessLogicError):
    """Raised when an inactive success profile is used for evaluation."""

    def __init__(self, profile_id: int | None):
        self.profile_id = profile_id
        super().__init__(
            message=f"Success profile {profile_id} is inactive",
            rule="profile_active",
            details={"profile_id": profile_id},
            user_message="This success profile is inactive and cannot be used for evaluation.",
        )


class NotFoundError(CompetencyEngineError):
    """Raised when a requested entity does not exist."""

    entity = "item"

    def __init__(self, entity_id: Any):
        self.entity_id = entity_id
        super().__init__(
            message=f"{self.entity.capitalize()} with ID {entity_id} not found",
            details={"entity": self.entity, "entity_id": entity_id},
        )

    def _get_default_user_message(self) -> str:
        return f"The selected {self.entity} could not be found. Please refresh and try again."


class DimensionNotFoundError(NotFoundError):
    """Raised when a dimension is not found."""

    entity = "dimension"


class ProfileNotFoundError(NotFoundError):
    """Raised when a success profile is not found."""

    entity = "success profile"


class SurveyNotFoundError(NotFoundError):
    """Raised when a survey is not found."""

    entity = "survey"


class ResponseNotFoundError(NotFoundError):
    """Raised when a survey response is not found."""

    entity = "survey response"


class DatabaseError(CompetencyEngineError):
    """Raised when database operations fail."""

    def __init__(self, message: str, operation: str, details: dict[str, Any] | None = None):
        self.operation = operation
        super().__init__(
            message=f"Database error during {operation}: {message}",
            details=details or {"operation": operation},
            user_message="A database error occurred. Please try again in a moment.",
        )


class ConnectionError(DatabaseError):
    """Raised when database connection fails."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, operation="connection", details=details)

    def _get_default_user_message(self) -> str:
        return "Unable to connect to the database. Please check your connection and try again."


class IntegrityError(DatabaseError):
    """Raised when database integrity constraints are violated."""

    def __init__(
        self,
        message: str,
        constraint: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.constraint = constraint
        super().__init__(
            message=message,
            operation="integrity_check",
            details=details or {"constraint": constraint},
        )
        self.user_message = self._get_default_user_message()

    def _get_default_user_message(self) -> str:
        if self.constraint:
            if "unique" in self.constraint.lower():
                return "This item already exists. Please use a different name."
            elif "foreign" in self.constraint.lower():
                return "Referenced item no longer exists. Please refresh and try again."
        return "Data integrity error. Please check your input and try again."


class ConcurrentModificationError(DatabaseError):
    """Raised when a row changed underneath an optimistic version check."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            message=f"{entity} {entity_id} was modified concurrently",
            operation="optimistic_version_check",
            details={"entity": entity, "entity_id": entity_id},
        )
        self.user_message = "This item was changed by someone else. Please reload and retry."


class ConfigurationError(CompetencyEngineError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            details=details or {"config_key": config_key},
            user_message="Configuration error. Please check your settings.",
        )


def handle_database_error(e: Exception, operation: str = "database operation") -> DatabaseError:
    """
    Convert generic database exceptions to appropriate custom exceptions.

    Args:
        e: The original exception
        operation: Description of the operation that failed

    Returns:
        Appropriate DatabaseError subclass

    Example:
        >>> try:
        ...     session.commit()
        >>> except Exception as e:
        ...     raise handle_database_error(e, "commit transaction")
    """
    error_msg = str(e).lower()

    if "connection" in error_msg or "timeout" in error_msg:
        return ConnectionError(str(e))
    elif "unique constraint" in error_msg or "duplicate" in error_msg:
        return IntegrityError(str(e), constraint="unique")
    elif "foreign key" in error_msg or "foreign_key" in error_msg:
        return IntegrityError(str(e), constraint="foreign_key")
    elif "check constraint" in error_msg:
        return IntegrityError(str(e), constraint="check")
    else:
        return DatabaseError(str(e), operation)


def create_user_friendly_error_message(error: Exception) -> str:
    """
    Create a user-friendly error message from any exception.

    Example:
        >>> error = ValidationError("weight", "must be between 0 and 100")
        >>> create_user_friendly_error_message(error)
        'Invalid weight: must be between 0 and 100'
    """
    if isinstance(error, CompetencyEngineError):
        return error.user_message

    error_type = type(error).__name__
    messages = {
        "ValueError": "Invalid input provided. Please check your data and try again.",
        "KeyError": "Required information is missing. Please check your input.",
        "TypeError": "Incorrect data type provided. Please check your input format.",
    }
    return messages.get(
        error_type, "An unexpected error occurred. Please try again or contact support."
    )


def log_error_details(error: Exception, context: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create structured error details for logging.

    Args:
        error: The exception to log
        context: Additional context information

    Returns:
        Dictionary with structured error details
    """
    details = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context or {},
    }

    if isinstance(error, CompetencyEngineError):
        details.update({"user_message": error.user_message, "error_details": error.details})

    return details
