import json
import logging

import pytest
from sqlalchemy.exc import IntegrityError as SAIntegrityError

from competency.infrastructure.config import (
    DatabaseConfig,
    EngineConfig,
    LoggingConfig,
    get_settings,
    load_settings_from_file,
    override_settings,
)
from competency.infrastructure.exceptions import (
    CompetencyEngineError,
    ConnectionError,
    DimensionNotFoundError,
    IntegrityError,
    InvalidThresholdError,
    MultipleValidationError,
    OutOfRangeError,
    ValidationError,
    create_user_friendly_error_message,
    handle_database_error,
    log_error_details,
)
from competency.infrastructure.logging import (
    LogContext,
    StructuredFormatter,
    context_filter,
    get_logger,
    log_operation,
    logging_config_for,
    setup_logging,
)


class TestConfig:
    def test_database_urls(self):
        assert DatabaseConfig(sqlite_path="./data/engine").get_connection_url() == (
            "sqlite:///data/engine.db"
        )
        assert DatabaseConfig(sqlite_path=":memory:").get_connection_url() == "sqlite:///:memory:"

        mysql = DatabaseConfig(
            backend="mysql", mysql_user="app", mysql_password="pw", mysql_database="hr"
        )
        assert mysql.get_connection_url().startswith("mysql+pymysql://app:pw@localhost:3306/hr")
        assert "pool_recycle" in mysql.get_engine_options()

    def test_engine_defaults(self):
        engine = EngineConfig()
        assert engine.default_binding_weight == 10.0
        assert engine.default_target_ratio == 0.8
        assert (engine.default_min_success_score, engine.default_target_success_score) == (70, 85)

    def test_engine_config_rejects_inverted_thresholds(self):
        with pytest.raises(ValueError):
            EngineConfig(default_min_success_score=90, default_target_success_score=80)

    def test_override_settings_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ENGINE_DEFAULT_BINDING_WEIGHT", "1")
        settings = override_settings(engine_default_binding_weight=25)
        assert settings.engine.default_binding_weight == 25
        assert get_settings() is settings

    def test_load_settings_from_json(self, tmp_path, monkeypatch):
        monkeypatch.setenv("APP_ENABLE_COHORT_EXPORT", "true")
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"app": {"enable_cohort_export": False}}))
        settings = load_settings_from_file(str(path))
        assert settings.app.enable_cohort_export is False
        assert settings.get_environment_info()["features"]["cohort_export"] is False

    def test_load_settings_rejects_missing_and_unsupported(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings_from_file(str(tmp_path / "absent.json"))
        yaml_file = tmp_path / "settings.yaml"
        yaml_file.write_text("app: {}")
        with pytest.raises(ValueError):
            load_settings_from_file(str(yaml_file))


class TestExceptions:
    def test_validation_error_messages(self):
        err = ValidationError("weight", "must be between 0 and 100", 140)
        assert err.field == "weight"
        assert err.value == 140
        assert err.user_message == "Invalid weight: must be between 0 and 100"
        assert create_user_friendly_error_message(err) == err.user_message

    def test_threshold_error_is_a_validation_error(self):
        err = InvalidThresholdError("min_score", "cannot exceed target_score (4)", 5, dimension_id=3)
        assert isinstance(err, ValidationError)
        assert err.details["dimension_id"] == 3

    def test_out_of_range_error(self):
        err = OutOfRangeError(7, 1.0, 5.0, dimension_id=2)
        assert "outside [1.0, 5.0]" in err.message
        assert err.user_message == "The score must be between 1 and 5."

    def test_multiple_validation_error(self):
        err = MultipleValidationError(
            [ValidationError("name", "is required"), ValidationError("weight", "too big", 400)]
        )
        assert len(err.details["errors"]) == 2

    def test_not_found_error(self):
        err = DimensionNotFoundError(9)
        assert err.message == "Dimension with ID 9 not found"
        assert "dimension" in err.user_message

    def test_handle_database_error_classification(self):
        unique = handle_database_error(
            SAIntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: dimensions.name")),
            "create_dimension",
        )
        assert isinstance(unique, IntegrityError)
        assert unique.constraint == "unique"
        assert isinstance(handle_database_error(Exception("connection refused")), ConnectionError)
        generic = handle_database_error(Exception("disk full"), "save")
        assert generic.operation == "save"

    def test_generic_exception_messages(self):
        assert "Invalid input" in create_user_friendly_error_message(ValueError("x"))
        assert "unexpected" in create_user_friendly_error_message(RuntimeError("x"))

    def test_log_error_details(self):
        details = log_error_details(ValidationError("name", "is required"), {"profile_id": 3})
        assert details["error_type"] == "ValidationError"
        assert details["context"] == {"profile_id": 3}
        assert details["error_details"]["field"] == "name"
        assert "user_message" not in log_error_details(KeyError("k"))

    def test_base_error_str(self):
        assert str(CompetencyEngineError("boom")) == "CompetencyEngineError: boom"


class TestLogging:
    def test_get_logger_is_namespaced(self):
        assert get_logger("evaluator").name == "competency.evaluator"
        assert get_logger("competency.api").name == "competency.api"

    def test_log_context_is_restored(self):
        context_filter.clear_context()
        with LogContext(profile_id=5):
            assert context_filter.context["profile_id"] == 5
            with LogContext(survey_id=2):
                assert context_filter.context == {"profile_id": 5, "survey_id": 2}
            assert "survey_id" not in context_filter.context
        assert context_filter.context == {}

    def test_structured_formatter_includes_context(self):
        record = logging.LogRecord("competency.api", logging.INFO, __file__, 1, "evaluated", None, None)
        with LogContext(profile_id=12, operation="evaluate_profile"):
            context_filter.filter(record)
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["message"] == "evaluated"
        assert payload["profile_id"] == 12
        assert payload["operation"] == "evaluate_profile"

    def test_log_operation_passes_results_and_errors(self):
        @log_operation("double")
        def double(x):
            return x * 2

        @log_operation("explode")
        def explode():
            raise ValidationError("x", "bad")

        assert double(4) == 8
        with pytest.raises(ValidationError):
            explode()

    def test_environment_profiles(self, monkeypatch):
        for name in ("LOG_LEVEL", "LOG_STRUCTURED", "LOG_FILE_PATH", "LOG_CONSOLE_ENABLED"):
            monkeypatch.delenv(name, raising=False)
        production = logging_config_for("production")
        assert (production.level, production.structured, production.console_enabled) == (
            "INFO",
            True,
            False,
        )
        assert logging_config_for("testing").file_path is None
        assert logging_config_for("staging").level == "DEBUG"

        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert logging_config_for("production").level == "ERROR"

    def test_setup_logging_writes_json_lines(self, tmp_path):
        log_file = tmp_path / "logs" / "engine.log"
        setup_logging(LoggingConfig(level="INFO", file_path=str(log_file), console_enabled=False))
        try:
            with LogContext(survey_id=4):
                get_logger("api").warning("survey closed")
        finally:
            setup_logging(logging_config_for("test"))

        entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert entry["message"] == "survey closed"
        assert entry["logger"] == "competency.api"
        assert entry["survey_id"] == 4

    def test_silent_config_installs_null_handler(self):
        setup_logging(LoggingConfig(level="WARNING", file_path=None, console_enabled=False))
        handlers = logging.getLogger("competency").handlers
        assert [type(h) for h in handlers] == [logging.NullHandler]
        assert logging.getLogger("competency").propagate is False
