"""
Configuration for the competency evaluation engine.

Every section is a pydantic-settings class read from prefixed environment
variables (``DB_``, ``LOG_``, ``ENGINE_``, ``APP_``). ``get_settings`` returns
one cached ``Settings`` container; call ``reset_settings`` after changing
the environment.
"""

from __future__ import annotations

import json
import os
from functools import cached_property, lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class DatabaseConfig(BaseSettings):
    """
    Where profiles, dimensions and surveys are stored.

    Example:
        >>> DatabaseConfig(backend="sqlite", sqlite_path="./test.db").get_connection_url()
        'sqlite:///./test.db'
    """

    backend: Literal["sqlite", "mysql"] = Field("sqlite", description="Database backend type")
    sqlite_path: str | None = Field("./competency.db", description="SQLite database file path")

    mysql_host: str | None = Field("localhost", description="MySQL host")
    mysql_port: int | None = Field(3306, ge=1, le=65535, description="MySQL port")
    mysql_user: str | None = Field("root", description="MySQL username")
    mysql_password: str | None = Field("", description="MySQL password")
    mysql_database: str | None = Field("competency", description="MySQL database name")
    mysql_charset: str = Field("utf8mb4", description="MySQL character set")

    pool_pre_ping: bool = Field(True, description="Check connections before use")
    pool_recycle: int = Field(3600, ge=60, description="MySQL connection recycle time (seconds)")
    echo: bool = Field(False, description="Echo SQL statements")

    model_config = {"env_prefix": "DB_", "case_sensitive": False}

    @field_validator("sqlite_path")
    def default_db_suffix(cls, v):
        if v and v != ":memory:" and not Path(v).suffix:
            return str(Path(v).with_suffix(".db"))
        return v

    @model_validator(mode="after")
    def require_mysql_credentials(self):
        if self.backend == "mysql":
            missing = [
                name
                for name in ("mysql_host", "mysql_user", "mysql_database")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"MySQL backend requires: {', '.join(missing)}")
        return self

    def get_connection_url(self) -> str:
        if self.backend == "sqlite":
            return f"sqlite:///{self.sqlite_path}"

        url = URL.create(
            "mysql+pymysql",
            username=self.mysql_user,
            password=self.mysql_password or None,
            host=self.mysql_host,
            port=self.mysql_port,
            database=self.mysql_database,
            query={"charset": self.mysql_charset},
        )
        return url.render_as_string(hide_password=False)

    def get_engine_options(self) -> dict[str, Any]:
        """Keyword arguments for ``sqlalchemy.create_engine``."""
        options: dict[str, Any] = {"echo": self.echo, "pool_pre_ping": self.pool_pre_ping}
        if self.backend == "mysql":
            options["pool_recycle"] = self.pool_recycle
        return options


class LoggingConfig(BaseSettings):
    """
    Handler settings consumed by ``logging.setup_logging``.

    Example:
        >>> LoggingConfig(file_path="./logs/engine.log").get_file_handler_config()["maxBytes"]
        10485760
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Minimum logging level"
    )
    file_path: str | None = Field("./logs/competency.log", description="Log file path")
    max_bytes: int = Field(10 * 1024 * 1024, ge=1024, description="Max log file size in bytes")
    backup_count: int = Field(5, ge=1, description="Number of rotated files kept")
    structured: bool = Field(True, description="Emit JSON lines on the console")
    console_enabled: bool = Field(True, description="Log to stdout")

    model_config = {"env_prefix": "LOG_", "case_sensitive": False}

    def get_file_handler_config(self) -> dict[str, Any] | None:
        if not self.file_path:
            return None
        return {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": self.file_path,
            "maxBytes": self.max_bytes,
            "backupCount": self.backup_count,
            "encoding": "utf-8",
        }


class EngineConfig(BaseSettings):
    """
    Defaults applied when callers omit binding or profile values.

    Example:
        >>> EngineConfig().default_binding_weight
        10.0
    """

    default_binding_weight: float = Field(
        10.0, ge=0, le=100, description="Weight given to a binding when none is supplied"
    )
    default_target_ratio: float = Field(
        0.8, gt=0, le=1, description="Fraction of a dimension's max value used as default target"
    )
    default_min_success_score: float = Field(
        70.0, ge=0, le=100, description="Profile pass threshold when none is supplied"
    )
    default_target_success_score: float = Field(
        85.0, ge=0, le=100, description="Profile target threshold when none is supplied"
    )
    score_precision: int = Field(4, ge=0, le=10, description="Decimal places kept in exported scores")

    model_config = {"env_prefix": "ENGINE_", "case_sensitive": False}

    @model_validator(mode="after")
    def validate_success_thresholds(self):
        if self.default_min_success_score > self.default_target_success_score:
            raise ValueError("default_min_success_score cannot exceed default_target_success_score")
        return self


class ApplicationConfig(BaseSettings):
    environment: Literal["development", "testing", "production"] = Field(
        "development", description="Deployment environment"
    )
    debug: bool = Field(False, description="Enable debug mode")
    version: str = Field("0.1.0", description="Engine version")

    enable_cohort_export: bool = Field(True, description="Allow pandas cohort evaluation exports")
    enable_default_seeding: bool = Field(True, description="Seed default dimensions on init")

    model_config = {"env_prefix": "APP_", "case_sensitive": False}

    @model_validator(mode="after")
    def no_debug_in_production(self):
        if self.debug and self.environment == "production":
            raise ValueError("Debug mode cannot be enabled in production")
        return self


# Section name -> settings class; used for JSON config files
SECTIONS: dict[str, type[BaseSettings]] = {
    "app": ApplicationConfig,
    "database": DatabaseConfig,
    "logging": LoggingConfig,
    "engine": EngineConfig,
}


class Settings:
    """
    Lazily built configuration sections.

    Example:
        >>> get_settings().engine.default_target_ratio
        0.8
    """

    @cached_property
    def app(self) -> ApplicationConfig:
        return ApplicationConfig()

    @cached_property
    def database(self) -> DatabaseConfig:
        return DatabaseConfig()

    @cached_property
    def logging(self) -> LoggingConfig:
        # Production keeps JSON output unless LOG_STRUCTURED says otherwise
        if self.app.environment == "production" and "LOG_STRUCTURED" not in os.environ:
            return LoggingConfig(structured=True)
        return LoggingConfig()

    @cached_property
    def engine(self) -> EngineConfig:
        return EngineConfig()

    def get_environment_info(self) -> dict[str, Any]:
        return {
            "environment": self.app.environment,
            "version": self.app.version,
            "debug": self.app.debug,
            "database_backend": self.database.backend,
            "logging_level": self.logging.level,
            "features": {
                "cohort_export": self.app.enable_cohort_export,
                "default_seeding": self.app.enable_default_seeding,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def _export_to_environment(section: str, values: dict[str, Any]) -> None:
    config_cls = SECTIONS.get(section)
    prefix = config_cls.model_config.get("env_prefix", "") if config_cls else f"{section.upper()}_"
    for key, value in values.items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        os.environ[f"{prefix}{key}".upper()] = str(value)


def load_settings_from_file(file_path: str) -> Settings:
    """
    Load settings from a JSON file whose top-level keys are section names.

    ``{"engine": {"default_binding_weight": 5}}`` sets ``ENGINE_DEFAULT_BINDING_WEIGHT``.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not JSON
    """
    config_path = Path(file_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    if config_path.suffix.lower() != ".json":
        raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

    config_data = json.loads(config_path.read_text(encoding="utf-8"))
    for section, values in config_data.items():
        if isinstance(values, dict):
            _export_to_environment(section, values)

    reset_settings()
    return get_settings()


def override_settings(**kwargs) -> Settings:
    """
    Set environment variables by lower-case name and reload.

    Example:
        >>> override_settings(engine_default_binding_weight=5).engine.default_binding_weight
        5.0
    """
    for key, value in kwargs.items():
        os.environ[key.upper()] = str(value)

    reset_settings()
    return get_settings()


def reset_settings() -> None:
    get_settings.cache_clear()
