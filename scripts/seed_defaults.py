from __future__ import annotations

import argparse
import os
import sys

from competency.application.api import seed_default_dimensions
from competency.infrastructure.config import DatabaseConfig, get_settings
from competency.infrastructure.db import create_database_engine, create_session_factory
from competency.infrastructure.exceptions import CompetencyEngineError
from competency.infrastructure.logging import get_logger, setup_logging
from competency.infrastructure.uow import UnitOfWork
from competency.utils.seed import initialise_database

logger = get_logger("scripts.seed_defaults")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Create the competency schema and seed the built-in dimensions"
    )

    parser.add_argument(
        "--backend", choices=["sqlite", "mysql"], default=os.environ.get("DB_BACKEND", "sqlite")
    )
    parser.add_argument(
        "--sqlite-path", default=os.environ.get("DB_SQLITE_PATH", "./competency.db")
    )
    parser.add_argument("--mysql-host", default=os.environ.get("DB_MYSQL_HOST", "localhost"))
    parser.add_argument(
        "--mysql-port", type=int, default=int(os.environ.get("DB_MYSQL_PORT") or 3306)
    )
    parser.add_argument("--mysql-user", default=os.environ.get("DB_MYSQL_USER", "root"))
    parser.add_argument("--mysql-password", default=os.environ.get("DB_MYSQL_PASSWORD", ""))
    parser.add_argument(
        "--mysql-database",
        "--mysql-db",
        dest="mysql_database",
        default=os.environ.get("DB_MYSQL_DATABASE", "competency"),
    )
    parser.add_argument(
        "--schema-only",
        action="store_true",
        help="Create tables without inserting the default dimensions",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override LOG_LEVEL for this run",
    )
    args = parser.parse_args()

    log_config = get_settings().logging
    if args.log_level:
        log_config = log_config.model_copy(update={"level": args.log_level})
    setup_logging(log_config)

    cfg = DatabaseConfig(
        backend=args.backend,
        sqlite_path=args.sqlite_path,
        mysql_host=args.mysql_host,
        mysql_port=args.mysql_port,
        mysql_user=args.mysql_user,
        mysql_password=args.mysql_password,
        mysql_database=args.mysql_database,
    )

    try:
        engine = create_database_engine(cfg)
        existed = initialise_database(engine)
        print("Schema already present." if existed else "Schema created.")

        if args.schema_only or not get_settings().app.enable_default_seeding:
            return

        with UnitOfWork(create_session_factory(engine)).begin() as session:
            created = seed_default_dimensions(session)
        print(f"Seed completed: {len(created)} dimensions added.")
    except CompetencyEngineError as e:
        logger.error(f"Seeding failed: {e.message}")
        print(f"ERROR: {e.user_message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
