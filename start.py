#!/usr/bin/env python3
"""
Startup script for the NutriSense engine API.
Checks the database, brings the schema up to date, and starts uvicorn.
"""

import sys
from pathlib import Path

import structlog
import uvicorn
from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from nutrisense.core.config import Settings, get_settings
from nutrisense.core.logging import configure_logging
from nutrisense.db.database import Database

logger = structlog.get_logger(__name__)

ROOT = Path(__file__).resolve().parent


def check_database_connection(database: Database) -> bool:
    """Check if database is accessible."""
    try:
        with database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection successful")
        return True
    except SQLAlchemyError as e:
        logger.error("Database connection failed", error=str(e))
        return False


def run_migrations(database_url: str) -> bool:
    """Run Alembic database migrations."""
    try:
        alembic_cfg = Config(str(ROOT / "alembic.ini"))
        alembic_cfg.set_main_option("script_location", str(ROOT / "alembic"))
        # ConfigParser interpolation treats % specially
        alembic_cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations completed successfully")
        return True
    except Exception as e:
        logger.error("Migration failed", error=str(e))
        return False


def initialize_services(settings: Settings) -> bool:
    """Initialize all required services."""
    database = Database(settings.database_url, echo=settings.database_echo)
    try:
        if not check_database_connection(database):
            logger.error("Cannot start without database connection")
            return False

        if settings.environment == "production":
            if not run_migrations(settings.database_url):
                return False
        else:
            database.create_all()
    finally:
        database.dispose()

    logger.info("All services initialized successfully")
    return True


def start_server(settings: Settings) -> None:
    development = settings.environment == "development"
    logger.info("Starting NutriSense engine", environment=settings.environment)

    uvicorn.run(
        "nutrisense.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=development,
        reload_dirs=["nutrisense"] if development else None,
        workers=1,
        log_level=settings.log_level.lower(),
        access_log=development,
        loop="asyncio",
    )


def main() -> None:
    """Main startup function."""
    settings = get_settings()
    configure_logging(settings)

    logger.info("Environment", environment=settings.environment, debug=settings.debug)

    if not initialize_services(settings):
        logger.error("Service initialization failed")
        sys.exit(1)

    start_server(settings)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
