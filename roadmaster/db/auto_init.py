"""
Database start-up check.
Creates the project tables when they are missing.
"""
from sqlalchemy import inspect
from roadmaster.db.session import get_engine
from roadmaster.db.init_db import init_db
from roadmaster.logger import get_logger

logger = get_logger(__name__)


def check_tables_exist() -> bool:
    """Return True when the projects table is present."""
    engine = get_engine()
    inspector = inspect(engine)
    return "projects" in inspector.get_table_names()


def auto_init():
    """
    Create the schema on first start.
    Safe to call on every start-up.
    """
    logger.info("Checking database initialization state")

    if check_tables_exist():
        logger.info("Database tables already exist")
        return

    logger.info("Database tables missing, creating")
    init_db()
    logger.info("Database tables created")


if __name__ == "__main__":
    auto_init()
