# run.py
"""
Standard Flask start script for developers / operators.
Local or intranet use only; production should go through a WSGI server
calling roadmaster.app_factory.create_app.
"""
import os

from roadmaster.app_factory import create_app
from roadmaster.db.auto_init import auto_init
from roadmaster.logger import get_logger

logger = get_logger("run")


def get_app_base_dir():
    """Directory holding run.py."""
    return os.path.abspath(os.path.dirname(__file__))


def configure_database():
    """
    Default the database to roadmaster.db next to run.py unless
    DATABASE_URL is already set.
    """
    db_path = os.path.join(get_app_base_dir(), "roadmaster.db")
    os.environ.setdefault("DATABASE_URL", f"sqlite:///{db_path}")
    logger.info("Using database: %s", os.environ["DATABASE_URL"])


def main():
    # 0. database location
    configure_database()

    # 1. create tables before serving
    auto_init()

    # 2. build the Flask app
    app = create_app()
    logger.info("Routes: %s", app.url_map)

    # 3. start parameters
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "0") == "1"

    # 4. serve
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()
