'''Flask application factory: builds the app, injects config, registers
blueprints and error handlers. It never starts the server (see run.py).
Used by run.py, WSGI servers and the test suite.'''
# roadmaster/app_factory.py
from flask import Flask, jsonify
import os
from dotenv import load_dotenv

from roadmaster.logger import get_logger

# load environment variables
load_dotenv()

logger = get_logger(__name__)

# project root (absolute path)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def create_app(config_name='development'):
    """Application factory."""
    app = Flask(__name__)

    # SECRET_KEY must be str, not bytes
    secret_key = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    if isinstance(secret_key, bytes):
        secret_key = secret_key.decode('utf-8')
    app.config['SECRET_KEY'] = secret_key

    # database (absolute path default); db.session reads DATABASE_URL
    db_path = os.path.join(BASE_DIR, 'roadmaster.db')
    default_db_url = f"sqlite:///{db_path}"
    os.environ.setdefault('DATABASE_URL', default_db_url)
    app.config['DATABASE_URL'] = os.environ['DATABASE_URL']
    app.config['TESTING'] = config_name == 'testing'
    app.json.sort_keys = False

    # blueprints
    from roadmaster.routes.project import project_bp

    app.register_blueprint(project_bp)

    register_error_handlers(app)

    logger.info("App created (%s), database %s", config_name, app.config['DATABASE_URL'])
    return app


def register_error_handlers(app):
    """JSON error bodies for the API."""
    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({'error': 'Bad request'}), 400

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({'error': 'Forbidden'}), 403

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({'error': 'Internal server error'}), 500
