"""
Main Flask application factory.
"""
import logging

from flask import Flask
from flask_cors import CORS

from social.config import Config
from social.database import init_db, init_engine
from social.errors import register_error_handlers
from social.services.revocation_service import init_revocation_service

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def create_app(config_class=Config):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Credentials are only sent cross-origin to one configured client origin
    CORS(
        app,
        origins=[app.config['ALLOWED_CLIENT_ORIGIN_URL']],
        supports_credentials=True,
        allow_headers=["Content-Type"],
        methods=CORS_METHODS,
    )

    register_error_handlers(app)

    # Register blueprints
    from social.routes.main import main_bp
    from social.routes.auth import auth_bp
    from social.routes.users import users_bp
    from social.routes.change import change_bp
    from social.routes.posts import posts_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(change_bp)
    app.register_blueprint(posts_bp)

    # Initialize persistence + token revocation
    init_engine(config_class)
    try:
        init_db()
    except Exception as e:
        logger.error(f"Error during database initialization: {e}", exc_info=True)
        # Don't crash the app - let it start and handle errors at request time
        # This allows the health endpoint to work even if DB is temporarily unavailable

    init_revocation_service(app, config_class)

    return app
