"""
Core application factory and configuration.
Consolidates app creation and initialization logic.
"""

import logging
from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager, current_user
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.middleware.proxy_fix import ProxyFix
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)

VERIFICATION_SERVICE_KEY = 'simlok.qr_verification'


# Database setup
class Base(DeclarativeBase):
    pass


db = SQLAlchemy(model_class=Base)
login_manager = LoginManager()
limiter = Limiter(key_func=get_remote_address)


def get_user_rate_limit_key():
    """Rate limit key for authenticated endpoints - per user, falling back to IP."""
    if current_user and current_user.is_authenticated:
        return f"user:{current_user.get_id()}"
    return get_remote_address()


def create_app(config=None):
    """
    Application factory pattern for creating Flask application instances.

    Args:
        config: Configuration name ('development', 'testing', 'production'),
            configuration class/object, or None for the FLASK_ENV default

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    _configure_app(app, config)
    _init_extensions(app)
    _setup_logging(app)
    _register_routes(app)
    _setup_error_handlers(app)
    _init_database(app)
    _init_services(app)

    return app


def _configure_app(app, config):
    """Configure the Flask application."""
    from ..config import get_config

    if config is None or isinstance(config, str):
        config = get_config(config)
    app.config.from_object(config)

    # Apply proxy fix for deployment
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)


def _init_extensions(app):
    """Initialize Flask extensions."""
    db.init_app(app)
    login_manager.init_app(app)
    limiter.init_app(app)

    login_manager.session_protection = 'basic'


@login_manager.user_loader
def load_user(user_id):
    """Load the session user for Flask-Login."""
    from ..models import User
    return db.session.get(User, str(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    """JSON response for anonymous access to protected endpoints."""
    from .request_tracking import get_request_id
    return jsonify({
        'success': False,
        'message': 'Authentication required. Please log in to continue.',
        'error_code': 401,
        'request_id': get_request_id()
    }), 401


def _setup_logging(app):
    """Setup application logging."""
    if not app.testing:
        from ..logging_config import setup_logging
        setup_logging()
    app.logger.info('SIMLOK verification service startup')


def _register_routes(app):
    """Register application routes and blueprints."""
    from ..routes.qr import qr_bp
    from ..routes.auth import auth_bp
    from .request_tracking import setup_request_tracking

    app.register_blueprint(qr_bp, url_prefix='/api/qr')
    app.register_blueprint(auth_bp, url_prefix='/api/auth')

    setup_request_tracking(app)

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        if request.path.startswith('/api/'):
            response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
        return response


def _setup_error_handlers(app):
    """Setup error handlers."""
    from .error_handlers import setup_error_handlers, setup_health_monitoring
    setup_error_handlers(app)
    setup_health_monitoring(app)


def _init_database(app):
    """Initialize database tables."""
    with app.app_context():
        # Import models to ensure they're registered
        from .. import models  # noqa: F401
        db.create_all()


def _init_services(app):
    """Construct process-lifetime services and attach them to the app."""
    from ..services.verification import build_verification_service
    app.extensions[VERIFICATION_SERVICE_KEY] = build_verification_service(app.config)
    logger.info(
        "QR verification ready (civil timezone: %s)", app.config['CIVIL_TIMEZONE']
    )


def get_verification_service(app):
    """Return the verification service attached by create_app."""
    return app.extensions[VERIFICATION_SERVICE_KEY]
