"""
Configuration module for the SIMLOK verification service.
Centralizes all configuration settings with environment variable support.
"""
import os


DEFAULT_QR_SALT = "default-salt-change-in-production"


class Config:
    """Base configuration class with settings common to all environments."""
    # Flask settings
    SECRET_KEY = os.environ.get("SESSION_SECRET") or "development-key-not-for-production"
    DEBUG = False
    TESTING = False

    # SQLAlchemy settings
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or "sqlite:///simlok.db"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 300,            # Recycle connections every 5 minutes to prevent stale connections
        "pool_pre_ping": True,          # Test connections before use to detect broken connections
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # Security settings
    SESSION_COOKIE_SECURE = True            # Only send cookies over HTTPS
    SESSION_COOKIE_HTTPONLY = True          # Prevent JavaScript access to session cookie
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_NAME = 'simlok_session'
    PERMANENT_SESSION_LIFETIME = 3600       # 1 hour
    JSON_SORT_KEYS = False

    # Rate limiting settings
    RATELIMIT_DEFAULT = "2000 per hour"
    RATELIMIT_STORAGE_URI = "memory://"
    RATELIMIT_STRATEGY = "fixed-window"
    RATELIMIT_ENABLED = True
    QR_VERIFY_RATE_LIMIT = os.environ.get("QR_VERIFY_RATE_LIMIT", "60 per minute")

    # QR verification settings
    QR_SECURITY_SALT = os.environ.get("QR_SECURITY_SALT") or DEFAULT_QR_SALT
    CIVIL_TIMEZONE = os.environ.get("CIVIL_TIMEZONE", "Asia/Jakarta")  # Civil calendar of the issuing organization
    SCAN_HISTORY_MAX_LIMIT = 100
    SCAN_HISTORY_DEFAULT_LIMIT = 50


class DevelopmentConfig(Config):
    """Configuration for development environment."""
    DEBUG = True
    SESSION_COOKIE_SECURE = False  # Allow non-HTTPS for development
    SQLALCHEMY_DATABASE_URI = (
        os.environ.get("DEV_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or "sqlite:///simlok-dev.db"
    )
    SQLALCHEMY_ECHO = os.environ.get("SQLALCHEMY_ECHO", "").lower() in ("1", "true", "yes")


class TestingConfig(Config):
    """Configuration for testing environment."""
    TESTING = True
    DEBUG = True
    SESSION_COOKIE_SECURE = False
    RATELIMIT_ENABLED = False
    QR_SECURITY_SALT = "test-salt"

    # Use in-memory database for testing
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}


class ProductionConfig(Config):
    """Configuration for production environment."""
    SESSION_COOKIE_SECURE = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("PROD_DATABASE_URL") or os.environ.get("DATABASE_URL")

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": 20,
        "max_overflow": 30,
        "pool_recycle": 300,
        "pool_pre_ping": True,
        "pool_timeout": 20,
        "pool_use_lifo": True,
        "connect_args": {
            "keepalives": 1,
            "keepalives_idle": 60,
            "keepalives_interval": 10,
            "keepalives_count": 3,
            "options": "-c statement_timeout=30000"
        }
    }

    # Ensure these are set in production
    def __init__(self):
        if not os.environ.get("SESSION_SECRET"):
            raise ValueError("SESSION_SECRET must be set in production")
        if not (os.environ.get("PROD_DATABASE_URL") or os.environ.get("DATABASE_URL")):
            raise ValueError("PROD_DATABASE_URL or DATABASE_URL must be set in production")
        if self.QR_SECURITY_SALT == DEFAULT_QR_SALT:
            raise ValueError("QR_SECURITY_SALT must be set in production")


# Create a mapping of environment names to configuration classes
config_by_name = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig
}


def get_config(name=None):
    """Return a configuration object for the given environment name."""
    name = name or os.environ.get('FLASK_ENV', 'development')
    config_class = config_by_name.get(name, DevelopmentConfig)
    return config_class()
