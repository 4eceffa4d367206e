"""
Application configuration.
"""
import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Database
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///social.db'
    DB_POOL_SIZE = int(os.environ.get('DB_POOL_SIZE', '10'))
    DB_POOL_TIMEOUT = int(os.environ.get('DB_POOL_TIMEOUT', '10'))
    DB_POOL_RECYCLE = int(os.environ.get('DB_POOL_RECYCLE', '3600'))

    # Session tokens
    SECRET_JWT_KEY = (
        os.environ.get('SECRET_JWT_KEY')
        or os.environ.get('SECRET_KEY')
        or 'dev-jwt-secret-change-in-production-0000'
    )
    JWT_ALGORITHM = 'HS256'
    TOKEN_LIFETIME_DAYS = int(os.environ.get('TOKEN_LIFETIME_DAYS', '7'))
    AUTH_COOKIE_NAME = os.environ.get('AUTH_COOKIE_NAME', 'auth_key')
    COOKIE_SECURE = os.environ.get('COOKIE_SECURE', 'True').lower() == 'true'
    COOKIE_SAMESITE = os.environ.get('COOKIE_SAMESITE', 'None')

    # Single browser origin allowed to call the API with credentials
    ALLOWED_CLIENT_ORIGIN_URL = os.environ.get('ALLOWED_CLIENT_ORIGIN_URL', 'http://localhost:3000')

    # Optional redis store for revoked session tokens
    REDIS_URL = os.environ.get('REDIS_URL', '')
    REDIS_SOCKET_CONNECT_TIMEOUT = float(os.environ.get('REDIS_SOCKET_CONNECT_TIMEOUT', '2'))
    REDIS_SOCKET_TIMEOUT = float(os.environ.get('REDIS_SOCKET_TIMEOUT', '2'))

    # Content limits
    BIO_MAX_LEN = 160
    POST_TEXT_MAX_LEN = 200
    QUERY_RESULT_LIMIT = 20
    FEED_PAGE_SIZE = 50
