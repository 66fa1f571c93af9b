"""
Configuration classes for the Surveillance Console.
"""
import os
from datetime import timedelta


class Config:
    """Base configuration class"""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY')

    # Session timeout (minutes)
    SESSION_TIMEOUT_MINUTES = int(os.environ.get('SESSION_TIMEOUT', '30'))
    PERMANENT_SESSION_LIFETIME = timedelta(minutes=SESSION_TIMEOUT_MINUTES)
    SESSION_REFRESH_EACH_REQUEST = True

    # Seed identities
    PRIMARY_ADMIN_LOGIN = 'admin'
    DEFAULT_ADMIN_PASSWORD = 'admin123'
    ADMIN_PASSWORD = os.environ.get('CONSOLE_ADMIN_PASSWORD', DEFAULT_ADMIN_PASSWORD)
    OPERATOR_LOGIN = os.environ.get('CONSOLE_OPERATOR_LOGIN', 'operator1')
    OPERATOR_PASSWORD = os.environ.get('CONSOLE_OPERATOR_PASSWORD', 'operator123')

    # Werkzeug hash method string, work factor is fixed here
    PASSWORD_HASH_METHOD = os.environ.get('PASSWORD_HASH_METHOD', 'scrypt:32768:8:1')

    # Password policy for new secrets
    MIN_PASSWORD_LENGTH = int(os.environ.get('MIN_PASSWORD_LENGTH', '8'))

    # Transport
    HTTPS_ENABLED = os.environ.get('HTTPS_ENABLED', 'false').lower() == 'true'
    TRUST_PROXY_HEADERS = os.environ.get('TRUST_PROXY_HEADERS', 'false').lower() == 'true'
    SECRET_KEY_FILE = os.environ.get('SECRET_KEY_FILE', '')

    # Rate limiting
    MAX_FAILED_ATTEMPTS = 5
    LOCKOUT_DURATION = 300  # 5 minutes
    ATTEMPT_WINDOW = 900    # 15 minutes

    # Remote registry sync (WebDAV, e.g. Nextcloud)
    WEBDAV_URL = os.environ.get('WEBDAV_URL', '')
    WEBDAV_USERNAME = os.environ.get('WEBDAV_USERNAME', '')
    WEBDAV_PASSWORD = os.environ.get('WEBDAV_PASSWORD', '')
    WEBDAV_TIMEOUT = float(os.environ.get('WEBDAV_TIMEOUT', '10'))

    # Optional local registry file loaded at startup
    REGISTRY_PATH = os.environ.get('REGISTRY_PATH', '')

    # Seconds to wait for a store lock before giving up
    LOCK_TIMEOUT = float(os.environ.get('LOCK_TIMEOUT', '5'))

    # Audit log directory
    LOG_DIR = os.environ.get('LOG_DIR', '')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration with a cheap hash so the suite stays fast"""
    TESTING = True
    SECRET_KEY = 'testing-secret'
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
    WEBDAV_URL = ''
    REGISTRY_PATH = ''
