"""
Surveillance Console - Flask Application Factory
"""
import logging
from pathlib import Path

from flask import Flask

from .config import Config
from .errors import FileSystemError
from .security import (
    add_security_headers,
    configure_audit_logging,
    configure_session_security,
    generate_secret_key
)


def _initial_registry(path):
    """Registry file named by REGISTRY_PATH, validated before use"""
    from .models import Registry
    from .services import validate_registry

    path = Path(path)
    try:
        document = path.read_text(encoding='utf-8')
    except OSError as e:
        raise FileSystemError(f'could not read {path}: {e}') from e
    registry = Registry.from_json(document)
    validate_registry(registry)
    print(f"[System] Registry loaded from {path}: "
          f"{len(registry.sites)} apartments, {len(registry.sources)} cameras")
    return registry


def create_app(config_class=Config):
    """Application factory pattern for Flask app creation"""
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class)

    if not app.config.get('TESTING'):
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s %(message)s')

    # Generate proper secret key if not set
    if not app.config.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = generate_secret_key(app.config.get('SECRET_KEY_FILE'))

    # Configure session security
    configure_session_security(app)

    configure_audit_logging(app.config.get('LOG_DIR'))

    # Add security headers to all responses
    app.after_request(add_security_headers)

    # Build the per-process services
    from .auth import CredentialStore, init_auth
    from .services import ConsoleServices, ResourceConfigStore, SessionState, WebDavSyncBackend

    lock_timeout = app.config['LOCK_TIMEOUT']
    credentials = CredentialStore.from_config(config_class)

    registry = None
    if app.config.get('REGISTRY_PATH'):
        registry = _initial_registry(app.config['REGISTRY_PATH'])

    backend = WebDavSyncBackend.from_config(config_class)
    if backend is None:
        print("[System] No WebDAV sync backend configured")
    else:
        print(f"[System] WebDAV sync backend: {backend.url}")

    resources = ResourceConfigStore(registry, backend=backend, lock_timeout=lock_timeout)
    session = SessionState(credentials, resources, lock_timeout=lock_timeout)
    services = ConsoleServices(credentials, resources, session)
    app.extensions['surveillance_console'] = services

    # Initialize authentication
    init_auth(app, services)

    # Register blueprints
    from .routes import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    print(f"[System] Registry: {len(resources.sites())} apartments, {len(resources.sources())} cameras")
    return app
