"""
Security utilities for the Surveillance Console API.
Audit trail, response hardening, secret key handling and the password policy
applied to new secrets.
"""
import logging
import secrets
from pathlib import Path

from flask import current_app, request

from .config import Config

AUDIT_LOGGER_NAME = 'surveillance_console.audit'

_audit_configured = False
_audit_file = None


# ============================================================================
# AUDIT LOGGING
# ============================================================================

def configure_audit_logging(log_dir=None):
    """Attach the audit file and console handlers once per process.
    Returns the audit file path, or None when only the console is used."""
    global _audit_configured, _audit_file
    if _audit_configured:
        return _audit_file

    logger = logging.getLogger(AUDIT_LOGGER_NAME)
    logger.setLevel(logging.INFO)
    directory = Path(log_dir) if log_dir else Path(__file__).parent.parent / 'logs'
    audit_file = directory / 'audit.log'
    try:
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(audit_file, encoding='utf-8')
    except OSError as e:
        print(f"[Security] Audit log file unavailable ({e}), console only")
        audit_file = None
    else:
        # timestamp | event | ip | user | details
        file_handler.setFormatter(logging.Formatter('%(asctime)s | %(message)s', datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)
        print(f"[Security] Audit trail: {audit_file}")

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter('[Audit] %(message)s'))
    logger.addHandler(console)

    _audit_file = audit_file
    _audit_configured = True
    return audit_file


def audit_log(event_type: str, ip: str, user: str = '-', details: str = ''):
    """Record one security event"""
    if not _audit_configured:
        configure_audit_logging(Config.LOG_DIR)
    logging.getLogger(AUDIT_LOGGER_NAME).info(f"{event_type} | {ip} | {user or '-'} | {details}")


# ============================================================================
# RESPONSE HARDENING
# ============================================================================

def add_security_headers(response):
    """JSON-only API: nothing is framed, sniffed or cached"""
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer'
    response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
    response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, private'
    response.headers['Pragma'] = 'no-cache'
    return response


def configure_session_security(app):
    """Harden the Flask-Login session cookie"""
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Strict'
    app.config['SESSION_COOKIE_NAME'] = 'console_session'
    app.config['SESSION_COOKIE_SECURE'] = bool(app.config.get('HTTPS_ENABLED')) and not app.config.get('TESTING')
    print(f"[Security] Session cookie: SameSite=Strict, Secure={app.config['SESSION_COOKIE_SECURE']}")


# ============================================================================
# SECRET KEY
# ============================================================================

def generate_secret_key(path=None):
    """Reuse the persisted key, or create one and try to persist it"""
    key_file = Path(path) if path else Path(__file__).parent.parent / '.secret_key'
    if key_file.is_file():
        return key_file.read_text().strip()

    key = secrets.token_hex(32)
    try:
        key_file.write_text(key)
        key_file.chmod(0o600)
    except OSError:
        print("[Security] Secret key is ephemeral; sessions end on restart")
    else:
        print(f"[Security] Secret key stored in {key_file}")
    return key


# ============================================================================
# PASSWORD POLICY
# ============================================================================

def check_credential_strength(password: str, login: str = None,
                              min_length: int = None) -> tuple[bool, str]:
    """
    Policy for new secrets.
    Returns (is_acceptable, message)
    """
    if min_length is None:
        min_length = Config.MIN_PASSWORD_LENGTH
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters"
    if not any(c.isalpha() for c in password) or not any(c.isdigit() for c in password):
        return False, "Password must contain letters and numbers"
    if login and password.lower() == login.lower():
        return False, "Password must differ from the login"
    return True, "OK"


def get_request_ip() -> str:
    """Client address; proxy headers count only when TRUST_PROXY_HEADERS is set"""
    if current_app.config.get('TRUST_PROXY_HEADERS'):
        forwarded = request.headers.get('X-Forwarded-For')
        if forwarded:
            return forwarded.split(',')[0].strip()
        if request.headers.get('X-Real-IP'):
            return request.headers['X-Real-IP']
    return request.remote_addr or '127.0.0.1'
