"""
Authentication module for the Surveillance Console.
"""
from .principal import Principal, require_administrator
from .credentials import AuthResult, CredentialStore
from .handlers import (
    login_manager,
    init_auth,
    authenticate,
    log_logout,
    LoginThrottle,
)
