"""
Credential store for the Surveillance Console.
Holds identities keyed by login, hashes secrets with Werkzeug's adaptive
password hashing and answers authentication and role queries.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..config import Config
from ..errors import (
    AlreadyExists,
    AuthReason,
    AuthenticationFailed,
    GENERIC_AUTH_MESSAGE,
    HashingFailure,
    NotFound,
    Protected,
    log_error,
)
from ..locking import hold
from ..models import Identity, Role
from .principal import Principal, require_administrator

logger = logging.getLogger('surveillance_console.credentials')


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an authentication attempt.
    `reason` is for telemetry; callers only ever show `message`."""
    success: bool
    principal: Optional[Principal] = None
    reason: Optional[AuthReason] = None

    @property
    def message(self) -> str:
        return 'authentication successful' if self.success else GENERIC_AUTH_MESSAGE

    def raise_for_failure(self):
        if not self.success:
            raise AuthenticationFailed(self.reason)
        return self.principal


class CredentialStore:
    """Identities keyed by login, guarded by a single lock"""

    def __init__(self, hash_method: str = Config.PASSWORD_HASH_METHOD,
                 primary_admin: str = Config.PRIMARY_ADMIN_LOGIN,
                 lock_timeout: float = Config.LOCK_TIMEOUT):
        self.hash_method = hash_method
        self.primary_admin = primary_admin
        self.lock_timeout = lock_timeout
        self._identities = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config=Config):
        store = cls(
            hash_method=config.PASSWORD_HASH_METHOD,
            primary_admin=config.PRIMARY_ADMIN_LOGIN,
            lock_timeout=config.LOCK_TIMEOUT,
        )
        store.initialize([
            (config.PRIMARY_ADMIN_LOGIN, config.ADMIN_PASSWORD, Role.ADMINISTRATOR),
            (config.OPERATOR_LOGIN, config.OPERATOR_PASSWORD, Role.OPERATOR),
        ])
        return store

    def _locked(self):
        return hold(self._lock, self.lock_timeout, 'credential store')

    def _hash(self, secret: str) -> str:
        try:
            return generate_password_hash(secret, method=self.hash_method)
        except (ValueError, TypeError, AttributeError) as e:
            raise HashingFailure(f'password hashing failed: {e}') from e

    def _verify(self, identity: Identity, secret: str) -> bool:
        """Constant-time digest check. Engine faults propagate as ValueError."""
        return check_password_hash(identity.password_hash, secret)

    def initialize(self, seeds=None):
        """Seed identities. A seed that fails to hash is logged and skipped."""
        if seeds is None:
            seeds = [
                (self.primary_admin, Config.ADMIN_PASSWORD, Role.ADMINISTRATOR),
                (Config.OPERATOR_LOGIN, Config.OPERATOR_PASSWORD, Role.OPERATOR),
            ]
        for login, secret, role in seeds:
            try:
                identity = Identity(login, self._hash(secret), role)
            except HashingFailure as e:
                log_error(e, f'seeding identity {login}', logger=logger)
                continue
            with self._locked():
                self._identities[login] = identity
            logger.info(f'Seeded identity {login} ({role.value})')

    def add_identity(self, actor: Principal, login: str, secret: str, role: Role) -> Principal:
        """Create a new identity (administrators only)"""
        require_administrator(actor, 'add identities')
        with self._locked():
            if login in self._identities:
                raise AlreadyExists(f"identity '{login}' already exists")

        password_hash = self._hash(secret)

        with self._locked():
            if login in self._identities:
                raise AlreadyExists(f"identity '{login}' already exists")
            self._identities[login] = Identity(login, password_hash, role)

        logger.info(f'{actor.login} added identity {login} ({role.value})')
        return Principal(login, role)

    def authenticate(self, login: str, secret: str) -> AuthResult:
        """Check a login/secret pair. Never raises for bad input."""
        with self._locked():
            identity = self._identities.get(login)

        if identity is None:
            logger.warning(f'Authentication failed for {login}: unknown login')
            return AuthResult(False, reason=AuthReason.NOT_FOUND)

        try:
            matched = self._verify(identity, secret)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f'Authentication failed for {login}: verification error ({e})')
            return AuthResult(False, reason=AuthReason.VERIFICATION_ERROR)

        if not matched:
            logger.warning(f'Authentication failed for {login}: invalid credentials')
            return AuthResult(False, reason=AuthReason.INVALID_CREDENTIALS)

        logger.info(f'Authenticated {login} ({identity.role.value})')
        return AuthResult(True, principal=Principal(identity.login, identity.role))

    def is_administrator(self, login: str) -> bool:
        with self._locked():
            identity = self._identities.get(login)
        return identity is not None and identity.role is Role.ADMINISTRATOR

    def get_identity(self, login: str) -> Optional[Principal]:
        with self._locked():
            identity = self._identities.get(login)
        return Principal(identity.login, identity.role) if identity else None

    def list_identities(self, actor: Principal):
        require_administrator(actor, 'list identities')
        with self._locked():
            identities = list(self._identities.values())
        return [Principal(i.login, i.role) for i in sorted(identities, key=lambda i: i.login)]

    def remove_identity(self, actor: Principal, login: str):
        """Delete an identity (administrators only, never the primary admin)"""
        require_administrator(actor, 'remove identities')
        if login == self.primary_admin:
            raise Protected()
        with self._locked():
            if self._identities.pop(login, None) is None:
                raise NotFound(f"identity '{login}' not found")
        logger.info(f'{actor.login} removed identity {login}')

    def change_password(self, login: str, old_secret: str, new_secret: str):
        """Replace a digest after verifying the old secret.
        The new digest is swapped in under the lock; there is no moment
        without a valid digest."""
        with self._locked():
            identity = self._identities.get(login)
        if identity is None:
            raise NotFound(f"identity '{login}' not found")

        try:
            matched = self._verify(identity, old_secret)
        except (ValueError, TypeError, AttributeError):
            matched = False
        if not matched:
            raise AuthenticationFailed(AuthReason.INVALID_CREDENTIALS)

        new_hash = self._hash(new_secret)

        with self._locked():
            current = self._identities.get(login)
            if current is None:
                raise NotFound(f"identity '{login}' not found")
            # Someone else changed it while we were hashing
            if current.password_hash != identity.password_hash:
                raise AuthenticationFailed(AuthReason.INVALID_CREDENTIALS)
            self._identities[login] = Identity(login, new_hash, current.role)

        logger.info(f'Password changed for {login}')

    def __len__(self):
        with self._locked():
            return len(self._identities)

    def __contains__(self, login):
        with self._locked():
            return login in self._identities
