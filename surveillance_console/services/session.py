"""
Session state for the Surveillance Console.
Tracks who is logged in and which registry snapshot the running session
treats as active. One instance per process, owned by the app factory.
"""
import logging
import threading

from ..auth.credentials import CredentialStore
from ..auth.principal import Principal
from ..config import Config
from ..locking import hold
from ..models import Registry
from .resources import ResourceConfigStore, validate_registry

logger = logging.getLogger('surveillance_console.session')


class SessionState:
    """Current identity and active registry snapshot"""

    def __init__(self, credentials: CredentialStore, resources: ResourceConfigStore,
                 lock_timeout: float = Config.LOCK_TIMEOUT):
        self.credentials = credentials
        self.resources = resources
        self.lock_timeout = lock_timeout
        self._principal = None
        self._registry = None
        self._lock = threading.Lock()

    def _locked(self):
        return hold(self._lock, self.lock_timeout, 'session')

    def login(self, login: str, secret: str) -> Principal:
        """Authenticate and record the identity. Raises AuthenticationFailed."""
        # Hashing is slow; keep it outside the session lock
        principal = self.credentials.authenticate(login, secret).raise_for_failure()
        with self._locked():
            self._principal = principal
        logger.info(f'Session started for {principal.login} ({principal.role.value})')
        return principal

    def logout(self):
        with self._locked():
            principal, self._principal = self._principal, None
        if principal is not None:
            logger.info(f'Session ended for {principal.login}')
        return principal

    def current_principal(self):
        with self._locked():
            return self._principal

    def is_authenticated(self) -> bool:
        return self.current_principal() is not None

    def has_admin_role(self) -> bool:
        principal = self.current_principal()
        return principal is not None and principal.is_admin

    @property
    def active_registry(self):
        with self._locked():
            return self._registry

    def activate_registry(self, registry: Registry):
        """Make a validated snapshot the session's active registry"""
        validate_registry(registry)
        with self._locked():
            self._registry = registry

    def reload_config(self, actor: Principal) -> Registry:
        """Load from the sync backend, then activate the result.
        The remote round trip happens with the session lock released."""
        registry = self.resources.load_remote(actor)
        with self._locked():
            self._registry = registry
        logger.info(
            f'Configuration loaded: {len(registry.sites)} apartments, {len(registry.sources)} cameras'
        )
        return registry

    def status(self) -> dict:
        with self._locked():
            principal = self._principal
            registry = self._registry
        return {
            'is_authenticated': principal is not None,
            'current_user': principal.login if principal else None,
            'user_role': principal.role.value if principal else None,
            'config_loaded': registry is not None,
            'apartments_count': len(registry.sites) if registry else 0,
            'cameras_count': len(registry.sources) if registry else 0,
        }
