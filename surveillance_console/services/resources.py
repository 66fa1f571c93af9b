"""
Resource configuration store for the Surveillance Console.
Owns the registry of apartments (sites) and cameras (sources). Every change
builds a new immutable Registry and swaps it in under the store lock, so
readers always see one consistent snapshot.
"""
import logging
import threading
from dataclasses import replace
from pathlib import Path

from ..auth.principal import Principal, require_administrator
from ..config import Config
from ..errors import (
    ConfigIntegrityError,
    DanglingReference,
    DuplicateName,
    EmptyRegistry,
    FileSystemError,
    InvalidSetting,
    NotFound,
    UnknownSite,
)
from ..locking import hold
from ..models import Registry, Site, Source

logger = logging.getLogger('surveillance_console.resources')


def validate_registry(registry: Registry):
    """Check referential integrity and settings of a registry value"""
    if not registry.sites:
        raise EmptyRegistry('there must be at least one apartment')
    if not registry.sources:
        raise EmptyRegistry('there must be at least one camera')

    site_names = set()
    for site in registry.sites:
        if site.display_name in site_names:
            raise DuplicateName(f"an apartment named '{site.display_name}' already exists")
        site_names.add(site.display_name)

    logins = [identity.login for identity in registry.identities]
    if len(set(logins)) != len(logins):
        raise DuplicateName('identity logins must be unique')
    if len({site.id for site in registry.sites}) != len(registry.sites):
        raise ConfigIntegrityError('apartment ids must be unique')
    if len({source.id for source in registry.sources}) != len(registry.sources):
        raise ConfigIntegrityError('camera ids must be unique')

    for source in registry.sources:
        if source.site_display_name not in site_names:
            raise DanglingReference(source.display_name, source.site_display_name)

    if registry.settings.rotation_interval <= 0:
        raise InvalidSetting('rotation_interval', 'rotation interval must be greater than 0')
    if registry.settings.connection_timeout <= 0:
        raise InvalidSetting('connection_timeout', 'connection timeout must be greater than 0')


class ResourceConfigStore:
    """Registry owner with copy-on-write mutation"""

    def __init__(self, registry: Registry = None, backend=None,
                 lock_timeout: float = Config.LOCK_TIMEOUT):
        self._registry = Registry.default() if registry is None else registry
        self.backend = backend
        self.lock_timeout = lock_timeout
        self._lock = threading.Lock()

    def _locked(self):
        return hold(self._lock, self.lock_timeout, 'resource store')

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    def snapshot(self) -> Registry:
        """Current registry. It is immutable, so handing it out is safe."""
        with self._locked():
            return self._registry

    def sites(self):
        return list(self.snapshot().sites)

    def sources(self):
        return list(self.snapshot().sources)

    def site_names(self):
        return [site.display_name for site in self.snapshot().sites]

    def sources_for_site(self, site_name: str):
        """Enabled cameras of one apartment"""
        return [
            source for source in self.snapshot().sources
            if source.site_display_name == site_name and source.enabled
        ]

    def sources_grouped_by_site(self):
        """Enabled cameras keyed by apartment name; empty apartments are left out"""
        grouped = {}
        for source in self.snapshot().sources:
            if source.enabled:
                grouped.setdefault(source.site_display_name, []).append(source)
        return grouped

    def validate(self):
        validate_registry(self.snapshot())

    # ------------------------------------------------------------------
    # Mutations (administrators only)
    # ------------------------------------------------------------------

    def add_site(self, actor: Principal, name: str, external_reference: str) -> int:
        require_administrator(actor, 'add apartments')
        with self._locked():
            registry = self._registry
            if registry.find_site(name) is not None:
                raise DuplicateName(f"an apartment named '{name}' already exists")
            site = Site(registry.next_site_id(), name, external_reference)
            self._registry = replace(registry, sites=registry.sites + (site,))
        logger.info(f'{actor.login} added apartment {name} ({external_reference}) with id {site.id}')
        return site.id

    def add_source(self, actor: Principal, name: str, site_name: str, uri: str) -> int:
        require_administrator(actor, 'add cameras')
        with self._locked():
            registry = self._registry
            if registry.find_site(site_name) is None:
                raise UnknownSite(site_name)
            source = Source(registry.next_source_id(), name, site_name, uri, enabled=True)
            self._registry = replace(registry, sources=registry.sources + (source,))
        logger.info(f'{actor.login} added camera {name} to {site_name} with id {source.id}')
        return source.id

    def remove_source(self, actor: Principal, source_id: int):
        require_administrator(actor, 'remove cameras')
        with self._locked():
            registry = self._registry
            remaining = tuple(s for s in registry.sources if s.id != source_id)
            if len(remaining) == len(registry.sources):
                raise NotFound(f'camera {source_id} not found')
            self._registry = replace(registry, sources=remaining)
        logger.info(f'{actor.login} removed camera {source_id}')

    def update_source(self, actor: Principal, source_id: int, name=None,
                      site_name=None, uri=None) -> Source:
        """Apply each given field. Nothing changes if any check fails.
        The site reference is checked against the registry at call time only."""
        require_administrator(actor, 'update cameras')
        with self._locked():
            registry = self._registry
            source = registry.find_source(source_id)
            if source is None:
                raise NotFound(f'camera {source_id} not found')
            if site_name is not None and registry.find_site(site_name) is None:
                raise UnknownSite(site_name)

            changes = {}
            if name is not None:
                changes['display_name'] = name
            if site_name is not None:
                changes['site_display_name'] = site_name
            if uri is not None:
                changes['connection_uri'] = uri
            updated = replace(source, **changes)
            self._registry = self._with_source(registry, updated)
        logger.info(f'{actor.login} updated camera {source_id}: {sorted(changes)}')
        return updated

    def toggle_source(self, actor: Principal, source_id: int) -> bool:
        require_administrator(actor, 'toggle cameras')
        with self._locked():
            registry = self._registry
            source = registry.find_source(source_id)
            if source is None:
                raise NotFound(f'camera {source_id} not found')
            updated = replace(source, enabled=not source.enabled)
            self._registry = self._with_source(registry, updated)
        logger.info(f"{actor.login} {'enabled' if updated.enabled else 'disabled'} camera {source_id}")
        return updated.enabled

    def replace_registry(self, actor: Principal, new_registry: Registry):
        """Validate a fully built registry, then swap it in. No merging."""
        require_administrator(actor, 'replace the registry')
        validate_registry(new_registry)
        with self._locked():
            self._registry = new_registry
        logger.info(
            f'{actor.login} replaced registry: {len(new_registry.sites)} apartments, '
            f'{len(new_registry.sources)} cameras'
        )

    @staticmethod
    def _with_source(registry: Registry, updated: Source) -> Registry:
        return replace(registry, sources=tuple(
            updated if s.id == updated.id else s for s in registry.sources
        ))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        return self.snapshot().to_json()

    def deserialize(self, text):
        """Parse a whole document, then swap it in. A parse failure leaves
        the store untouched."""
        registry = Registry.from_json(text)
        with self._locked():
            self._registry = registry
        logger.info(f'Registry deserialized: {len(registry.sites)} apartments, {len(registry.sources)} cameras')
        return registry

    def save_local(self, path):
        path = Path(path)
        document = self.serialize()
        try:
            path.write_text(document, encoding='utf-8')
        except OSError as e:
            raise FileSystemError(f'could not write {path}: {e}') from e
        logger.info(f'Registry saved to {path}')

    def load_local(self, actor: Principal, path):
        require_administrator(actor, 'load the registry')
        path = Path(path)
        try:
            document = path.read_text(encoding='utf-8')
        except OSError as e:
            raise FileSystemError(f'could not read {path}: {e}') from e
        self.replace_registry(actor, Registry.from_json(document))
        logger.info(f'Registry loaded from {path}')

    # ------------------------------------------------------------------
    # Remote sync. No lock is held while the backend talks to the network.
    # ------------------------------------------------------------------

    def load_remote(self, actor: Principal) -> Registry:
        require_administrator(actor, 'load the registry')
        if self.backend is None:
            logger.info('No sync backend configured; loading default registry')
            candidate = Registry.default()
        else:
            candidate = Registry.from_json(self.backend.fetch())
        self.replace_registry(actor, candidate)
        return candidate

    def save_remote(self, actor: Principal) -> Registry:
        require_administrator(actor, 'save the registry')
        registry = self.snapshot()
        validate_registry(registry)
        if self.backend is None:
            logger.info('No sync backend configured; registry validated only')
        else:
            self.backend.store(registry.to_json().encode('utf-8'))
            logger.info('Registry saved to sync backend')
        return registry
