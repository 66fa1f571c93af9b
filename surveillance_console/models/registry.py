"""
Registry data model for the Surveillance Console.
Apartments (sites), cameras (sources), settings and identities, plus the JSON
document they serialize to. All values are immutable; changes produce new
objects.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..errors import FormatError

# Counters and ids are unsigned 32-bit in the document
MAX_UINT = 2 ** 32 - 1


class Role(Enum):
    """Identity roles"""
    ADMINISTRATOR = 'Administrator'
    OPERATOR = 'Operator'


@dataclass(frozen=True)
class Identity:
    """Login, password digest and role. The digest never leaves the store."""
    login: str
    password_hash: str
    role: Role

    def to_dict(self):
        return {
            'login': self.login,
            'password_hash': self.password_hash,
            'role': self.role.value,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            login=_require(data, 'login', str),
            password_hash=_require(data, 'password_hash', str),
            role=_parse_role(_require(data, 'role', str)),
        )


@dataclass(frozen=True)
class Site:
    """A physical location ("apartment")"""
    id: int
    display_name: str
    external_reference: str

    def to_dict(self):
        return {
            'id': self.id,
            'display_name': self.display_name,
            'external_reference': self.external_reference,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=_require_id(data),
            display_name=_require(data, 'display_name', str),
            external_reference=_require(data, 'external_reference', str),
        )


@dataclass(frozen=True)
class Source:
    """A video origin ("camera") referencing a site by display name"""
    id: int
    display_name: str
    site_display_name: str
    connection_uri: str
    enabled: bool = True

    def to_dict(self):
        return {
            'id': self.id,
            'display_name': self.display_name,
            'site_display_name': self.site_display_name,
            'connection_uri': self.connection_uri,
            'enabled': self.enabled,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=_require_id(data),
            display_name=_require(data, 'display_name', str),
            site_display_name=_require(data, 'site_display_name', str),
            connection_uri=_require(data, 'connection_uri', str),
            enabled=_require(data, 'enabled', bool),
        )


@dataclass(frozen=True)
class Settings:
    """Operational tunables"""
    rotation_interval: int = 15       # seconds between group rotations
    connection_timeout: int = 10      # seconds
    retry_interval: int = 30          # seconds
    max_retry_attempts: int = 5
    low_quality_resolution: str = '640x480'     # grid view
    high_quality_resolution: str = '1920x1080'  # fullscreen view
    grid_size: int = 16               # 16 means 4x4

    def to_dict(self):
        return {
            'rotation_interval': self.rotation_interval,
            'connection_timeout': self.connection_timeout,
            'retry_interval': self.retry_interval,
            'max_retry_attempts': self.max_retry_attempts,
            'low_quality_resolution': self.low_quality_resolution,
            'high_quality_resolution': self.high_quality_resolution,
            'grid_size': self.grid_size,
        }

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise FormatError('settings must be an object')
        return cls(
            rotation_interval=_require(data, 'rotation_interval', int),
            connection_timeout=_require(data, 'connection_timeout', int),
            retry_interval=_require(data, 'retry_interval', int),
            max_retry_attempts=_require(data, 'max_retry_attempts', int),
            low_quality_resolution=_require(data, 'low_quality_resolution', str),
            high_quality_resolution=_require(data, 'high_quality_resolution', str),
            grid_size=_require(data, 'grid_size', int),
        )


@dataclass(frozen=True)
class Registry:
    """The complete configuration value"""
    identities: tuple = ()
    sites: tuple = ()
    sources: tuple = ()
    settings: Settings = field(default_factory=Settings)

    @classmethod
    def default(cls):
        """Registry pre-seeded with demo apartments and cameras"""
        return cls(
            sites=DEFAULT_SITES,
            sources=DEFAULT_SOURCES,
            settings=Settings(),
        )

    def find_site(self, display_name: str) -> Optional[Site]:
        for site in self.sites:
            if site.display_name == display_name:
                return site
        return None

    def find_source(self, source_id: int) -> Optional[Source]:
        for source in self.sources:
            if source.id == source_id:
                return source
        return None

    def next_site_id(self) -> int:
        return max((site.id for site in self.sites), default=0) + 1

    def next_source_id(self) -> int:
        return max((source.id for source in self.sources), default=0) + 1

    def to_dict(self):
        return {
            'identities': [identity.to_dict() for identity in self.identities],
            'sites': [site.to_dict() for site in self.sites],
            'sources': [source.to_dict() for source in self.sources],
            'settings': self.settings.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise FormatError('registry document must be an object')
        return cls(
            identities=tuple(Identity.from_dict(item) for item in _require_list(data, 'identities')),
            sites=tuple(Site.from_dict(item) for item in _require_list(data, 'sites')),
            sources=tuple(Source.from_dict(item) for item in _require_list(data, 'sources')),
            settings=Settings.from_dict(_require(data, 'settings', dict)),
        )

    @classmethod
    def from_json(cls, text):
        """Parse a registry document. Nothing is returned unless all of it parses."""
        if isinstance(text, bytes):
            try:
                text = text.decode('utf-8')
            except UnicodeDecodeError as e:
                raise FormatError(f'registry document is not UTF-8: {e}') from e
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise FormatError(f'invalid registry JSON: {e}') from e
        except RecursionError as e:
            raise FormatError('registry document is nested too deeply') from e
        return cls.from_dict(data)


DEFAULT_SITES = (
    Site(1, 'Pushkin St apartment', '12A'),
    Site(2, 'Lenin St apartment', '34B'),
    Site(3, 'Sovetskaya St apartment', '56V'),
)

DEFAULT_SOURCES = (
    Source(1, 'Hallway', 'Pushkin St apartment', 'rtsp://192.168.1.100:554/stream1'),
    Source(2, 'Living room', 'Pushkin St apartment', 'rtsp://192.168.1.101:554/stream1'),
    Source(3, 'Kitchen', 'Pushkin St apartment', 'rtsp://192.168.1.102:554/stream1'),
    Source(4, 'Bedroom', 'Lenin St apartment', 'rtsp://192.168.1.200:554/stream1'),
    Source(5, 'Balcony', 'Lenin St apartment', 'rtsp://192.168.1.201:554/stream1'),
)


def _parse_role(value: str) -> Role:
    try:
        return Role(value)
    except ValueError as e:
        raise FormatError(f'unknown role: {value!r}') from e


def _require(data, key, expected_type):
    """Fetch a typed field from a parsed document"""
    if not isinstance(data, dict):
        raise FormatError(f'expected an object containing {key!r}')
    if key not in data:
        raise FormatError(f'missing field: {key!r}')
    value = data[key]
    # bool is a subclass of int; keep them apart
    if expected_type is int and isinstance(value, bool):
        raise FormatError(f'field {key!r} must be an integer')
    if not isinstance(value, expected_type):
        raise FormatError(f'field {key!r} must be {expected_type.__name__}')
    if expected_type is int and not 0 <= value <= MAX_UINT:
        raise FormatError(f'field {key!r} must be between 0 and {MAX_UINT}')
    return value


def _require_id(data):
    value = _require(data, 'id', int)
    if value == 0:
        raise FormatError("field 'id' must be a positive integer")
    return value


def _require_list(data, key):
    return _require(data, key, list)
