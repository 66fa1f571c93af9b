"""
Data model for the Surveillance Console.
"""
from .registry import (
    Role,
    Identity,
    Site,
    Source,
    Settings,
    Registry,
    DEFAULT_SITES,
    DEFAULT_SOURCES,
)
