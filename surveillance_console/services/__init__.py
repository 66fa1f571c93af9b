"""
Services for the Surveillance Console.
"""
from .resources import ResourceConfigStore, validate_registry
from .session import SessionState
from .sync import WebDavSyncBackend


class ConsoleServices:
    """The three per-process services, owned by the app factory"""

    def __init__(self, credentials, resources, session):
        self.credentials = credentials
        self.resources = resources
        self.session = session


def get_services() -> ConsoleServices:
    """Services of the current Flask app"""
    from flask import current_app
    return current_app.extensions['surveillance_console']
