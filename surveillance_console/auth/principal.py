"""
Authenticated identity handle.
A Principal is only issued by a successful authentication and is what every
privileged operation demands as its first argument.
"""
from dataclasses import dataclass

from flask_login import UserMixin

from ..errors import PermissionDenied
from ..models import Role


@dataclass(frozen=True)
class Principal(UserMixin):
    """Digest-free view of an Identity"""
    login: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMINISTRATOR

    def get_id(self):
        return self.login

    def to_dict(self):
        return {'login': self.login, 'role': self.role.value}


def require_administrator(actor, action: str):
    """Raise PermissionDenied unless actor is an administrator principal"""
    if not isinstance(actor, Principal) or not actor.is_admin:
        who = getattr(actor, 'login', 'anonymous')
        raise PermissionDenied(f'administrator access required to {action} ({who})')
