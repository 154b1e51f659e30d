from dataclasses import dataclass

from domain.model.user import Role, User


@dataclass(frozen=True)
class Principal:
    """Authenticated identity handed to the rest of the system.

    Derived read-only from a User at resolution time; never persisted.
    """
    id: str
    email: str
    role: Role
    is_active: bool

    @classmethod
    def from_user(cls, user: User) -> 'Principal':
        return cls(id=user.id, email=user.email, role=user.role, is_active=user.is_active)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
