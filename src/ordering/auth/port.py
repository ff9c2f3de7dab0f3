"""Auth collaborator port.

Authentication is delegated: the collaborator turns a bearer token into an
identity. Ordering only consumes the identity (id, role, email).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str = "user"
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenVerifier(ABC):
    """Abstract bearer token verifier."""

    @abstractmethod
    def verify(self, token: str) -> Identity | None:
        """Return the identity behind ``token``, or None when it is not valid."""
        ...
