"""FastAPI dependencies that identify the caller.

A bearer token is resolved through the auth collaborator. Without one the
caller is a guest and must name themselves with a guest email.
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ordering.auth import Identity, get_verifier
from ordering.shared.errors import AccessDeniedError, AuthenticationError
from ordering.shared.requester import Requester, identify

bearer_scheme = HTTPBearer(auto_error=False)


def optional_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity | None:
    """The caller's identity, or None for anonymous callers. A bad token is a 401."""
    if credentials is None:
        return None

    identity = get_verifier().verify(credentials.credentials)
    if identity is None:
        raise AuthenticationError({"token": ["Invalid or expired token"]})
    return identity


def protect(identity: Identity | None = Depends(optional_identity)) -> Identity:
    if identity is None:
        raise AuthenticationError({"token": ["You are not logged in"]})
    return identity


def restrict_to(*roles: str):
    """Dependency factory: only callers with one of ``roles`` get through."""

    def _check_role(identity: Identity = Depends(protect)) -> Identity:
        if identity.role not in roles:
            raise AccessDeniedError({"role": ["You do not have permission to perform this action"]})
        return identity

    return _check_role


def resolve_requester(identity: Identity | None, guest_email: str | None) -> Requester:
    if identity is not None:
        return identify(user_id=identity.user_id, email=identity.email, is_admin=identity.is_admin)
    return identify(guest_email=guest_email)
