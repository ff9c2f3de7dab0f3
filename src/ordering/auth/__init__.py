"""Token verifier factory.

get_verifier() / set_verifier() swap the auth collaborator. The app factory
installs a StaticTokenVerifier built from Settings.auth_tokens.
"""

from ordering.auth.port import Identity, TokenVerifier
from ordering.auth.static_adapter import StaticTokenVerifier

_current_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    """Return the current verifier. Defaults to an empty StaticTokenVerifier."""
    global _current_verifier
    if _current_verifier is None:
        _current_verifier = StaticTokenVerifier()
    return _current_verifier


def set_verifier(verifier: TokenVerifier) -> None:
    global _current_verifier
    _current_verifier = verifier


def reset_verifier() -> None:
    global _current_verifier
    _current_verifier = None


__all__ = ["Identity", "TokenVerifier", "StaticTokenVerifier", "get_verifier", "set_verifier", "reset_verifier"]
