"""Token verifier backed by a static token table (development and tests)."""

from ordering.auth.port import Identity, TokenVerifier


class StaticTokenVerifier(TokenVerifier):
    def __init__(self, tokens: dict[str, dict] | None = None) -> None:
        self._identities: dict[str, Identity] = {}
        for token, identity in (tokens or {}).items():
            self.register(token, **identity)

    def register(self, token: str, user_id: str, role: str = "user", email: str | None = None) -> Identity:
        identity = Identity(user_id=user_id, role=role, email=email)
        self._identities[token] = identity
        return identity

    def verify(self, token: str) -> Identity | None:
        return self._identities.get(token)
