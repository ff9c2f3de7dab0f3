"""Process-level settings for the Storefront service.

Settings are read from the environment once, at process startup, and passed
explicitly to the pieces that need them (logging, the FastAPI app factory,
the auth adapter, the catalogue seed).
"""

import os
from dataclasses import dataclass, field

_LEVEL_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


def _parse_tokens(raw: str | None) -> dict[str, dict]:
    """Parse ``token=user_id:role:email`` pairs separated by commas."""
    tokens: dict[str, dict] = {}
    if not raw:
        return tokens

    for entry in raw.split(","):
        entry = entry.strip()
        if not entry or "=" not in entry:
            continue
        token, identity = entry.split("=", 1)
        user_id, _, rest = identity.partition(":")
        role, _, email = rest.partition(":")
        tokens[token.strip()] = {
            "user_id": user_id.strip(),
            "role": (role or "user").strip(),
            "email": email.strip() or None,
        }
    return tokens


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    log_level: str = "DEBUG"
    log_dir: str = "logs"
    log_file_prefix: str = "storefront"
    api_prefix: str = "/api/v1"
    cors_origins: tuple[str, ...] = ("*",)
    auth_tokens: dict[str, dict] = field(default_factory=dict)
    catalogue_file: str | None = None

    @property
    def is_production(self) -> bool:
        return self.environment in ("production", "staging")

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        environment = (
            env.get("ENV") or env.get("ENVIRONMENT") or env.get("PROTEAN_ENV") or "development"
        ).lower()

        origins = env.get("CORS_ORIGINS", "*")
        return cls(
            environment=environment,
            log_level=env.get("LOG_LEVEL", _LEVEL_BY_ENVIRONMENT.get(environment, "INFO")),
            log_dir=env.get("LOG_DIR", "logs"),
            log_file_prefix=env.get("LOG_FILE_PREFIX", "storefront"),
            api_prefix=env.get("API_PREFIX", "/api/v1"),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            auth_tokens=_parse_tokens(env.get("AUTH_TOKENS")),
            catalogue_file=env.get("CATALOGUE_FILE") or None,
        )
