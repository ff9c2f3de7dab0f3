"""Who is asking: a registered user or a guest identified by email.

Carts and orders are keyed either by a user reference or by a guest email.
Every read and mutation selects documents through the filters below, so the
guest/user branching lives in one place.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError

from ordering.shared.errors import AccessDeniedError

DEFAULT_GUEST_NAME = "Guest User"


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


_FORBIDDEN_EMAIL_CHARS = set(" \t\n;,()\":<>[]\\")


def guest_address(email: str | None) -> str | None:
    """Normalize a guest email and check its structure. None when blank."""
    email = normalize_email(email)
    if email is None:
        return None

    local_part, at, domain_part = email.partition("@")
    if (
        not at
        or "@" in domain_part
        or not local_part
        or "." not in domain_part.strip(".")
        or ".." in email
        or local_part[0] == "."
        or local_part[-1] == "."
        or domain_part[0] in ".-"
        or domain_part[-1] in ".-"
        or _FORBIDDEN_EMAIL_CHARS & set(email)
    ):
        raise ValidationError({"guest_email": [f"Invalid email address: {email}"]})
    return email


@dataclass(frozen=True)
class Authenticated:
    """A caller whose identity was established by the auth collaborator."""

    user_id: str
    email: str | None = None
    is_admin: bool = False


@dataclass(frozen=True)
class Guest:
    """An unauthenticated caller identified by the email they supplied."""

    email: str


Requester = Authenticated | Guest


def identify(user_id=None, guest_email=None, email=None, is_admin=False) -> Requester:
    """Build the requester from an optional identity and an optional guest email.

    An authenticated identity always wins. Without one, a guest email is
    required: "who are you" is an input, not an authentication failure.
    """
    if user_id:
        return Authenticated(user_id=str(user_id), email=normalize_email(email), is_admin=bool(is_admin))

    guest_email = guest_address(guest_email)
    if guest_email:
        return Guest(email=guest_email)

    raise ValidationError({"requester": ["User authentication or guest email is required"]})


def order_filter(requester: Requester) -> dict:
    """Filter selecting the orders a requester may see. Admins see everything."""
    if isinstance(requester, Authenticated):
        if requester.is_admin:
            return {}
        return {"user_id": requester.user_id}
    return {"guest_email": requester.email, "is_guest": True}


def cart_filter(requester: Requester) -> dict:
    """Filter selecting the documents the requester owns. Admins are held to their own too."""
    if isinstance(requester, Authenticated):
        return {"user_id": requester.user_id}
    return {"guest_email": requester.email, "is_guest": True}


def can_access(requester: Requester, document) -> bool:
    """In-memory equivalent of ``order_filter`` for an already loaded document."""
    criteria = order_filter(requester)
    return all(getattr(document, key, None) == value for key, value in criteria.items())


def is_owner(requester: Requester, document) -> bool:
    """True when the document belongs to the requester; admins get no bypass."""
    criteria = cart_filter(requester)
    return all(getattr(document, key, None) == value for key, value in criteria.items())


def requester_fields(requester: Requester) -> dict:
    """Flatten a requester into command fields."""
    if isinstance(requester, Authenticated):
        return {
            "user_id": requester.user_id,
            "user_email": requester.email,
            "is_admin": requester.is_admin,
            "guest_email": None,
        }
    return {"user_id": None, "user_email": None, "is_admin": False, "guest_email": requester.email}


def requester_from(command) -> Requester:
    """Rebuild the requester carried on a command."""
    return identify(
        user_id=getattr(command, "user_id", None),
        guest_email=getattr(command, "guest_email", None),
        email=getattr(command, "user_email", None),
        is_admin=getattr(command, "is_admin", False),
    )


def ownership_for(requester: Requester, guest_email=None, payer_email=None, guest_name=None) -> dict:
    """Decide the owner fields of a new order.

    Used by both the quick-order and the cart-conversion paths so that the
    stored fields always match what ``order_filter`` later selects on.
    """
    if isinstance(requester, Authenticated):
        return {"user_id": requester.user_id, "is_guest": False, "guest_email": None, "guest_name": None}

    email = guest_address(guest_email) or normalize_email(requester.email) or guest_address(payer_email)
    if not email:
        raise ValidationError({"guest_email": ["Email is required for guest checkout"]})

    return {
        "user_id": None,
        "is_guest": True,
        "guest_email": email,
        "guest_name": (guest_name or "").strip() or DEFAULT_GUEST_NAME,
    }


def require_admin(command) -> str:
    """Return the acting admin's id, or raise AccessDeniedError."""
    if not getattr(command, "is_admin", False) or not getattr(command, "actor_id", None):
        raise AccessDeniedError({"role": ["You do not have permission to perform this action"]})
    return str(command.actor_id)
