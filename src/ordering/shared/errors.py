"""Domain errors that Protean does not model.

Input problems use ``protean.exceptions.ValidationError`` and missing
aggregates use ``protean.exceptions.ObjectNotFoundError``. The errors below
cover refused state transitions and access decisions. Each carries a
``messages`` dict shaped like ``ValidationError.messages``.
"""


class OrderingError(Exception):
    """Base class for domain errors that map to an HTTP status."""

    status_code = 400

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = {"_entity": [messages]}
        self.messages = messages
        super().__init__(messages)

    @property
    def message(self) -> str:
        for errors in self.messages.values():
            if errors:
                return errors[0]
        return self.__class__.__name__


class ConflictError(OrderingError):
    """The aggregate is in a state that does not allow the operation."""

    status_code = 400


class AccessDeniedError(OrderingError):
    """The requester may not act on this resource."""

    status_code = 403


class AuthenticationError(OrderingError):
    """Credentials were supplied but could not be verified."""

    status_code = 401
