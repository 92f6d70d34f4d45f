"""Domain and infrastructure exceptions raised by the saga engines."""

from __future__ import annotations


class DomainError(ValueError):
    """Base for errors that are recovered into a client-facing response."""


class NotFoundError(DomainError):
    """A referenced subscription, offer, payment or notification does not exist."""

    def __init__(self, resource: str, resource_id: object):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class InvalidStateError(DomainError):
    """An operation was attempted against a terminal or disallowed state."""


class DuplicateSubscriptionError(DomainError):
    """The customer already holds a subscription to the same offer."""


class ConcurrentUpdateError(DomainError):
    """A row changed underneath the writer (optimistic lock conflict)."""


class MessagingError(Exception):
    """Publishing to the message log failed after producer retries."""

    def __init__(self, message: str, topic: str | None = None, key: str | None = None):
        super().__init__(message)
        self.topic = topic
        self.key = key


class HandlerError(Exception):
    """A consumed message could not be processed.

    Wraps the original exception with the delivery coordinates so the
    consumer loop can log, retry and eventually quarantine it.
    """

    def __init__(
        self,
        group_id: str,
        topic: str,
        partition: int,
        offset: int,
        cause: BaseException,
    ):
        super().__init__(
            f"{group_id} failed on {topic}[{partition}]@{offset}: "
            f"{type(cause).__name__}: {cause}"
        )
        self.group_id = group_id
        self.topic = topic
        self.partition = partition
        self.offset = offset
        self.cause = cause


def http_status_for(exc: Exception) -> int:
    """HTTP status a router should answer with for a domain or messaging error."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (InvalidStateError, DuplicateSubscriptionError, ConcurrentUpdateError)):
        return 409
    if isinstance(exc, MessagingError):
        return 503
    if isinstance(exc, DomainError):
        return 400
    return 500
