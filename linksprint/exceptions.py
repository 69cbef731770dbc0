"""
Exceptions raised by the LinkSprint core.

Classes:
    LinkSprintError:
        Base class for every error the service raises on purpose.

    InvalidInputError:
        Malformed URL or malformed/oversized custom code. Client error.

    CodeConflictError:
        The requested short code is already taken (active or not).

    NotFoundError:
        No active, unexpired link matches the short code.

    DuplicateKeyError:
        Raised by the store when an insert violates the short code
        unique constraint. The URL service translates it to CodeConflictError.

    UnavailableError:
        Transport failure talking to a backing service.

    CacheUnavailableError:
        The cache could not be reached or timed out. Always a soft failure.

    StoreUnavailableError:
        The durable store could not be reached. Always a hard failure.
"""


class LinkSprintError(Exception):
    """Base class for LinkSprint errors."""

    pass


class InvalidInputError(LinkSprintError):
    """Input rejected by validation."""

    pass


class CodeConflictError(LinkSprintError):
    """Short code already exists in the durable store."""

    pass


class NotFoundError(LinkSprintError):
    """Short code does not resolve to an active, unexpired link."""

    pass


class DuplicateKeyError(LinkSprintError):
    """Insert violated the short code unique constraint."""

    pass


class UnavailableError(LinkSprintError):
    """A backing service is unreachable."""

    pass


class CacheUnavailableError(UnavailableError):
    """Cache call failed or timed out."""

    pass


class StoreUnavailableError(UnavailableError):
    """Durable store call failed at the connection level."""

    pass
