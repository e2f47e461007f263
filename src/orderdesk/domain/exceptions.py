"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the application handlers can catch them uniformly and turn them into
failed results with a user-friendly message.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class OrderLockedError(DomainException):
    """A mutation was attempted on an invoiced or cancelled order."""


class PersistenceError(DomainException):
    """The datastore failed while reading or writing the ledger.

    Raised by unit-of-work implementations in place of driver errors so the
    application layer never depends on a particular storage library.
    """
