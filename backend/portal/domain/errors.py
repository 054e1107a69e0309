class DomainError(Exception):
    """Base class for booking domain errors."""


class ValidationError(DomainError):
    """Slot parameters are malformed (capacity, time window, date)."""


class NotFoundError(DomainError):
    """A slot or reservation id does not exist."""


class ConflictError(DomainError):
    """The (user, slot) pair already has a reservation."""


class AlreadyBookedError(ConflictError):
    pass


class SlotFullError(DomainError):
    """No seats remain in the slot."""
