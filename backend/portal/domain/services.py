import datetime as dt
from dataclasses import dataclass

from .errors import AlreadyBookedError, SlotFullError, ValidationError


@dataclass(frozen=True)
class SlotSnapshot:
    capacity: int
    reserved: int
    user_has_reservation: bool


def validate_booking(snapshot: SlotSnapshot) -> int:
    """
    Pure admission check: a user may hold one seat per slot and the slot
    may not exceed its capacity. The duplicate check runs first so a member
    who already holds a full slot is told so rather than "full".
    Returns remaining capacity after the booking. Raises domain errors otherwise.
    """
    if snapshot.user_has_reservation:
        raise AlreadyBookedError("user already holds a reservation for this slot")
    if snapshot.reserved >= snapshot.capacity:
        raise SlotFullError("no seats remain in this slot")
    return snapshot.capacity - snapshot.reserved - 1


def remaining_capacity(capacity: int, reserved: int) -> int:
    return max(0, capacity - reserved)


def validate_slot_window(
    slot_date: dt.date | str,
    time_start: dt.time,
    time_end: dt.time,
    capacity: int,
) -> dt.date:
    """Validate new slot parameters and return the slot date."""
    if isinstance(slot_date, str):
        try:
            slot_date = dt.date.fromisoformat(slot_date)
        except ValueError as exc:
            raise ValidationError(f"invalid calendar date: {slot_date!r}") from exc
    if capacity < 1:
        raise ValidationError("capacity must be >= 1")
    if time_start >= time_end:
        raise ValidationError("time_start must be earlier than time_end")
    return slot_date
