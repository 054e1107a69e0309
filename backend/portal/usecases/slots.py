import datetime as dt
from typing import Any, Dict, List

from ..domain.repositories import ReservationRepository, SlotRepository
from ..domain.services import remaining_capacity, validate_slot_window
from ..models import Slot


async def list_availability(
    slot_repo: SlotRepository,
    res_repo: ReservationRepository | None = None,
    *,
    user_id: int | None = None,
) -> List[Dict[str, Any]]:
    rows = await slot_repo.list_with_reserved()
    booked: set[int] = set()
    if res_repo is not None and user_id is not None:
        booked = {reservation.slot_id for reservation, _ in await res_repo.list_by_user(user_id)}

    items: List[Dict[str, Any]] = []
    for slot, reserved in rows:
        items.append(
            {
                "slot": slot,
                "reserved": int(reserved),
                "remaining": remaining_capacity(slot.capacity, int(reserved)),
                "booked": slot.id in booked,
            }
        )
    return items


async def create_slot(
    slot_repo: SlotRepository,
    *,
    date: dt.date | str,
    time_start: dt.time,
    time_end: dt.time,
    capacity: int,
) -> Slot:
    slot_date = validate_slot_window(date, time_start, time_end, capacity)
    slot = await slot_repo.create(
        date=slot_date,
        time_start=time_start,
        time_end=time_end,
        capacity=capacity,
    )
    return slot


async def delete_slot(slot_repo: SlotRepository, *, slot_id: int) -> int:
    """Cascade-delete a slot. Returns how many reservations went with it."""
    return await slot_repo.delete(slot_id)
