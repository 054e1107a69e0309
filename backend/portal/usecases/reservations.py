from ..domain.errors import NotFoundError
from ..domain.repositories import ReservationRepository, SlotRepository
from ..domain.services import SlotSnapshot, remaining_capacity, validate_booking
from ..models import Reservation, Slot, User


async def book_slot(
    slot_repo: SlotRepository,
    res_repo: ReservationRepository,
    *,
    slot_id: int,
    user_id: int,
) -> tuple[Reservation, Slot, int]:
    """
    Admit `user_id` into `slot_id`. Must run inside one transaction: the slot
    row is locked so concurrent writers for the slot queue behind us, then
    the policy is checked against the fresh row count before the insert.
    Returns the reservation, its slot and the seats left afterwards.
    """
    slot = await slot_repo.get_for_update(slot_id)
    if slot is None:
        raise NotFoundError("slot not found")

    user_has_reservation = await res_repo.user_has_reservation(slot_id, user_id)
    reserved = await res_repo.count_by_slot(slot_id)

    snapshot = SlotSnapshot(
        capacity=slot.capacity,
        reserved=reserved,
        user_has_reservation=user_has_reservation,
    )
    remaining = validate_booking(snapshot)

    reservation = await res_repo.create(slot_id=slot.id, user_id=user_id)
    return reservation, slot, remaining


async def cancel_booking(
    slot_repo: SlotRepository,
    res_repo: ReservationRepository,
    *,
    slot_id: int,
    user_id: int,
) -> bool:
    """Release the user's seat. Returns False when there was nothing to cancel."""
    slot = await slot_repo.get_for_update(slot_id)
    if slot is None:
        return False
    try:
        await res_repo.delete(slot_id, user_id)
    except NotFoundError:
        return False
    return True


async def slot_remaining_capacity(res_repo: ReservationRepository, slot: Slot) -> int:
    return remaining_capacity(slot.capacity, await res_repo.count_by_slot(slot.id))


async def list_user_reservations(
    res_repo: ReservationRepository,
    *,
    user_id: int,
) -> list[tuple[Reservation, Slot]]:
    return await res_repo.list_by_user(user_id)


async def list_all_reservations(res_repo: ReservationRepository) -> list[tuple[Reservation, User, Slot]]:
    return await res_repo.list_all()
