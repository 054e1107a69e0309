import datetime as dt
from typing import List, Optional, Set

import pytest
from portal.domain.errors import AlreadyBookedError, NotFoundError, SlotFullError
from portal.models import Reservation, Slot
from portal.usecases import reservations as uc


def _slot(capacity: int = 2) -> Slot:
    return Slot(
        id=1,
        date=dt.date(2025, 3, 1),
        time_start=dt.time(10, 0),
        time_end=dt.time(10, 30),
        capacity=capacity,
        created_at=dt.datetime(2025, 2, 1),
    )


class FakeSlotRepo:
    def __init__(self, slot: Optional[Slot]) -> None:
        self.slot = slot
        self.locks = 0

    async def get_for_update(self, slot_id: int) -> Optional[Slot]:
        self.locks += 1
        return self.slot


class FakeResRepo:
    def __init__(self, holders: Set[int] | None = None, extra_reserved: int = 0) -> None:
        self.holders: Set[int] = set(holders or ())
        self.extra_reserved = extra_reserved
        self.created: List[Reservation] = []

    async def user_has_reservation(self, slot_id: int, user_id: int) -> bool:
        return user_id in self.holders

    async def count_by_slot(self, slot_id: int) -> int:
        return len(self.holders) + self.extra_reserved

    async def create(self, slot_id: int, user_id: int) -> Reservation:
        self.holders.add(user_id)
        reservation = Reservation(id=len(self.created) + 1, slot_id=slot_id, user_id=user_id, created_at=dt.datetime(2025, 2, 2))
        self.created.append(reservation)
        return reservation

    async def delete(self, slot_id: int, user_id: int) -> None:
        if user_id not in self.holders:
            raise NotFoundError("reservation not found")
        self.holders.remove(user_id)


@pytest.mark.asyncio
async def test_book_locks_slot_and_creates_reservation() -> None:
    slot_repo = FakeSlotRepo(_slot(capacity=2))
    res_repo = FakeResRepo()
    reservation, slot, remaining = await uc.book_slot(slot_repo, res_repo, slot_id=1, user_id=7)
    assert reservation.user_id == 7
    assert slot is slot_repo.slot
    assert remaining == 1
    assert slot_repo.locks == 1


@pytest.mark.asyncio
async def test_book_missing_slot_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        await uc.book_slot(FakeSlotRepo(None), FakeResRepo(), slot_id=1, user_id=7)


@pytest.mark.asyncio
async def test_book_duplicate_raises_already_booked() -> None:
    res_repo = FakeResRepo(holders={7})
    with pytest.raises(AlreadyBookedError):
        await uc.book_slot(FakeSlotRepo(_slot(capacity=2)), res_repo, slot_id=1, user_id=7)
    assert res_repo.created == []


@pytest.mark.asyncio
async def test_book_duplicate_on_full_slot_reports_already_booked() -> None:
    with pytest.raises(AlreadyBookedError):
        await uc.book_slot(FakeSlotRepo(_slot(capacity=1)), FakeResRepo(holders={7}), slot_id=1, user_id=7)


@pytest.mark.asyncio
async def test_book_full_slot_raises_slot_full() -> None:
    res_repo = FakeResRepo(holders={3})
    with pytest.raises(SlotFullError):
        await uc.book_slot(FakeSlotRepo(_slot(capacity=1)), res_repo, slot_id=1, user_id=7)
    assert res_repo.created == []


@pytest.mark.asyncio
async def test_cancel_removes_reservation() -> None:
    slot_repo = FakeSlotRepo(_slot())
    res_repo = FakeResRepo(holders={7})
    assert await uc.cancel_booking(slot_repo, res_repo, slot_id=1, user_id=7) is True
    assert slot_repo.locks == 1
    assert res_repo.holders == set()


@pytest.mark.asyncio
async def test_cancel_twice_is_a_noop_the_second_time() -> None:
    slot_repo = FakeSlotRepo(_slot())
    res_repo = FakeResRepo(holders={7})
    assert await uc.cancel_booking(slot_repo, res_repo, slot_id=1, user_id=7) is True
    assert await uc.cancel_booking(slot_repo, res_repo, slot_id=1, user_id=7) is False
    assert res_repo.holders == set()


@pytest.mark.asyncio
async def test_cancel_on_missing_slot_reports_nothing_to_cancel() -> None:
    res_repo = FakeResRepo(holders={7})
    assert await uc.cancel_booking(FakeSlotRepo(None), res_repo, slot_id=99, user_id=7) is False
    assert res_repo.holders == {7}


@pytest.mark.asyncio
async def test_remaining_capacity_never_negative() -> None:
    res_repo = FakeResRepo(holders={1, 2}, extra_reserved=3)
    assert await uc.slot_remaining_capacity(res_repo, _slot(capacity=2)) == 0
