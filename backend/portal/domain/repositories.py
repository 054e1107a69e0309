from __future__ import annotations

import datetime as dt
from typing import Iterable, Protocol

from ..models import Reservation, Slot, User


class SlotRepository(Protocol):
    async def get(self, slot_id: int) -> Slot | None: ...

    async def get_for_update(self, slot_id: int) -> Slot | None: ...

    async def create(
        self,
        *,
        date: dt.date,
        time_start: dt.time,
        time_end: dt.time,
        capacity: int,
    ) -> Slot: ...

    async def delete(self, slot_id: int) -> int: ...

    async def list_with_reserved(self) -> Iterable[tuple[Slot, int]]: ...


class ReservationRepository(Protocol):
    async def user_has_reservation(self, slot_id: int, user_id: int) -> bool: ...

    async def count_by_slot(self, slot_id: int) -> int: ...

    async def list_by_slot(self, slot_id: int) -> list[Reservation]: ...

    async def list_by_user(self, user_id: int) -> list[tuple[Reservation, Slot]]: ...

    async def list_all(self) -> list[tuple[Reservation, User, Slot]]: ...

    async def create(self, slot_id: int, user_id: int) -> Reservation: ...

    async def delete(self, slot_id: int, user_id: int) -> None: ...


class MemberRepository(Protocol):
    async def get_by_email(self, email: str) -> User | None: ...
