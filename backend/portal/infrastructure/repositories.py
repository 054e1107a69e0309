from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional, Tuple, cast

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import AlreadyBookedError, NotFoundError
from ..domain.repositories import MemberRepository, ReservationRepository, SlotRepository
from ..models import Reservation, Slot, User
from ..utils.time import utc_now_naive


class SqlAlchemySlotRepository(SlotRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, slot_id: int) -> Slot | None:
        return await self.session.get(Slot, slot_id)

    async def get_for_update(self, slot_id: int) -> Slot | None:
        result = await self.session.scalar(select(Slot).where(Slot.id == slot_id).with_for_update())
        return result if isinstance(result, Slot) else None

    async def create(
        self,
        *,
        date: dt.date,
        time_start: dt.time,
        time_end: dt.time,
        capacity: int,
    ) -> Slot:
        slot = Slot(
            date=date,
            time_start=time_start,
            time_end=time_end,
            capacity=capacity,
            created_at=utc_now_naive(),
        )
        self.session.add(slot)
        await self.session.flush()
        return slot

    async def delete(self, slot_id: int) -> int:
        """Delete the slot and its reservations. Returns the number of reservations removed."""
        slot = await self.get_for_update(slot_id)
        if slot is None:
            raise NotFoundError("slot not found")
        removed = await self.session.execute(delete(Reservation).where(Reservation.slot_id == slot_id))
        await self.session.execute(delete(Slot).where(Slot.id == slot_id))
        return int(cast(Any, removed).rowcount or 0)

    async def list_with_reserved(self) -> List[Tuple[Slot, int]]:
        stmt: Select[Tuple[Slot, Any]] = (
            select(Slot, func.count(Reservation.id).label("reserved"))
            .outerjoin(Reservation, Reservation.slot_id == Slot.id)
            .group_by(Slot.id)
            .order_by(Slot.date.asc(), Slot.time_start.asc(), Slot.id.asc())
        )
        rows = await self.session.execute(stmt)
        return [(slot, int(reserved)) for slot, reserved in rows.all()]


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def user_has_reservation(self, slot_id: int, user_id: int) -> bool:
        stmt = select(Reservation.id).where(
            Reservation.slot_id == slot_id,
            Reservation.user_id == user_id,
        )
        return await self.session.scalar(stmt) is not None

    async def count_by_slot(self, slot_id: int) -> int:
        stmt = select(func.count(Reservation.id)).where(Reservation.slot_id == slot_id)
        return int(await self.session.scalar(stmt) or 0)

    async def list_by_slot(self, slot_id: int) -> List[Reservation]:
        stmt = select(Reservation).where(Reservation.slot_id == slot_id).order_by(Reservation.id)
        return list((await self.session.scalars(stmt)).all())

    async def list_by_user(self, user_id: int) -> List[Tuple[Reservation, Slot]]:
        stmt: Select[Tuple[Reservation, Slot]] = (
            select(Reservation, Slot)
            .join(Slot, Reservation.slot_id == Slot.id)
            .where(Reservation.user_id == user_id)
            .order_by(Slot.date.asc(), Slot.time_start.asc())
        )
        rows = await self.session.execute(stmt)
        return cast(List[Tuple[Reservation, Slot]], list(rows.all()))

    async def list_all(self) -> List[Tuple[Reservation, User, Slot]]:
        stmt: Select[Tuple[Reservation, User, Slot]] = (
            select(Reservation, User, Slot)
            .join(User, Reservation.user_id == User.id)
            .join(Slot, Reservation.slot_id == Slot.id)
            .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        )
        rows = await self.session.execute(stmt)
        return cast(List[Tuple[Reservation, User, Slot]], list(rows.all()))

    async def create(self, slot_id: int, user_id: int) -> Reservation:
        reservation = Reservation(slot_id=slot_id, user_id=user_id, created_at=utc_now_naive())
        self.session.add(reservation)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise AlreadyBookedError("user already holds a reservation for this slot") from exc
        return reservation

    async def delete(self, slot_id: int, user_id: int) -> None:
        stmt = delete(Reservation).where(
            Reservation.slot_id == slot_id,
            Reservation.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        if not cast(Any, result).rowcount:
            raise NotFoundError("reservation not found")


class SqlAlchemyMemberRepository(MemberRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.strip().lower())
        return await self.session.scalar(stmt)
