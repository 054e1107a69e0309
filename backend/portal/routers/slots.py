from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_member, get_session
from ..infrastructure.repositories import SqlAlchemyReservationRepository, SqlAlchemySlotRepository
from ..models import User
from ..schemas import SlotAvailability
from ..usecases import slots as slot_usecase

router = APIRouter(prefix="/slots", tags=["slots"], dependencies=[Depends(get_current_member)])


def to_availability(entry: dict) -> SlotAvailability:
    slot = entry["slot"]
    return SlotAvailability(
        slot_id=slot.id,
        date=slot.date,
        time_start=slot.time_start,
        time_end=slot.time_end,
        capacity=slot.capacity,
        reserved=entry["reserved"],
        remaining=entry["remaining"],
        booked=entry["booked"],
    )


@router.get("", response_model=List[SlotAvailability])
async def list_slots(
    session: AsyncSession = Depends(get_session),
    member: User = Depends(get_current_member),
) -> list[SlotAvailability]:
    rows = await slot_usecase.list_availability(
        SqlAlchemySlotRepository(session),
        SqlAlchemyReservationRepository(session),
        user_id=member.id,
    )
    return [to_availability(entry) for entry in rows]
