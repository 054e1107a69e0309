from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..deps import get_app_settings, get_current_member, get_session
from ..domain.errors import AlreadyBookedError, NotFoundError, SlotFullError
from ..infrastructure.repositories import SqlAlchemyReservationRepository, SqlAlchemySlotRepository
from ..infrastructure.transactions import run_serialized
from ..models import Reservation, Slot, User
from ..schemas import BookingResult, CancelResult, MemberRead, ReservationRead
from ..usecases import reservations as reservation_usecase
from ..utils.audit_log import emit_audit_log

router = APIRouter(prefix="", tags=["reservations"])


@router.get("/me", response_model=MemberRead)
async def read_me(member: User = Depends(get_current_member)) -> MemberRead:
    return MemberRead.from_db(user=member)


@router.post("/slots/{slot_id}/reservation", response_model=BookingResult, status_code=status.HTTP_201_CREATED)
async def book_slot(
    slot_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    member: User = Depends(get_current_member),
    settings: Settings = Depends(get_app_settings),
) -> BookingResult:
    async def work(tx: AsyncSession) -> tuple[Reservation, Slot, int]:
        return await reservation_usecase.book_slot(
            SqlAlchemySlotRepository(tx),
            SqlAlchemyReservationRepository(tx),
            slot_id=slot_id,
            user_id=member.id,
        )

    try:
        reservation, slot, remaining = await run_serialized(
            session,
            work,
            attempts=settings.booking_retry_attempts,
            backoff_ms=settings.booking_retry_backoff_ms,
        )
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="slot not found")
    except AlreadyBookedError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="you already hold this slot")
    except SlotFullError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="no seats remain")

    try:
        emit_audit_log(
            action="reservation.created",
            initiator="member",
            slot_id=slot.id,
            user_id=member.id,
            reservation_id=reservation.id,
            remaining=remaining,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

    return BookingResult.from_db(reservation=reservation, slot=slot, remaining=remaining)


@router.delete("/slots/{slot_id}/reservation", response_model=CancelResult)
async def cancel_booking(
    slot_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    member: User = Depends(get_current_member),
    settings: Settings = Depends(get_app_settings),
) -> CancelResult:
    async def work(tx: AsyncSession) -> bool:
        return await reservation_usecase.cancel_booking(
            SqlAlchemySlotRepository(tx),
            SqlAlchemyReservationRepository(tx),
            slot_id=slot_id,
            user_id=member.id,
        )

    cancelled = await run_serialized(
        session,
        work,
        attempts=settings.booking_retry_attempts,
        backoff_ms=settings.booking_retry_backoff_ms,
    )
    if cancelled:
        try:
            emit_audit_log(
                action="reservation.cancelled",
                initiator="member",
                slot_id=slot_id,
                user_id=member.id,
            )
        except RuntimeError as exc:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc
    return CancelResult(slot_id=slot_id, cancelled=cancelled)


@router.get("/me/reservations", response_model=List[ReservationRead])
async def list_my_reservations(
    session: AsyncSession = Depends(get_session),
    member: User = Depends(get_current_member),
) -> list[ReservationRead]:
    res_repo = SqlAlchemyReservationRepository(session)
    rows = await reservation_usecase.list_user_reservations(res_repo, user_id=member.id)
    return [ReservationRead.from_db(reservation=res, slot=slot) for res, slot in rows]
