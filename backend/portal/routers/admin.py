from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..deps import get_app_settings, get_session, require_admin
from ..domain.errors import NotFoundError, ValidationError
from ..infrastructure.repositories import SqlAlchemyReservationRepository, SqlAlchemySlotRepository
from ..models import User
from ..schemas import ReservationDetail, SlotAvailability, SlotCreate, SlotDeleted, SlotRead
from ..usecases import export as export_usecase
from ..usecases import reservations as reservation_usecase
from ..usecases import slots as slot_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.time import utc_naive_to_local, utc_now_naive
from .slots import to_availability

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/slots", response_model=List[SlotAvailability])
async def list_slots(session: AsyncSession = Depends(get_session)) -> list[SlotAvailability]:
    rows = await slot_usecase.list_availability(SqlAlchemySlotRepository(session))
    return [to_availability(entry) for entry in rows]


@router.post("/slots", response_model=SlotRead, status_code=status.HTTP_201_CREATED)
async def create_slot(
    payload: SlotCreate,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
) -> SlotRead:
    slot_repo = SqlAlchemySlotRepository(session)
    async with session.begin():
        try:
            slot = await slot_usecase.create_slot(
                slot_repo,
                date=payload.date,
                time_start=payload.time_start,
                time_end=payload.time_end,
                capacity=payload.capacity,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    try:
        emit_audit_log(action="slot.created", initiator="admin", slot_id=slot.id, user_id=admin.id)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc
    return SlotRead.from_db(slot=slot)


@router.delete("/slots/{slot_id}", response_model=SlotDeleted)
async def delete_slot(
    slot_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
) -> SlotDeleted:
    slot_repo = SqlAlchemySlotRepository(session)
    async with session.begin():
        try:
            removed = await slot_usecase.delete_slot(slot_repo, slot_id=slot_id)
        except NotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="slot not found")

    try:
        emit_audit_log(
            action="slot.deleted",
            initiator="admin",
            slot_id=slot_id,
            user_id=admin.id,
            extra={"reservations_removed": removed},
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc
    return SlotDeleted(slot_id=slot_id, reservations_removed=removed)


@router.get("/reservations", response_model=List[ReservationDetail])
async def list_reservations(session: AsyncSession = Depends(get_session)) -> list[ReservationDetail]:
    rows = await reservation_usecase.list_all_reservations(SqlAlchemyReservationRepository(session))
    return [ReservationDetail.from_row(reservation=res, user=user, slot=slot) for res, user, slot in rows]


@router.get("/reservations/export")
async def export_reservations(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    rows = await reservation_usecase.list_all_reservations(SqlAlchemyReservationRepository(session))
    body = export_usecase.reservations_to_csv(rows, tz_name=settings.display_timezone)
    today = utc_naive_to_local(utc_now_naive(), settings.display_timezone).date()
    filename = export_usecase.export_filename(today)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
