import datetime as dt

from pydantic import BaseModel, Field, field_serializer, model_validator

from .models import Reservation, Slot, User


def _hhmm(value: dt.time) -> str:
    return value.strftime("%H:%M")


class MemberRead(BaseModel):
    user_id: int
    email: str
    first_name: str
    last_name: str
    is_admin: bool

    @classmethod
    def from_db(cls, *, user: User) -> "MemberRead":
        return cls(
            user_id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            is_admin=user.is_admin,
        )


class SlotCreate(BaseModel):
    date: dt.date
    time_start: dt.time
    time_end: dt.time
    capacity: int = Field(default=5, ge=1)


class SlotRead(BaseModel):
    slot_id: int
    date: dt.date
    time_start: dt.time
    time_end: dt.time
    capacity: int

    @field_serializer("time_start", "time_end")
    def _ser_time(self, value: dt.time) -> str:
        return _hhmm(value)

    @classmethod
    def from_db(cls, *, slot: Slot) -> "SlotRead":
        return cls(
            slot_id=slot.id,
            date=slot.date,
            time_start=slot.time_start,
            time_end=slot.time_end,
            capacity=slot.capacity,
        )


class SlotAvailability(SlotRead):
    reserved: int
    remaining: int
    booked: bool = False

    @model_validator(mode="after")
    def _check_remaining(self) -> "SlotAvailability":
        if self.remaining < 0:
            raise ValueError("remaining must not be negative")
        return self


class ReservationRead(BaseModel):
    reservation_id: int
    slot_id: int
    user_id: int
    created_at: dt.datetime
    date: dt.date
    time_start: dt.time
    time_end: dt.time

    @field_serializer("time_start", "time_end")
    def _ser_time(self, value: dt.time) -> str:
        return _hhmm(value)

    @classmethod
    def from_db(cls, *, reservation: Reservation, slot: Slot) -> "ReservationRead":
        return cls(
            reservation_id=reservation.id,
            slot_id=reservation.slot_id,
            user_id=reservation.user_id,
            created_at=reservation.created_at,
            date=slot.date,
            time_start=slot.time_start,
            time_end=slot.time_end,
        )


class BookingResult(ReservationRead):
    remaining: int

    @classmethod
    def from_db(cls, *, reservation: Reservation, slot: Slot, remaining: int = 0) -> "BookingResult":
        return cls(
            reservation_id=reservation.id,
            slot_id=reservation.slot_id,
            user_id=reservation.user_id,
            created_at=reservation.created_at,
            date=slot.date,
            time_start=slot.time_start,
            time_end=slot.time_end,
            remaining=remaining,
        )


class ReservationDetail(ReservationRead):
    first_name: str
    last_name: str
    email: str

    @classmethod
    def from_row(cls, *, reservation: Reservation, user: User, slot: Slot) -> "ReservationDetail":
        return cls(
            reservation_id=reservation.id,
            slot_id=reservation.slot_id,
            user_id=reservation.user_id,
            created_at=reservation.created_at,
            date=slot.date,
            time_start=slot.time_start,
            time_end=slot.time_end,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
        )


class CancelResult(BaseModel):
    slot_id: int
    cancelled: bool


class SlotDeleted(BaseModel):
    slot_id: int
    reservations_removed: int
