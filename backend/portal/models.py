from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, Date, DateTime, Integer, String, Time

# SQLite only autoincrements INTEGER PRIMARY KEY
PrimaryKey = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass


class User(Base):
    """Allow-listed member. Rows are provisioned outside the portal."""

    __tablename__ = "allowed_users"
    __table_args__ = (UniqueConstraint("email", name="uq_allowed_users_email"),)

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    reservations: Mapped[list["Reservation"]] = relationship(back_populates="user", passive_deletes=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Slot(Base):
    __tablename__ = "interview_slots"
    __table_args__ = (
        CheckConstraint("time_start < time_end", name="chk_slots_time"),
        CheckConstraint("capacity >= 0", name="chk_slots_capacity"),
        Index("idx_slots_date", "date", "time_start"),
    )

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time_start: Mapped[dt.time] = mapped_column(Time, nullable=False)
    time_end: Mapped[dt.time] = mapped_column(Time, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    reservations: Mapped[list["Reservation"]] = relationship(back_populates="slot", passive_deletes=True)


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        UniqueConstraint("user_id", "slot_id", name="uq_res_user_slot"),
        Index("idx_res_slot", "slot_id"),
        Index("idx_res_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(PrimaryKey, primary_key=True, autoincrement=True)
    slot_id: Mapped[int] = mapped_column(ForeignKey("interview_slots.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("allowed_users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    slot: Mapped["Slot"] = relationship(back_populates="reservations")
    user: Mapped["User"] = relationship(back_populates="reservations")
