import datetime as dt
from typing import Any, cast

import pytest
from portal.config import Settings
from portal.domain.errors import SlotFullError
from portal.models import Reservation, Slot, User
from portal.routers import reservations as router
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession


class DummySession:
    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def begin(self) -> "DummySession":
        return self


def _slot(slot_id: int = 1) -> Slot:
    return Slot(
        id=slot_id,
        date=dt.date(2025, 3, 1),
        time_start=dt.time(10, 0),
        time_end=dt.time(10, 30),
        capacity=4,
        created_at=dt.datetime(2025, 2, 1),
    )


def _member() -> User:
    return User(id=200, email="ana@example.com", first_name="Ana", last_name="Diaz", is_admin=False)


def _reservation(slot_id: int = 1) -> Reservation:
    return Reservation(id=100, slot_id=slot_id, user_id=200, created_at=dt.datetime(2025, 2, 2, 9, 0))


@pytest.fixture
def dummy_repos(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(router, "SqlAlchemySlotRepository", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router, "SqlAlchemyReservationRepository", lambda s: s)  # type: ignore[assignment]


@pytest.mark.asyncio
async def test_book_emits_audit(monkeypatch: pytest.MonkeyPatch, dummy_repos: None) -> None:
    slot = _slot()
    reservation = _reservation()

    async def fake_book(*args: object, **kwargs: object) -> tuple[Reservation, Slot, int]:
        return reservation, slot, 3

    calls: list[dict[str, Any]] = []

    monkeypatch.setattr(router.reservation_usecase, "book_slot", fake_book)
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    result = await router.book_slot(
        slot_id=slot.id,
        session=cast(AsyncSession, DummySession()),
        member=_member(),
        settings=Settings(),
    )

    assert result.reservation_id == reservation.id
    assert result.remaining == 3
    assert len(calls) == 1
    assert calls[0]["action"] == "reservation.created"
    assert calls[0]["reservation_id"] == reservation.id


@pytest.mark.asyncio
async def test_book_maps_slot_full_to_409(monkeypatch: pytest.MonkeyPatch, dummy_repos: None) -> None:
    async def fake_book(*args: object, **kwargs: object) -> tuple[Reservation, Slot, int]:
        raise SlotFullError("full")

    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(router.reservation_usecase, "book_slot", fake_book)
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    with pytest.raises(HTTPException) as excinfo:
        await router.book_slot(
            slot_id=1,
            session=cast(AsyncSession, DummySession()),
            member=_member(),
            settings=Settings(),
        )
    assert excinfo.value.status_code == 409
    assert calls == []


@pytest.mark.asyncio
async def test_noop_cancel_emits_nothing(monkeypatch: pytest.MonkeyPatch, dummy_repos: None) -> None:
    async def fake_cancel(*args: object, **kwargs: object) -> bool:
        return False

    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(router.reservation_usecase, "cancel_booking", fake_cancel)
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    result = await router.cancel_booking(
        slot_id=1,
        session=cast(AsyncSession, DummySession()),
        member=_member(),
        settings=Settings(),
    )
    assert result.cancelled is False
    assert calls == []


@pytest.mark.asyncio
async def test_cancel_log_failure_returns_500(monkeypatch: pytest.MonkeyPatch, dummy_repos: None) -> None:
    async def fake_cancel(*args: object, **kwargs: object) -> bool:
        return True

    def fake_emit(**kwargs: Any) -> None:
        raise RuntimeError("fail log")

    monkeypatch.setattr(router.reservation_usecase, "cancel_booking", fake_cancel)
    monkeypatch.setattr(router, "emit_audit_log", fake_emit)

    with pytest.raises(HTTPException) as excinfo:
        await router.cancel_booking(
            slot_id=1,
            session=cast(AsyncSession, DummySession()),
            member=_member(),
            settings=Settings(),
        )
    assert excinfo.value.status_code == 500
