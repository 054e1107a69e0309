import csv
import datetime as dt
import io
from typing import Iterable

from ..models import Reservation, Slot, User
from ..utils.time import format_time_range, utc_naive_to_local

EXPORT_HEADER = ("Name", "Email", "Date", "Time", "Booked At")


def export_filename(today: dt.date) -> str:
    return f"reservations-{today.isoformat()}.csv"


def reservations_to_csv(rows: Iterable[tuple[Reservation, User, Slot]], *, tz_name: str) -> str:
    """Render joined reservations as a fully quoted CSV table."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for reservation, user, slot in rows:
        writer.writerow(
            (
                user.full_name,
                user.email,
                slot.date.isoformat(),
                format_time_range(slot.time_start, slot.time_end),
                utc_naive_to_local(reservation.created_at, tz_name).date().isoformat(),
            )
        )
    return buffer.getvalue()
