"""
iCalendar export of a court's schedule.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from icalendar import Calendar, Event, vText

from courtsched.models.court import Court
from courtsched.models.reservation import CourtBlock, Reservation, ReservationStatus
from courtsched.utils.logging_utils import LoggerMixin

EXPORTED_STATUSES = frozenset({
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
    ReservationStatus.COMPLETED,
})
ICS_STATUS = {
    ReservationStatus.PENDING: 'TENTATIVE',
    ReservationStatus.CONFIRMED: 'CONFIRMED',
    ReservationStatus.CHECKED_IN: 'CONFIRMED',
    ReservationStatus.COMPLETED: 'CONFIRMED',
}


class CourtCalendarBuilder(LoggerMixin):
    """Builds and writes ICS calendars for one court."""

    def __init__(self, court: Court, stamp: datetime | None = None):
        super().__init__()
        self.court = court
        self.local_tz = ZoneInfo(court.timezone)
        self.stamp = stamp or datetime.now(UTC)

    def build_base_calendar(self) -> Calendar:
        """Create base calendar with metadata."""
        calendar = Calendar()
        calendar.add('prodid', vText('-//Court Scheduling//EN'))
        calendar.add('version', vText('2.0'))
        calendar.add('calscale', vText('GREGORIAN'))
        calendar.add('method', vText('PUBLISH'))
        calendar.add('x-wr-calname', vText(f'Reservations - {self.court.name}'))
        calendar.add('x-wr-timezone', vText(str(self.local_tz)))
        return calendar

    def _timed_event(self, uid: str, summary: str, start: datetime, end: datetime) -> Event:
        event = Event()
        event.add('summary', summary)
        # Aware datetimes; icalendar writes TZID from their zone
        event.add('dtstart', start)
        event.add('dtend', end)
        event.add('dtstamp', self.stamp)
        event.add('uid', vText(uid))
        event.add('location', vText(self.court.name))
        return event

    def build_reservation_event(self, reservation: Reservation) -> Event | None:
        """Event for a reservation; ``None`` for cancelled and no-show ones."""
        if reservation.status not in EXPORTED_STATUSES:
            return None
        event = self._timed_event(
            f"{self.court.id}-{reservation.id}@courtsched",
            f"{self.court.name}: reserved ({reservation.status.value})",
            reservation.starts_at(self.local_tz),
            reservation.ends_at(self.local_tz)
        )
        event.add('status', ICS_STATUS[reservation.status])
        event.add('description', vText(
            f"Reservation {reservation.id}\n"
            f"Duration: {reservation.duration_minutes} min\n"
            f"Amount: {reservation.total_amount}"
        ))
        return event

    def build_block_event(self, block: CourtBlock) -> Event:
        event = self._timed_event(
            f"{self.court.id}-block-{block.id}@courtsched",
            f"{self.court.name}: blocked ({block.label})",
            block.interval.starts_on(block.date, self.local_tz),
            block.interval.ends_on(block.date, self.local_tz)
        )
        event.add('status', 'CONFIRMED')
        event.add('transp', 'OPAQUE')
        return event

    def build_calendar(
        self,
        reservations: Iterable[Reservation],
        blocks: Iterable[CourtBlock] = ()
    ) -> Calendar:
        """Calendar with one event per exported reservation and block."""
        calendar = self.build_base_calendar()
        for reservation in sorted(reservations, key=lambda r: (r.date, r.interval)):
            event = self.build_reservation_event(reservation)
            if event is not None:
                calendar.add_component(event)
        for block in sorted(blocks, key=lambda b: (b.date, b.interval)):
            calendar.add_component(self.build_block_event(block))
        return calendar

    def write_calendar(self, calendar: Calendar, file_path: Path) -> None:
        """Write calendar to file."""
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)

            event_count = len(calendar.walk('vevent'))
            self.logger.debug(f"Writing calendar with {event_count} events to {file_path}")

            with open(file_path, 'wb') as f:
                calendar_data = calendar.to_ical()
                f.write(calendar_data)
                self.logger.debug(f"Wrote {len(calendar_data)} bytes to calendar file")

            self.logger.info(f"Created calendar file: {file_path}")

        except OSError as e:
            self.logger.error(f"Failed to write calendar file: {e}")
            raise
