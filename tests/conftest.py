"""Pytest configuration and shared fixtures."""

from datetime import date, datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from courtsched.config.error_aggregator import reset_error_aggregator
from courtsched.config.settings import ConfigurationManager
from courtsched.models.court import Court, CourtPolicy, DayHours
from courtsched.models.reservation import Reservation, ReservationStatus
from courtsched.models.time_interval import TimeInterval
from courtsched.services.clock import FixedClock
from courtsched.services.interfaces import PaymentResult
from courtsched.services.memory_store import InMemoryStore
from courtsched.services.scheduling_service import SchedulingService

TZ = ZoneInfo("America/Mexico_City")
# Monday morning; bookings in the tests are mostly for Wednesday
NOW = datetime(2026, 10, 19, 8, 0, tzinfo=TZ)
DAY = date(2026, 10, 21)


class FakePaymentGateway:
    """Payment gateway recording every call."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.captures: list[tuple[Decimal, str]] = []
        self.refunds: list[tuple[str, Decimal]] = []

    def capture(self, amount: Decimal, reference: str) -> PaymentResult:
        self.captures.append((amount, reference))
        return PaymentResult(self.succeed, amount if self.succeed else Decimal('0'), f"pay-{reference}")

    def refund(self, reference: str, amount: Decimal) -> PaymentResult:
        self.refunds.append((reference, amount))
        return PaymentResult(True, amount, reference)


class RecordingNotifier:
    def __init__(self):
        self.notifications = []

    def notify(self, notification) -> None:
        self.notifications.append(notification)

    @property
    def kinds(self) -> list[str]:
        return [n.kind for n in self.notifications]


class RecordingAnalytics:
    def __init__(self):
        self.events = []

    def record(self, event) -> None:
        self.events.append(event)


def build_policy(**overrides) -> CourtPolicy:
    """Court open 06:00-22:00 every day, 60-180 minute bookings in 30 minute steps."""
    params = {
        'operating_hours': {day: DayHours(True, time(6, 0), time(22, 0)) for day in range(7)},
        'hourly_rate': Decimal('300.00'),
        'min_booking_minutes': 60,
        'max_booking_minutes': 180,
        'granularity_minutes': 30,
        'max_advance_booking_days': 30,
    }
    params.update(overrides)
    return CourtPolicy(**params)


@pytest.fixture(autouse=True)
def reset_globals():
    """Drop process-wide singletons between tests."""
    ConfigurationManager._instance = None
    yield
    ConfigurationManager._instance = None
    reset_error_aggregator()

@pytest.fixture
def make_court():
    """Factory for courts with the default test policy."""
    def factory(court_id: str = "c1", **policy_overrides) -> Court:
        return Court(id=court_id, name=f"Court {court_id}", policy=build_policy(**policy_overrides), timezone=str(TZ))
    return factory

@pytest.fixture
def court(make_court):
    return make_court()

@pytest.fixture
def make_reservation():
    """Factory for stored reservations on the test day."""
    def factory(
        start: str,
        end: str,
        reservation_id: str = "r1",
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        court_id: str = "c1",
        day: date = DAY,
        **fields
    ) -> Reservation:
        return Reservation(
            id=reservation_id,
            court_id=court_id,
            user_id=fields.pop('user_id', 'u1'),
            date=day,
            interval=TimeInterval.parse(start, end),
            status=status,
            **fields
        )
    return factory

@pytest.fixture
def clock():
    return FixedClock(NOW)

@pytest.fixture
def store(court):
    return InMemoryStore([court])

@pytest.fixture
def payments():
    return FakePaymentGateway()

@pytest.fixture
def notifier():
    return RecordingNotifier()

@pytest.fixture
def analytics():
    return RecordingAnalytics()

@pytest.fixture
def service(store, clock, payments, notifier, analytics):
    return SchedulingService(
        store,
        clock=clock,
        payment_gateway=payments,
        notifier=notifier,
        analytics=analytics
    )

@pytest.fixture
def day():
    return DAY

@pytest.fixture
def now():
    return NOW
