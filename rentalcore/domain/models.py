"""
Domain models for rental pricing, availability and booking slots.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pendulum
from pendulum import Date, DateTime

from .money import round_currency, to_amount


WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

MINUTES_PER_DAY = 24 * 60


class SubscriptionTier(str, Enum):
    """Subscription level of the organization that owns a resource."""
    FREE = "Free"
    PROFESSIONAL = "Professional"
    TEAMS = "Teams"


class ReservationStatus(str, Enum):
    """Lifecycle states of equipment rentals and service bookings."""
    PENDING = "pending"
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class DayCountConvention(str, Enum):
    """How a rental date range is turned into billable days."""
    INCLUSIVE = "inclusive"  # 1st..3rd is 3 days
    EXCLUSIVE = "exclusive"  # 1st..3rd is 2 days


def to_date(value: Any) -> Date | None:
    """
    Coerce a date-like value to a pendulum Date.

    Accepts date and datetime objects (stdlib or pendulum) and ISO 8601
    strings. Returns None for anything missing or unparsable.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return pendulum.date(value.year, value.month, value.day)

    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = pendulum.parse(text)
        except (TypeError, ValueError):
            return None
        if isinstance(parsed, (datetime, date)):
            return to_date(parsed)

    return None


def to_datetime(value: Any, tz: str = "UTC") -> DateTime | None:
    """
    Coerce a datetime-like value to a pendulum DateTime.

    Naive values are interpreted in ``tz``.
    """
    if value is None:
        return None

    if isinstance(value, DateTime):
        return value

    if isinstance(value, datetime):
        return pendulum.instance(value, tz=tz)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = pendulum.parse(text, tz=tz)
        except (TypeError, ValueError):
            return None
        if isinstance(parsed, DateTime):
            return parsed

    return None


def parse_clock(value: str) -> int:
    """
    Parse "HH:MM" into minutes after midnight.

    "24:00" is accepted as the end of the day.

    Raises:
        ValueError: If the value is not a valid clock time
    """
    try:
        hours_text, minutes_text = value.strip().split(":")
        hours = int(hours_text)
        minutes = int(minutes_text)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from exc

    if not 0 <= minutes <= 59 or not 0 <= hours <= 24:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")

    total = hours * 60 + minutes
    if total > MINUTES_PER_DAY:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")

    return total


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not."""
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class DateRange:
    """
    Calendar date range used for rentals, both ends included.

    Invariant: start must not be after end.
    """
    start: Date
    end: Date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Start date {self.start} must not be after end date {self.end}")

    def overlaps(self, other: "DateRange") -> bool:
        """
        Check if two ranges share at least one calendar day.

        A rental ending on the day another one starts counts as a conflict,
        the hand-off needs that day.
        """
        return self.start <= other.end and self.end >= other.start

    def day_count(self, convention: DayCountConvention = DayCountConvention.INCLUSIVE) -> int:
        """Return the number of billable days under the given convention."""
        days = self.start.diff(self.end).in_days()
        if convention == DayCountConvention.INCLUSIVE:
            return days + 1
        return days

    def __str__(self) -> str:
        return f"{self.start.to_date_string()} - {self.end.to_date_string()}"


@dataclass(frozen=True)
class DayHours:
    """Opening window of a single weekday, in minutes after midnight."""
    open_minute: int
    close_minute: int

    def __post_init__(self):
        if not 0 <= self.open_minute < self.close_minute <= MINUTES_PER_DAY:
            raise ValueError(
                f"Opening time must be before closing time, got "
                f"{self.open_minute} >= {self.close_minute}"
            )

    @classmethod
    def from_clock(cls, open_time: str, close_time: str) -> "DayHours":
        """Build from "HH:MM" strings."""
        return cls(open_minute=parse_clock(open_time), close_minute=parse_clock(close_time))


@dataclass(frozen=True)
class OperatingHours:
    """
    Weekly operating hours of a bookable service.

    Weekdays use 0=Monday .. 6=Sunday; a weekday without an entry is closed.
    """
    days: Mapping[int, DayHours] = field(default_factory=dict)

    def hours_for(self, day: date) -> DayHours | None:
        """Return the opening window for a date, None if closed that day."""
        return self.days.get(day.weekday())

    def is_open_on(self, day: date) -> bool:
        """Check if the service opens at all on a given date."""
        return self.hours_for(day) is not None

    @classmethod
    def always_open(cls) -> "OperatingHours":
        """Hours for a service that takes appointments around the clock."""
        full_day = DayHours(open_minute=0, close_minute=MINUTES_PER_DAY)
        return cls(days={weekday: full_day for weekday in range(7)})


@dataclass(frozen=True)
class TimeSlot:
    """
    A bookable start time for a service on a specific date.
    """
    time_range: TimeRange

    @property
    def start(self) -> DateTime:
        return self.time_range.start

    @property
    def end(self) -> DateTime:
        return self.time_range.end

    @property
    def label(self) -> str:
        """Start time as shown in the slot picker, e.g. "09:00"."""
        return self.start.format("HH:mm")

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, YYYY-MM-DD | HH:mm - HH:mm (N min)
        """
        weekday = WEEKDAY_NAMES[self.start.weekday()]
        date_str = self.start.format("YYYY-MM-DD")
        time_str = f"{self.start.format('HH:mm')} - {self.end.format('HH:mm')}"
        duration = self.time_range.duration_minutes()

        return f"{weekday}, {date_str} | {time_str} ({duration} min)"


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _first_present(row: Mapping[str, Any], *keys: str) -> Any:
    """Return the first value among ``keys`` that is present and not null."""
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class Reservation:
    """
    An existing equipment rental occupying a date range.

    Dates are None when the stored row is incomplete; such records never
    block availability.
    """
    id: Optional[str]
    resource_id: Optional[str]
    start_date: Optional[Date]
    end_date: Optional[Date]
    status: str = ReservationStatus.PENDING.value

    @property
    def date_range(self) -> DateRange | None:
        """The occupied range, None if the dates are missing or inverted."""
        if self.start_date is None or self.end_date is None:
            return None
        if self.start_date > self.end_date:
            return None
        return DateRange(start=self.start_date, end=self.end_date)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Reservation":
        """Map an ``equipment_rentals`` row."""
        return cls(
            id=_optional_str(row.get("id")),
            resource_id=_optional_str(_first_present(row, "equipment_id", "resource_id")),
            start_date=to_date(row.get("start_date")),
            end_date=to_date(row.get("end_date")),
            status=str(row.get("status") or ReservationStatus.PENDING.value),
        )


@dataclass(frozen=True)
class Booking:
    """
    An existing single-appointment booking of a service.
    """
    id: Optional[str]
    resource_id: Optional[str]
    start: Optional[DateTime]
    duration_minutes: Optional[int] = None
    status: str = ReservationStatus.PENDING.value

    @property
    def is_cancelled(self) -> bool:
        return self.status.lower() == ReservationStatus.CANCELLED.value

    def time_range(self, default_duration_minutes: int) -> TimeRange | None:
        """
        Occupied interval of the booking.

        Falls back to ``default_duration_minutes`` when the booking does not
        carry its own duration. Returns None for bookings without a start.
        """
        if self.start is None:
            return None

        duration = self.duration_minutes or default_duration_minutes
        if duration <= 0:
            return None

        return TimeRange(start=self.start, end=self.start.add(minutes=duration))

    @classmethod
    def from_row(cls, row: Mapping[str, Any], tz: str = "UTC") -> "Booking":
        """Map a ``service_bookings`` row."""
        duration = to_amount(row.get("duration_minutes"))
        # Slots are resolved per organization, the key both stores filter on
        resource_id = _first_present(row, "org_id", "resource_id", "service_id")

        return cls(
            id=_optional_str(row.get("id")),
            resource_id=_optional_str(resource_id),
            start=to_datetime(_first_present(row, "booking_date", "start"), tz=tz),
            duration_minutes=int(duration) if duration and duration > 0 else None,
            status=str(row.get("status") or ReservationStatus.PENDING.value),
        )


def _organization_tier(row: Mapping[str, Any]) -> str:
    organization = row.get("organizations")
    if isinstance(organization, list):
        organization = organization[0] if organization else None
    if isinstance(organization, Mapping):
        tier = organization.get("subscription_tier")
        if tier:
            return str(tier)
    return str(row.get("subscription_tier") or SubscriptionTier.FREE.value)


@dataclass(frozen=True)
class Equipment:
    """
    A rentable equipment item with the tier of its owning organization.
    """
    id: str
    organization_id: Optional[str]
    name: str
    daily_rate: float
    deposit_amount: float = 0.0
    tier: str = SubscriptionTier.FREE.value

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Equipment":
        """Map an ``equipment`` row joined with ``organizations``."""
        return cls(
            id=str(row["id"]),
            organization_id=_optional_str(row.get("organization_id")),
            name=str(row.get("name") or ""),
            daily_rate=to_amount(row.get("rental_price_per_day")) or 0.0,
            deposit_amount=to_amount(row.get("deposit_amount")) or 0.0,
            tier=_organization_tier(row),
        )


@dataclass(frozen=True)
class RentalQuote:
    """
    Price breakdown for a rental request. Derived, never persisted.

    ``platform_fee`` is absorbed from the subtotal and is not part of
    ``total_due``.
    """
    daily_rate: float
    total_days: int
    subtotal: float
    platform_fee: float
    deposit_amount: float
    total_due: float

    @property
    def net_payout(self) -> float:
        """Share of the subtotal paid out to the organization."""
        return round_currency(self.subtotal - self.platform_fee)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daily_rate": self.daily_rate,
            "total_days": self.total_days,
            "subtotal": self.subtotal,
            "platform_fee": self.platform_fee,
            "deposit_amount": self.deposit_amount,
            "total_due": self.total_due,
        }


@dataclass(frozen=True)
class ServiceBookingQuote:
    """Price breakdown for a single-appointment service booking."""
    price: float
    platform_fee: float
    net_payout: float
    total_due: float


@dataclass(frozen=True)
class PayoutBreakdown:
    """Amounts of a provider payout request."""
    gross_amount: float
    platform_fee: float
    net_amount: float
    tier: str


@dataclass(frozen=True)
class AvailabilityResult:
    """Outcome of an availability check with the reservations that block it."""
    available: bool
    conflicts: Tuple[Reservation, ...] = ()

    @property
    def conflict_ids(self) -> List[str]:
        return [reservation.id for reservation in self.conflicts if reservation.id]
