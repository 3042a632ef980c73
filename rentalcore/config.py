"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Any, Dict, List

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.availability import DEFAULT_BLOCKING_STATUSES, AvailabilityChecker
from .domain.fees import DEFAULT_TIER_RATES, FeeCalculator
from .domain.models import (
    WEEKDAY_NAMES,
    DayCountConvention,
    DayHours,
    OperatingHours,
    SubscriptionTier,
    parse_clock,
)
from .domain.pricing import RentalPricingEngine
from .domain.slot_resolver import BookingSlotResolver


HOURS_TYPE_CUSTOM = "custom"
HOURS_TYPE_ALWAYS_OPEN = "24_7"


class PricingConfig(BaseModel):
    """Fee rates and rental day counting."""
    tier_rates: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_TIER_RATES))
    default_tier: str = SubscriptionTier.FREE.value
    day_count: DayCountConvention = DayCountConvention.INCLUSIVE

    @field_validator("tier_rates")
    @classmethod
    def validate_rates(cls, value: Dict[str, float]) -> Dict[str, float]:
        """Ensure every rate is a fraction in [0, 1)."""
        if not value:
            raise ValueError("tier_rates must define at least one tier")
        invalid = {tier: rate for tier, rate in value.items() if not 0 <= rate < 1}
        if invalid:
            raise ValueError(f"tier rates must be between 0 and 1, got {invalid}")
        return value

    @model_validator(mode="after")
    def validate_default_tier(self) -> "PricingConfig":
        """Ensure the fallback tier has a rate."""
        if self.default_tier not in self.tier_rates:
            raise ValueError(f"default_tier '{self.default_tier}' is missing from tier_rates")
        return self


class AvailabilityConfig(BaseModel):
    """Reservation statuses that hold equipment."""
    blocking_statuses: List[str] = Field(default_factory=lambda: list(DEFAULT_BLOCKING_STATUSES))

    @field_validator("blocking_statuses")
    @classmethod
    def normalize_statuses(cls, value: List[str]) -> List[str]:
        """Lower-case and deduplicate statuses, preserving order."""
        seen: set[str] = set()
        normalized: List[str] = []
        for status in value:
            key = status.strip().lower()
            if key and key not in seen:
                normalized.append(key)
                seen.add(key)
        return normalized


class SchedulingConfig(BaseModel):
    """Slot generation settings for service bookings."""
    slot_step_minutes: int = 60
    default_duration_minutes: int = 60
    timezone: str = "UTC"

    @field_validator("slot_step_minutes", "default_duration_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure minute values are positive."""
        if value <= 0:
            raise ValueError("minute values must be greater than zero")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value


class DayHoursConfig(BaseModel):
    """
    Opening window of one weekday.

    Accepts ``closed: true`` as well as the listing form's ``isOpen: false``.
    """
    open: str = "09:00"
    close: str = "17:00"
    closed: bool = False

    @model_validator(mode="before")
    @classmethod
    def map_is_open(cls, data: Any) -> Any:
        """Translate the listing form's isOpen flag."""
        if isinstance(data, dict) and "isOpen" in data:
            data = dict(data)
            is_open = data.pop("isOpen")
            data.setdefault("closed", not is_open)
        return data

    @field_validator("open", "close")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        """Validate HH:MM values."""
        parse_clock(value)
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "DayHoursConfig":
        """Ensure an open day opens before it closes."""
        if not self.closed and parse_clock(self.open) >= parse_clock(self.close):
            raise ValueError(f"open ({self.open}) must be earlier than close ({self.close})")
        return self

    def to_day_hours(self) -> DayHours | None:
        if self.closed:
            return None
        return DayHours.from_clock(self.open, self.close)


class OperatingHoursConfig(BaseModel):
    """Weekly operating hours keyed by weekday name."""
    hours_type: str = HOURS_TYPE_CUSTOM
    days: Dict[str, DayHoursConfig] = Field(default_factory=dict)

    @field_validator("hours_type")
    @classmethod
    def validate_hours_type(cls, value: str) -> str:
        if value not in (HOURS_TYPE_CUSTOM, HOURS_TYPE_ALWAYS_OPEN):
            raise ValueError(
                f"hours_type must be '{HOURS_TYPE_CUSTOM}' or '{HOURS_TYPE_ALWAYS_OPEN}', got '{value}'"
            )
        return value

    @field_validator("days")
    @classmethod
    def validate_day_names(cls, value: Dict[str, DayHoursConfig]) -> Dict[str, DayHoursConfig]:
        """Normalize weekday keys to their capitalized names."""
        lookup = {name.lower(): name for name in WEEKDAY_NAMES}
        normalized: Dict[str, DayHoursConfig] = {}
        for day, hours in value.items():
            name = lookup.get(day.strip().lower())
            if name is None:
                raise ValueError(f"Unknown weekday: {day}")
            if name in normalized:
                raise ValueError(f"Duplicate weekday: {day}")
            normalized[name] = hours
        return normalized

    def to_operating_hours(self) -> OperatingHours:
        """Build the domain model; weekdays not listed are closed."""
        if self.hours_type == HOURS_TYPE_ALWAYS_OPEN:
            return OperatingHours.always_open()

        days: Dict[int, DayHours] = {}
        for weekday, name in enumerate(WEEKDAY_NAMES):
            config = self.days.get(name)
            if config is None:
                continue
            hours = config.to_day_hours()
            if hours is not None:
                days[weekday] = hours

        return OperatingHours(days=days)


def _default_operating_hours() -> OperatingHoursConfig:
    weekdays = {name: DayHoursConfig() for name in WEEKDAY_NAMES[:5]}
    return OperatingHoursConfig(days=weekdays)


class StorageConfig(BaseModel):
    """Connection to the hosted reservation store."""
    url: str = ""
    api_key: str = ""
    timeout_seconds: float = 10.0

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def is_configured(self) -> bool:
        return bool(self.url and self.api_key)


class AppConfig(BaseModel):
    """Application configuration."""
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    availability: AvailabilityConfig = Field(default_factory=AvailabilityConfig)
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    operating_hours: OperatingHoursConfig = Field(default_factory=_default_operating_hours)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def build_fee_calculator(self) -> FeeCalculator:
        return FeeCalculator(
            rates=self.pricing.tier_rates,
            default_tier=self.pricing.default_tier,
        )

    def build_pricing_engine(self) -> RentalPricingEngine:
        return RentalPricingEngine(
            fee_calculator=self.build_fee_calculator(),
            convention=self.pricing.day_count,
        )

    def build_availability_checker(self) -> AvailabilityChecker:
        return AvailabilityChecker(blocking_statuses=self.availability.blocking_statuses)

    def build_slot_resolver(self) -> BookingSlotResolver:
        return BookingSlotResolver(
            step_minutes=self.scheduling.slot_step_minutes,
            timezone=self.scheduling.timezone,
        )


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of rentalcore/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load the configuration, falling back to defaults when no file exists
    at the default location.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()
