"""Configuration type definitions."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TypedDict


class LoggingSettings(TypedDict):
    """Logging settings read from the environment."""
    default_level: str
    verbose_level: str
    file: Optional[str]

class SchedulingSettings(TypedDict):
    """Engine-wide scheduling defaults."""
    checkin_grace_minutes: int
    default_step_minutes: Optional[int]

class GlobalConfig(TypedDict):
    """Global configuration structure."""
    timezone: str
    directories: Dict[str, str]
    logging: LoggingSettings
    scheduling: SchedulingSettings

class DayHoursConfig(TypedDict, total=False):
    """One row of a court's weekly operating-hours table."""
    is_open: bool
    open: str
    close: str

class RefundTierConfig(TypedDict):
    """Refund tier as written in configuration."""
    threshold_hours: float
    refund_percentage: float

class CancellationPolicyConfig(TypedDict, total=False):
    """Cancellation policy as written in configuration."""
    description: str
    tiers: List[RefundTierConfig]

class PolicyConfig(TypedDict, total=False):
    """Court policy as written in configuration."""
    operating_hours: Dict[str, DayHoursConfig]
    min_booking_minutes: int
    max_booking_minutes: int
    granularity_minutes: int
    max_advance_booking_days: int
    hourly_rate: str
    peak_hour_rate: Optional[str]
    weekend_rate: Optional[str]
    peak_windows: List[List[str]]
    cancellation_policy: CancellationPolicyConfig

class CourtConfig(TypedDict, total=False):
    """Court entry as written in configuration."""
    id: str
    name: str
    owner: str
    timezone: str
    is_active: bool
    policy: PolicyConfig
    metadata: Dict[str, Any]

@dataclass
class AppConfig:
    """Application configuration."""
    global_config: GlobalConfig
    courts: Dict[str, CourtConfig] = field(default_factory=dict)
    reservations: List[Dict[str, Any]] = field(default_factory=list)
    blocks: List[Dict[str, Any]] = field(default_factory=list)
    timezone: str = "America/Mexico_City"
    config_dir: str = "config"
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    @property
    def checkin_grace_minutes(self) -> int:
        """Minutes before start from which check-in is accepted."""
        return int(self.global_config['scheduling']['checkin_grace_minutes'])

    @property
    def default_step_minutes(self) -> Optional[int]:
        """Slot walk step; ``None`` means each court's granularity."""
        step = self.global_config['scheduling'].get('default_step_minutes')
        return int(step) if step else None

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return getattr(self, key, default)
