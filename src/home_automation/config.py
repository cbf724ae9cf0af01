"""
Configuration models for home-automation.

Plain dataclasses with to_dict()/from_dict(), validated eagerly. Entity
references are kept as entity ID strings here and resolved against the
EntityRegistry when automations are built.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from home_automation.errors import ConfigurationError

CURRENT_CONFIG_VERSION = 1


def _require_id(value: Any, what: str) -> str:
    if not isinstance(value, str) or "." not in value:
        raise ConfigurationError(f"{what} must be an entity ID like 'domain.name', got {value!r}")
    return value


# =============================================================================
# Identities
# =============================================================================


@dataclass
class IdentityConfig:
    """Known actors: display names, manual users and automation users."""

    names: Dict[str, str] = field(default_factory=dict)  # actor_id -> display name
    manual_users: List[str] = field(default_factory=list)
    automated_users: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "names": dict(self.names),
            "manual_users": list(self.manual_users),
            "automated_users": list(self.automated_users),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IdentityConfig":
        """Deserialize from dict."""
        return cls(
            names=dict(data.get("names", {})),
            manual_users=list(data.get("manual_users", [])),
            automated_users=list(data.get("automated_users", [])),
        )


# =============================================================================
# Lighting
# =============================================================================


@dataclass
class DimmingConfig:
    """Dim-then-off policy."""

    brightness_pct: int = 80
    delay_seconds: float = 5

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Check the policy values.

        Raises:
            ConfigurationError: If brightness is outside 0..100 or delay is negative
        """
        if not 0 <= self.brightness_pct <= 100:
            raise ConfigurationError(
                f"Dim brightness must be between 0 and 100, got {self.brightness_pct}"
            )
        if self.delay_seconds < 0:
            raise ConfigurationError(f"Dim delay must not be negative, got {self.delay_seconds}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {"brightness_pct": self.brightness_pct, "delay_seconds": self.delay_seconds}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DimmingConfig":
        """Deserialize from dict."""
        return cls(
            brightness_pct=data.get("brightness_pct", 80),
            delay_seconds=data.get("delay_seconds", 5),
        )


@dataclass
class SensorDelayConfig:
    """
    Values for a presence sensor's still-target delay.

    While motion persists the sensor is switched to the long (active) delay;
    once the room is clear it goes back to the short (inactive) delay.
    """

    wait_seconds: float = 15
    active_value: float = 5
    inactive_value: float = 1

    def __post_init__(self) -> None:
        if self.wait_seconds <= 0:
            raise ConfigurationError(
                f"Sensor delay wait must be positive, got {self.wait_seconds}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "wait_seconds": self.wait_seconds,
            "active_value": self.active_value,
            "inactive_value": self.inactive_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SensorDelayConfig":
        """Deserialize from dict."""
        return cls(
            wait_seconds=data.get("wait_seconds", 15),
            active_value=data.get("active_value", 5),
            inactive_value=data.get("inactive_value", 1),
        )


@dataclass
class MotionLightConfig:
    """One motion-driven light group gated by a master switch."""

    id: str
    master_switch: str
    motion_sensor: str
    light: str
    sensor_delay: Optional[str] = None  # number.* entity
    sensor_delay_settings: SensorDelayConfig = field(default_factory=SensorDelayConfig)
    dimming: Optional[DimmingConfig] = None  # None = turn off immediately
    reactivate_after_seconds: Optional[float] = None
    follow_manual_light: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ConfigurationError("Light automation needs an id")
        _require_id(self.master_switch, f"{self.id}: master_switch")
        _require_id(self.motion_sensor, f"{self.id}: motion_sensor")
        _require_id(self.light, f"{self.id}: light")
        if self.sensor_delay is not None:
            _require_id(self.sensor_delay, f"{self.id}: sensor_delay")
        if self.reactivate_after_seconds is not None and self.reactivate_after_seconds <= 0:
            raise ConfigurationError(
                f"{self.id}: reactivate_after_seconds must be positive, "
                f"got {self.reactivate_after_seconds}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "id": self.id,
            "master_switch": self.master_switch,
            "motion_sensor": self.motion_sensor,
            "light": self.light,
            "sensor_delay": self.sensor_delay,
            "sensor_delay_settings": self.sensor_delay_settings.to_dict(),
            "dimming": self.dimming.to_dict() if self.dimming else None,
            "reactivate_after_seconds": self.reactivate_after_seconds,
            "follow_manual_light": self.follow_manual_light,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MotionLightConfig":
        """Deserialize from dict."""
        dimming = data.get("dimming")
        return cls(
            id=data.get("id", ""),
            master_switch=data.get("master_switch"),
            motion_sensor=data.get("motion_sensor"),
            light=data.get("light"),
            sensor_delay=data.get("sensor_delay"),
            sensor_delay_settings=SensorDelayConfig.from_dict(
                data.get("sensor_delay_settings", {})
            ),
            dimming=DimmingConfig.from_dict(dimming) if dimming is not None else None,
            reactivate_after_seconds=data.get("reactivate_after_seconds"),
            follow_manual_light=data.get("follow_manual_light", True),
        )


# =============================================================================
# Fans
# =============================================================================


@dataclass
class FanConfig:
    """Motion-driven fans gated by a master switch. The first fan is the main fan."""

    id: str
    master_switch: str
    motion_sensor: str
    fans: List[str] = field(default_factory=list)
    off_after_seconds: float = 0
    reactivate_after_seconds: float = 900
    follow_manual_fan: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ConfigurationError("Fan automation needs an id")
        _require_id(self.master_switch, f"{self.id}: master_switch")
        _require_id(self.motion_sensor, f"{self.id}: motion_sensor")
        if not self.fans:
            raise ConfigurationError(f"{self.id}: at least one fan is required")
        for fan in self.fans:
            _require_id(fan, f"{self.id}: fan")
        if self.off_after_seconds < 0:
            raise ConfigurationError(
                f"{self.id}: off_after_seconds must not be negative, got {self.off_after_seconds}"
            )
        if self.reactivate_after_seconds <= 0:
            raise ConfigurationError(
                f"{self.id}: reactivate_after_seconds must be positive, "
                f"got {self.reactivate_after_seconds}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "id": self.id,
            "master_switch": self.master_switch,
            "motion_sensor": self.motion_sensor,
            "fans": list(self.fans),
            "off_after_seconds": self.off_after_seconds,
            "reactivate_after_seconds": self.reactivate_after_seconds,
            "follow_manual_fan": self.follow_manual_fan,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FanConfig":
        """Deserialize from dict."""
        return cls(
            id=data.get("id", ""),
            master_switch=data.get("master_switch"),
            motion_sensor=data.get("motion_sensor"),
            fans=list(data.get("fans", [])),
            off_after_seconds=data.get("off_after_seconds", 0),
            reactivate_after_seconds=data.get("reactivate_after_seconds", 900),
            follow_manual_fan=data.get("follow_manual_fan", True),
        )


# =============================================================================
# Top-level
# =============================================================================


@dataclass
class AutomationConfig:
    """Everything the AutomationManager needs to build a deployment."""

    version: int = CURRENT_CONFIG_VERSION
    identities: IdentityConfig = field(default_factory=IdentityConfig)
    lights: List[MotionLightConfig] = field(default_factory=list)
    fans: List[FanConfig] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.version > CURRENT_CONFIG_VERSION:
            raise ConfigurationError(
                f"Config version {self.version} is newer than supported "
                f"({CURRENT_CONFIG_VERSION})"
            )
        seen = set()
        for automation_id in [c.id for c in self.lights] + [c.id for c in self.fans]:
            if automation_id in seen:
                raise ConfigurationError(f"Duplicate automation id '{automation_id}'")
            seen.add(automation_id)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "version": self.version,
            "identities": self.identities.to_dict(),
            "lights": [c.to_dict() for c in self.lights],
            "fans": [c.to_dict() for c in self.fans],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutomationConfig":
        """Deserialize from dict."""
        return cls(
            version=data.get("version", CURRENT_CONFIG_VERSION),
            identities=IdentityConfig.from_dict(data.get("identities", {})),
            lights=[MotionLightConfig.from_dict(c) for c in data.get("lights", [])],
            fans=[FanConfig.from_dict(c) for c in data.get("fans", [])],
        )
