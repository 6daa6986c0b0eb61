"""Data models for Kasa Cloud Light integration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


@dataclass(frozen=True)
class KasaSession:
    """Represents a logged-in Kasa cloud session."""

    account_id: str
    token: str
    email: str
    reg_time: str
    country_code: str
    risk_detected: int


@dataclass(frozen=True)
class KasaDevice:
    """Represents a device entry from the Kasa cloud device list.

    Attributes:
        device_id: Cloud device identifier used for passthrough commands.
        device_name: Model display name, matched against the configured target.
        alias: User-assigned name shown in the Kasa app.

    """

    device_id: str
    device_name: str
    alias: str
    device_model: str
    device_mac: str
    fw_ver: str
    status: int
    device_type: str | None = None
    app_server_url: str | None = None


@dataclass(frozen=True, slots=True)
class LightState:
    """Canonical bulb state, independent of the wire shape that produced it."""

    on_off: int
    mode: str
    hue: int
    saturation: int
    brightness: int
    color_temp: int  # 0 means hue/saturation are in effect
    err_code: int = 0

    @property
    def is_on(self) -> bool:
        """Return True if the bulb is powered on."""
        return self.on_off == 1

    @property
    def hsl_string(self) -> str:
        """Return the state as a CSS color."""
        return f"hsl({self.hue} {self.saturation}% {self.brightness}%)"

    def as_payload(self) -> dict[str, Any]:
        """Return the state as a transition_light_state payload."""
        return {
            "on_off": self.on_off,
            "mode": self.mode,
            "hue": self.hue,
            "saturation": self.saturation,
            "color_temp": self.color_temp,
            "brightness": self.brightness,
        }


@dataclass(frozen=True, slots=True)
class DefaultOnState:
    """Color attributes the bulb restores when powered back on."""

    mode: str
    hue: int
    saturation: int
    brightness: int
    color_temp: int


@dataclass(frozen=True, slots=True)
class PoweredOn:
    """Wire shape reported while the bulb is on: colors at the top level."""

    mode: str
    hue: int
    saturation: int
    brightness: int
    color_temp: int
    err_code: int


@dataclass(frozen=True, slots=True)
class PoweredOff:
    """Wire shape reported while the bulb is off: colors under dft_on_state."""

    dft_on_state: DefaultOnState
    err_code: int


WireLightState = PoweredOn | PoweredOff


class AutoCycleState(StrEnum):
    """States of the auto-cycle scheduler."""

    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"
