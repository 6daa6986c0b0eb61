"""Coordinator for Kasa Cloud Light integration."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from . import api
from .const import DEFAULT_POLL_INTERVAL, DOMAIN
from .models import LightState
from .scheduler import AutoCycleScheduler

if TYPE_CHECKING:
    import httpx
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .models import KasaDevice, KasaSession

_LOGGER = logging.getLogger(__name__)


class KasaLightCoordinator(DataUpdateCoordinator[LightState]):
    """Coordinator that owns the cloud session and the bulb's light state.

    Polls the bulb periodically and applies the state confirmed by every
    command. Each poll and command takes a sequence number when issued;
    a response older than the last applied one is dropped, so a slow
    reply cannot overwrite a newer state.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        client: httpx.AsyncClient,
        session: KasaSession,
        device: KasaDevice,
        config_entry: ConfigEntry | None = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=f"{DOMAIN}_{device.device_id}",
            update_interval=timedelta(seconds=DEFAULT_POLL_INTERVAL),
        )
        self.client = client
        self.session = session
        self.device = device
        self.data = None
        self.scheduler = AutoCycleScheduler(self.async_issue_random_color)
        self._issued_seq = 0
        self._applied_seq = 0

    @property
    def current_state(self) -> LightState | None:
        """Return the last confirmed light state, if any."""
        return self.data

    @property
    def current_device(self) -> KasaDevice:
        """Return the bulb this coordinator controls."""
        return self.device

    def _next_seq(self) -> int:
        self._issued_seq += 1
        return self._issued_seq

    def _is_stale(self, seq: int) -> bool:
        if seq < self._applied_seq:
            _LOGGER.debug(
                "Dropping stale response %d, already applied %d",
                seq,
                self._applied_seq,
            )
            return True
        self._applied_seq = seq
        return False

    async def _async_update_data(self) -> LightState:
        seq = self._next_seq()
        try:
            state = await api.async_get_light_state(
                self.client, self.session, self.device
            )
        except api.KasaCloudDecodeError as err:
            error_msg = f"Unexpected light state from {self.device.alias}: {err}"
            raise UpdateFailed(error_msg) from err
        except api.KasaCloudError as err:
            error_msg = f"Error polling {self.device.alias}: {err}"
            raise UpdateFailed(error_msg) from err

        if self._is_stale(seq):
            return self.data
        return state

    async def async_set_state(
        self,
        partial: dict[str, Any] | None = None,
        *,
        randomize: bool = False,
    ) -> LightState | None:
        """Send a transition command and apply the confirmed state.

        Args:
            partial: Fields to change.
            randomize: Merge over a random color instead of the last
                known state.

        Returns:
            The confirmed state, or None if a newer response was already
            applied.

        Raises:
            KasaCloudError: If the command fails.

        """
        seq = self._next_seq()
        base = None if randomize else self.data
        state = await api.async_set_light_state(
            self.client, self.session, self.device, partial, base=base
        )

        if self._is_stale(seq):
            return None
        self.async_set_updated_data(state)
        return state

    async def async_issue_random_color(self) -> None:
        """Shuffle the bulb to a random color."""
        await self.async_set_state(randomize=True)

    async def async_toggle_power(self) -> None:
        """Flip the bulb's power, showing the new power state immediately."""
        previous = self.data
        on_off = 0 if previous is not None and previous.is_on else 1
        applied_before = self._applied_seq

        if previous is not None:
            self.async_set_updated_data(replace(previous, on_off=on_off))

        try:
            await self.async_set_state({"on_off": on_off})
        except api.KasaCloudError:
            if previous is not None and self._applied_seq == applied_before:
                self.async_set_updated_data(previous)
            raise

    async def async_set_exact_color(
        self, hue: int, saturation: int, brightness: int
    ) -> None:
        """Set an exact hue, saturation and brightness."""
        await self.async_set_state(
            {
                "hue": hue,
                "saturation": saturation,
                "brightness": brightness,
                "color_temp": 0,
                "on_off": 1,
            }
        )

    async def async_set_color_temp(
        self, color_temp: int, brightness: int | None = None
    ) -> None:
        """Set a white color temperature in Kelvin."""
        partial = {"color_temp": color_temp, "on_off": 1}
        if brightness is not None:
            partial["brightness"] = brightness
        await self.async_set_state(partial)

    async def async_set_brightness(self, brightness: int) -> None:
        """Set the brightness, keeping the current color."""
        await self.async_set_state({"brightness": brightness, "on_off": 1})

    async def async_shutdown(self) -> None:
        """Stop the auto-cycle and polling."""
        self.scheduler.stop()
        await super().async_shutdown()
