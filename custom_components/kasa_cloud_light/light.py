"""Light entity for a Kasa smart bulb controlled through the cloud.

The entity is a thin view over KasaLightCoordinator: it renders the
canonical light state and maps Home Assistant service calls onto the
coordinator's power, color and shuffle commands.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.components.light import (
    ATTR_BRIGHTNESS,
    ATTR_COLOR_TEMP_KELVIN,
    ATTR_EFFECT,
    ATTR_HS_COLOR,
    ColorMode,
    LightEntity,
    LightEntityFeature,
)
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import CONNECTION_NETWORK_MAC, DeviceInfo

from . import api
from .const import (
    COLOR_TEMP_MAX,
    COLOR_TEMP_MIN,
    DOMAIN,
    EFFECT_SHUFFLE,
    PERCENT_MAX,
    SHUFFLE_BRIGHTNESS,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import KasaLightCoordinator
    from .models import KasaDevice

_LOGGER = logging.getLogger(__name__)

HA_BRIGHTNESS_MAX = 255


def brightness_to_percent(brightness: int) -> int:
    """Convert a Home Assistant brightness (1-255) to the bulb's 1-100."""
    return max(1, round(brightness * PERCENT_MAX / HA_BRIGHTNESS_MAX))


def percent_to_brightness(percent: int) -> int:
    """Convert the bulb's 0-100 brightness to Home Assistant's 0-255."""
    return round(percent * HA_BRIGHTNESS_MAX / PERCENT_MAX)


def device_info_for(device: KasaDevice) -> DeviceInfo:
    """Build the device registry entry shared by all entities of a bulb."""
    return DeviceInfo(
        identifiers={(DOMAIN, device.device_id)},
        connections={(CONNECTION_NETWORK_MAC, device.device_mac.lower())},
        manufacturer="TP-Link",
        model=device.device_model,
        name=device.alias,
        sw_version=device.fw_ver,
    )


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the light entity for the configured bulb."""
    coordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    async_add_entities([KasaCloudLightEntity(coordinator)])


class KasaCloudLightEntity(LightEntity):
    """Light entity for a Kasa color bulb."""

    _attr_has_entity_name = True
    _attr_name = None
    _attr_should_poll = False
    _attr_supported_color_modes = {ColorMode.COLOR_TEMP, ColorMode.HS}
    _attr_supported_features = LightEntityFeature.EFFECT
    _attr_effect_list = [EFFECT_SHUFFLE]
    _attr_min_color_temp_kelvin = COLOR_TEMP_MIN
    _attr_max_color_temp_kelvin = COLOR_TEMP_MAX

    def __init__(self, coordinator: KasaLightCoordinator) -> None:
        """Initialize the light entity.

        Args:
            coordinator: Coordinator owning the bulb's session and state.

        """
        self._coordinator = coordinator
        device = coordinator.current_device
        self._attr_unique_id = device.device_id
        self._attr_device_info = device_info_for(device)
        self._coordinator_listener_unsub = None

    @property
    def available(self) -> bool:
        """Return True once a light state has been received."""
        return (
            self._coordinator.last_update_success
            and self._coordinator.current_state is not None
        )

    @property
    def is_on(self) -> bool | None:
        """Return True if the bulb is on."""
        state = self._coordinator.current_state
        return state.is_on if state is not None else None

    @property
    def brightness(self) -> int | None:
        """Return the brightness in Home Assistant's 0-255 scale."""
        state = self._coordinator.current_state
        return percent_to_brightness(state.brightness) if state is not None else None

    @property
    def color_mode(self) -> ColorMode:
        """Return COLOR_TEMP when a white temperature is set, else HS."""
        state = self._coordinator.current_state
        if state is not None and state.color_temp:
            return ColorMode.COLOR_TEMP
        return ColorMode.HS

    @property
    def hs_color(self) -> tuple[float, float] | None:
        """Return the hue and saturation."""
        state = self._coordinator.current_state
        if state is None:
            return None
        return (float(state.hue), float(state.saturation))

    @property
    def color_temp_kelvin(self) -> int | None:
        """Return the color temperature, if one is in effect."""
        state = self._coordinator.current_state
        if state is None or not state.color_temp:
            return None
        return state.color_temp

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        """Return the bulb mode, CSS color and device error code."""
        state = self._coordinator.current_state
        if state is None:
            return None
        return {
            "mode": state.mode,
            "hsl_color": state.hsl_string,
            "err_code": state.err_code,
        }

    async def async_added_to_hass(self) -> None:
        """Subscribe to coordinator updates."""
        await super().async_added_to_hass()
        self._coordinator_listener_unsub = self._coordinator.async_add_listener(
            self._handle_coordinator_update
        )

    async def async_will_remove_from_hass(self) -> None:
        """Handle entity being removed from Home Assistant."""
        await super().async_will_remove_from_hass()

        if self._coordinator_listener_unsub is not None:
            self._coordinator_listener_unsub()
            self._coordinator_listener_unsub = None

    def _handle_coordinator_update(self) -> None:
        """Handle updated data from the coordinator."""
        _LOGGER.debug(
            "%s: light state %s", self.entity_id, self._coordinator.current_state
        )
        self.async_write_ha_state()

    async def _async_call(self, command: Awaitable[Any]) -> None:
        try:
            await command
        except api.KasaCloudError as err:
            _LOGGER.warning(
                "Command to %s failed: %s",
                self._coordinator.current_device.alias,
                err,
            )
            error_msg = f"{type(err).__name__}: {err}"
            raise HomeAssistantError(error_msg) from err

    async def async_turn_on(self, **kwargs: Any) -> None:  # noqa: ANN401
        """Turn the bulb on, optionally with a color, temperature or effect."""
        state = self._coordinator.current_state
        brightness = (
            brightness_to_percent(kwargs[ATTR_BRIGHTNESS])
            if ATTR_BRIGHTNESS in kwargs
            else None
        )

        if kwargs.get(ATTR_EFFECT) == EFFECT_SHUFFLE:
            await self._async_call(self._coordinator.async_issue_random_color())
        elif ATTR_HS_COLOR in kwargs:
            hue, saturation = kwargs[ATTR_HS_COLOR]
            if brightness is None:
                brightness = state.brightness if state else SHUFFLE_BRIGHTNESS
            await self._async_call(
                self._coordinator.async_set_exact_color(
                    round(hue), round(saturation), brightness
                )
            )
        elif ATTR_COLOR_TEMP_KELVIN in kwargs:
            await self._async_call(
                self._coordinator.async_set_color_temp(
                    kwargs[ATTR_COLOR_TEMP_KELVIN], brightness
                )
            )
        elif brightness is not None:
            await self._async_call(self._coordinator.async_set_brightness(brightness))
        elif state is None:
            await self._async_call(self._coordinator.async_set_state({"on_off": 1}))
        elif not state.is_on:
            await self._async_call(self._coordinator.async_toggle_power())

    async def async_turn_off(self, **kwargs: Any) -> None:  # noqa: ANN401, ARG002
        """Turn the bulb off."""
        state = self._coordinator.current_state
        if state is None:
            await self._async_call(self._coordinator.async_set_state({"on_off": 0}))
        elif state.is_on:
            await self._async_call(self._coordinator.async_toggle_power())
