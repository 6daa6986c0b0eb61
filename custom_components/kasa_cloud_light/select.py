"""Auto-cycle control for Kasa Cloud Light."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.components.select import SelectEntity
from homeassistant.exceptions import HomeAssistantError

from .const import DOMAIN
from .light import device_info_for
from .models import AutoCycleState

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import KasaLightCoordinator

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the auto-cycle select entity."""
    coordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    async_add_entities([KasaAutoCycleSelectEntity(coordinator)])


class KasaAutoCycleSelectEntity(SelectEntity):
    """Select entity driving the auto-cycle state machine."""

    _attr_has_entity_name = True
    _attr_name = "Auto cycle"
    _attr_should_poll = False
    _attr_options = [state.value for state in AutoCycleState]

    def __init__(self, coordinator: KasaLightCoordinator) -> None:
        """Initialize the select entity."""
        self._scheduler = coordinator.scheduler
        device = coordinator.current_device
        self._attr_unique_id = f"{device.device_id}_auto_cycle"
        self._attr_device_info = device_info_for(device)
        self._scheduler_listener_unsub = None

    @property
    def current_option(self) -> str:
        """Return the scheduler state."""
        return self._scheduler.state.value

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the period and the time left in it, updated every second."""
        return {
            "period_ms": self._scheduler.period_ms,
            "remaining_ms": self._scheduler.remaining_ms,
        }

    async def async_added_to_hass(self) -> None:
        """Subscribe to scheduler changes."""
        await super().async_added_to_hass()
        self._scheduler_listener_unsub = self._scheduler.register_listener(
            self.async_write_ha_state
        )

    async def async_will_remove_from_hass(self) -> None:
        """Unsubscribe from scheduler changes."""
        await super().async_will_remove_from_hass()

        if self._scheduler_listener_unsub is not None:
            self._scheduler_listener_unsub()
            self._scheduler_listener_unsub = None

    async def async_select_option(self, option: str) -> None:
        """Move the scheduler to the selected state."""
        target = AutoCycleState(option)
        current = self._scheduler.state
        _LOGGER.debug("Auto-cycle transition %s -> %s", current, target)

        if target is current:
            return

        if target is AutoCycleState.STOPPED:
            self._scheduler.stop()
        elif target is AutoCycleState.PAUSED:
            if current is not AutoCycleState.RUNNING:
                error_msg = "Auto-cycle can only be paused while running"
                raise HomeAssistantError(error_msg)
            self._scheduler.pause()
        elif current is AutoCycleState.PAUSED:
            self._scheduler.resume()
        else:
            self._scheduler.start()
