"""Auto-cycle period for Kasa Cloud Light."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.components.number import NumberEntity, NumberMode
from homeassistant.const import UnitOfTime

from .const import DOMAIN, MAX_CYCLE_PERIOD_S, MIN_CYCLE_PERIOD_S
from .light import device_info_for

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
    """Set up the auto-cycle period entity."""
    coordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    async_add_entities([KasaAutoCyclePeriodEntity(coordinator)])


class KasaAutoCyclePeriodEntity(NumberEntity):
    """Number entity for the auto-cycle period in seconds."""

    _attr_has_entity_name = True
    _attr_name = "Auto cycle period"
    _attr_should_poll = False
    _attr_mode = NumberMode.BOX
    _attr_native_min_value = MIN_CYCLE_PERIOD_S
    _attr_native_max_value = MAX_CYCLE_PERIOD_S
    _attr_native_step = 1
    _attr_native_unit_of_measurement = UnitOfTime.SECONDS

    def __init__(self, coordinator: KasaLightCoordinator) -> None:
        """Initialize the number entity."""
        self._scheduler = coordinator.scheduler
        device = coordinator.current_device
        self._attr_unique_id = f"{device.device_id}_auto_cycle_period"
        self._attr_device_info = device_info_for(device)

    @property
    def native_value(self) -> float:
        """Return the period in seconds."""
        return self._scheduler.period_ms / 1000

    async def async_set_native_value(self, value: float) -> None:
        """Apply a new period; a running cycle restarts at the new cadence."""
        period_ms = int(value * 1000)
        _LOGGER.debug("Setting auto-cycle period to %d ms", period_ms)
        self._scheduler.set_period(period_ms)
        self.async_write_ha_state()
