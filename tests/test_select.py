"""Tests for the Kasa Cloud Light auto-cycle select entity."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from homeassistant.exceptions import HomeAssistantError

from custom_components.kasa_cloud_light.const import DOMAIN
from custom_components.kasa_cloud_light.models import AutoCycleState, KasaDevice
from custom_components.kasa_cloud_light.scheduler import AutoCycleScheduler
from custom_components.kasa_cloud_light.select import (
    KasaAutoCycleSelectEntity,
    async_setup_entry,
)


@pytest.fixture
def mock_scheduler() -> Mock:
    """Create a mock auto-cycle scheduler."""
    scheduler = Mock()
    scheduler.state = AutoCycleState.STOPPED
    scheduler.period_ms = 10_000
    scheduler.remaining_ms = 10_000
    scheduler.register_listener = Mock(return_value=Mock())
    return scheduler


@pytest.fixture
def mock_coordinator(sample_device: KasaDevice, mock_scheduler: Mock) -> Mock:
    """Create a mock light coordinator."""
    coordinator = Mock()
    coordinator.current_device = sample_device
    coordinator.scheduler = mock_scheduler
    return coordinator


@pytest.fixture
def entity(mock_coordinator: Mock) -> KasaAutoCycleSelectEntity:
    """Create an auto-cycle select entity for testing."""
    select = KasaAutoCycleSelectEntity(mock_coordinator)
    select.async_write_ha_state = Mock()
    return select


class TestAsyncSetupEntry:
    """Tests for async_setup_entry function."""

    @pytest.mark.asyncio
    async def test_async_setup_entry_adds_select(self, mock_coordinator: Mock) -> None:
        """Test that async_setup_entry adds the auto-cycle select."""
        hass = Mock()
        hass.data = {DOMAIN: {"test_entry": {"coordinator": mock_coordinator}}}
        entry = Mock()
        entry.entry_id = "test_entry"
        async_add_entities = Mock()

        await async_setup_entry(hass, entry, async_add_entities)

        entities = async_add_entities.call_args[0][0]
        assert len(entities) == 1
        assert isinstance(entities[0], KasaAutoCycleSelectEntity)


class TestKasaAutoCycleSelectEntityState:
    """Tests for the select entity state."""

    def test_init_sets_attributes_correctly(
        self, entity: KasaAutoCycleSelectEntity, sample_device: KasaDevice
    ) -> None:
        """Test the unique id and options."""
        assert entity.unique_id == f"{sample_device.device_id}_auto_cycle"
        assert entity.options == ["stopped", "running", "paused"]

    def test_current_option_follows_scheduler(
        self, entity: KasaAutoCycleSelectEntity, mock_scheduler: Mock
    ) -> None:
        """Test that the selected option is the scheduler state."""
        assert entity.current_option == "stopped"
        mock_scheduler.state = AutoCycleState.PAUSED
        assert entity.current_option == "paused"

    def test_extra_state_attributes_show_countdown(
        self, entity: KasaAutoCycleSelectEntity, mock_scheduler: Mock
    ) -> None:
        """Test that the period and remaining time are exposed."""
        mock_scheduler.remaining_ms = 4_300
        assert entity.extra_state_attributes == {
            "period_ms": 10_000,
            "remaining_ms": 4_300,
        }

    @pytest.mark.asyncio
    async def test_async_added_to_hass_registers_listener(
        self, entity: KasaAutoCycleSelectEntity, mock_scheduler: Mock
    ) -> None:
        """Test that scheduler changes are written to Home Assistant."""
        await entity.async_added_to_hass()
        mock_scheduler.register_listener.assert_called_once_with(
            entity.async_write_ha_state
        )

    @pytest.mark.asyncio
    async def test_async_will_remove_from_hass_unsubscribes_listener(
        self, entity: KasaAutoCycleSelectEntity
    ) -> None:
        """Test that async_will_remove_from_hass unsubscribes listener."""
        mock_unsub = Mock()
        entity._scheduler_listener_unsub = mock_unsub
        await entity.async_will_remove_from_hass()
        mock_unsub.assert_called_once()
        assert entity._scheduler_listener_unsub is None


class TestKasaAutoCycleSelectEntityAsyncSelectOption:
    """Tests for async_select_option method."""

    @pytest.mark.asyncio
    async def test_select_running_from_stopped_starts(
        self, entity: KasaAutoCycleSelectEntity, mock_scheduler: Mock
    ) -> None:
        """Test that selecting running starts the cycle."""
        await entity.async_select_option("running")
        mock_scheduler.start.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_select_running_from_paused_resumes(
        self, entity: KasaAutoCycleSelectEntity, mock_scheduler: Mock
    ) -> None:
        """Test that selecting running while paused resumes the countdown."""
        mock_scheduler.state = AutoCycleState.PAUSED
        await entity.async_select_option("running")
        mock_scheduler.resume.assert_called_once_with()
        mock_scheduler.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_select_paused_from_running_pauses(
        self, entity: KasaAutoCycleSelectEntity, mock_scheduler: Mock
    ) -> None:
        """Test that selecting paused while running pauses."""
        mock_scheduler.state = AutoCycleState.RUNNING
        await entity.async_select_option("paused")
        mock_scheduler.pause.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_select_paused_from_stopped_raises(
        self, entity: KasaAutoCycleSelectEntity, mock_scheduler: Mock
    ) -> None:
        """Test that a stopped cycle cannot be paused."""
        with pytest.raises(HomeAssistantError, match="only be paused while running"):
            await entity.async_select_option("paused")
        mock_scheduler.pause.assert_not_called()

    @pytest.mark.parametrize("current", [AutoCycleState.RUNNING, AutoCycleState.PAUSED])
    @pytest.mark.asyncio
    async def test_select_stopped_stops(
        self,
        entity: KasaAutoCycleSelectEntity,
        mock_scheduler: Mock,
        current: AutoCycleState,
    ) -> None:
        """Test that selecting stopped stops a running or paused cycle."""
        mock_scheduler.state = current
        await entity.async_select_option("stopped")
        mock_scheduler.stop.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_select_current_option_does_nothing(
        self, entity: KasaAutoCycleSelectEntity, mock_scheduler: Mock
    ) -> None:
        """Test that reselecting the current state calls nothing."""
        mock_scheduler.state = AutoCycleState.RUNNING
        await entity.async_select_option("running")
        mock_scheduler.start.assert_not_called()
        mock_scheduler.resume.assert_not_called()


class TestKasaAutoCycleSelectEntityCountdown:
    """Tests for the countdown shown by the select entity."""

    @pytest.mark.asyncio
    async def test_remaining_time_is_written_as_it_counts_down(
        self, mock_coordinator: Mock
    ) -> None:
        """Test that the remaining time is written to HA while running."""
        scheduler = AutoCycleScheduler(AsyncMock(), period_ms=3000, tick_ms=100)
        scheduler._async_run = lambda: asyncio.Event().wait()
        mock_coordinator.scheduler = scheduler
        entity = KasaAutoCycleSelectEntity(mock_coordinator)
        written: list[int] = []
        entity.async_write_ha_state = Mock(
            side_effect=lambda: written.append(
                entity.extra_state_attributes["remaining_ms"]
            )
        )
        await entity.async_added_to_hass()

        scheduler.start()
        for _ in range(21):
            scheduler._tick()
        scheduler.stop()

        assert written == [3000, 2900, 1900, 900, 3000]
