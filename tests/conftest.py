"""Pytest configuration and fixtures for Kasa Cloud Light tests."""

import pytest

from custom_components.kasa_cloud_light.const import DEFAULT_DEVICE_NAME
from custom_components.kasa_cloud_light.models import (
    KasaDevice,
    KasaSession,
    LightState,
)

TEST_TOKEN = "test-token"
TEST_DEVICE_ID = "8012ABCDEF"


def create_device_entry(device_id: str, device_name: str, alias: str) -> dict:
    """Create a device entry as returned by getDeviceList.

    Args:
        device_id: Cloud device identifier.
        device_name: Model display name.
        alias: User-assigned name.

    Returns:
        A dictionary with every field the cloud reports for a bulb.

    """
    return {
        "deviceType": "IOT.SMARTBULB",
        "role": 0,
        "fwVer": "1.8.11 Build 191113 Rel.105336",
        "appServerUrl": "https://eu-wap.tplinkcloud.com",
        "deviceRegion": "eu-west-1",
        "deviceId": device_id,
        "deviceName": device_name,
        "deviceHwVer": "2.0",
        "alias": alias,
        "deviceMac": "50C7BF000001",
        "oemId": "D5C424D3C480911C",
        "deviceModel": "KL130(EU)",
        "hwId": "1E97141B9F0E939BD8F9679F0B6167C8",
        "fwId": "00000000000000000000000000000000",
        "isSameRegion": True,
        "status": 1,
    }


@pytest.fixture
def sample_login_response() -> dict:
    """Fixture providing a sample login API response."""
    return {
        "error_code": 0,
        "result": {
            "accountId": "1234567",
            "regTime": "2019-03-20 13:42:10",
            "countryCode": "DE",
            "riskDetected": 0,
            "email": "test@example.com",
            "token": TEST_TOKEN,
        },
    }


@pytest.fixture
def sample_device_list_response() -> dict:
    """Fixture providing a device list with the target bulb and a plug."""
    return {
        "error_code": 0,
        "result": {
            "deviceList": [
                create_device_entry("plug1", "Smart Wi-Fi Plug Mini", "Desk plug"),
                create_device_entry(TEST_DEVICE_ID, DEFAULT_DEVICE_NAME, "Lamp"),
            ],
        },
    }


@pytest.fixture
def sample_session() -> KasaSession:
    """Fixture providing a logged-in session."""
    return KasaSession(
        account_id="1234567",
        token=TEST_TOKEN,
        email="test@example.com",
        reg_time="2019-03-20 13:42:10",
        country_code="DE",
        risk_detected=0,
    )


@pytest.fixture
def sample_device() -> KasaDevice:
    """Fixture providing the target bulb."""
    return KasaDevice(
        device_id=TEST_DEVICE_ID,
        device_name=DEFAULT_DEVICE_NAME,
        alias="Lamp",
        device_model="KL130(EU)",
        device_mac="50C7BF000001",
        fw_ver="1.8.11 Build 191113 Rel.105336",
        status=1,
    )


@pytest.fixture
def powered_on_state() -> LightState:
    """Fixture providing a powered-on light state."""
    return LightState(
        on_off=1,
        mode="normal",
        hue=120,
        saturation=80,
        brightness=70,
        color_temp=0,
        err_code=0,
    )


@pytest.fixture
def powered_off_state() -> LightState:
    """Fixture providing a powered-off light state."""
    return LightState(
        on_off=0,
        mode="normal",
        hue=200,
        saturation=40,
        brightness=60,
        color_temp=0,
        err_code=0,
    )
