"""API client for the TP-Link Kasa cloud.

This module provides functions to interact with the Kasa cloud API,
including login, device discovery and light state commands sent through
the passthrough RPC.
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import replace
from typing import Any

import httpx
import voluptuous as vol
from homeassistant.core import HomeAssistant
from homeassistant.helpers.httpx_client import create_async_httpx_client

from . import codec
from .const import (
    APP_TYPE,
    BASE_URL,
    CMD_GET_LIGHT_STATE,
    CMD_TRANSITION_LIGHT_STATE,
    HUE_MAX,
    METHOD_GET_DEVICE_LIST,
    METHOD_LOGIN,
    PERCENT_MAX,
    REQUEST_TIMEOUT,
    SHUFFLE_BRIGHTNESS,
    SHUFFLE_SATURATION_MIN,
)
from .exceptions import (
    KasaCloudAuthError,
    KasaCloudCommandError,
    KasaCloudDecodeError,
    KasaCloudDirectoryError,
    KasaCloudError,
    KasaCloudTargetNotFound,
)
from .models import KasaDevice, KasaSession, LightState

__all__ = [
    "KasaCloudAuthError",
    "KasaCloudCommandError",
    "KasaCloudDecodeError",
    "KasaCloudDirectoryError",
    "KasaCloudError",
    "KasaCloudTargetNotFound",
]

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_BAD_REQUEST = 400

LOGIN_SCHEMA = vol.Schema(
    {
        vol.Required("error_code"): 0,
        vol.Required("result"): {
            vol.Required("accountId"): str,
            vol.Required("regTime"): str,
            vol.Required("countryCode"): str,
            vol.Required("riskDetected"): int,
            vol.Required("email"): str,
            vol.Required("token"): str,
        },
    },
    extra=vol.ALLOW_EXTRA,
)

DEVICE_SCHEMA = vol.Schema(
    {
        vol.Required("deviceId"): str,
        vol.Required("deviceName"): str,
        vol.Required("alias"): str,
        vol.Required("deviceModel"): str,
        vol.Required("deviceMac"): str,
        vol.Required("fwVer"): str,
        vol.Required("status"): int,
        vol.Optional("deviceType"): str,
        vol.Optional("appServerUrl"): str,
    },
    extra=vol.ALLOW_EXTRA,
)

DEVICE_LIST_SCHEMA = vol.Schema(
    {
        vol.Required("error_code"): 0,
        vol.Required("result"): {vol.Required("deviceList"): [DEVICE_SCHEMA]},
    },
    extra=vol.ALLOW_EXTRA,
)


def create_headers() -> dict[str, str]:
    """Create HTTP headers for Kasa cloud requests."""
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def is_http_error(status: int) -> bool:
    """Check if HTTP status code indicates an error.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is 400 or higher, False otherwise.

    """
    return status >= HTTP_BAD_REQUEST


def is_api_error(data: dict[str, Any]) -> bool:
    """Check if API response indicates an error.

    Args:
        data: API response data dictionary.

    Returns:
        True if error_code field is not 0, False otherwise.

    """
    return data.get("error_code", 0) != 0


def validate_response(
    response: httpx.Response,
    error_cls: type[KasaCloudError] = KasaCloudError,
) -> dict[str, Any]:
    """Validate HTTP response and return parsed JSON data.

    Args:
        response: HTTP response object to validate.
        error_cls: Exception type raised for this call's failures.

    Returns:
        Parsed JSON data from response.

    Raises:
        KasaCloudError: Of type error_cls, if the HTTP status, body or
            error_code signals a failure.

    """
    if is_http_error(response.status_code):
        error_msg = f"Request failed: {response.status_code}"
        raise error_cls(error_msg)

    try:
        data = response.json()
    except ValueError as err:
        error_msg = f"Response is not valid JSON: {err}"
        raise error_cls(error_msg) from err

    if not isinstance(data, dict):
        error_msg = "Response is not a JSON object"
        raise error_cls(error_msg)

    if is_api_error(data):
        error_msg = data.get("msg", f"Unknown API error {data['error_code']}")
        raise error_cls(error_msg)

    return data


def extract_session(data: dict[str, Any]) -> KasaSession:
    """Extract the session from a login response.

    Raises:
        KasaCloudAuthError: If the response does not match the login schema.

    """
    try:
        result = LOGIN_SCHEMA(data)["result"]
    except vol.Invalid as err:
        error_msg = f"Malformed login response: {err}"
        raise KasaCloudAuthError(error_msg) from err

    return KasaSession(
        account_id=result["accountId"],
        token=result["token"],
        email=result["email"],
        reg_time=result["regTime"],
        country_code=result["countryCode"],
        risk_detected=result["riskDetected"],
    )


def extract_devices(data: dict[str, Any]) -> list[KasaDevice]:
    """Extract device list from a getDeviceList response.

    Raises:
        KasaCloudDirectoryError: If the response does not match the schema.

    """
    try:
        devices_data = DEVICE_LIST_SCHEMA(data)["result"]["deviceList"]
    except vol.Invalid as err:
        error_msg = f"Malformed device list response: {err}"
        raise KasaCloudDirectoryError(error_msg) from err

    return [
        KasaDevice(
            device_id=d["deviceId"],
            device_name=d["deviceName"],
            alias=d["alias"],
            device_model=d["deviceModel"],
            device_mac=d["deviceMac"],
            fw_ver=d["fwVer"],
            status=d["status"],
            device_type=d.get("deviceType"),
            app_server_url=d.get("appServerUrl"),
        )
        for d in devices_data
    ]


def select_target(devices: list[KasaDevice], target_name: str) -> KasaDevice | None:
    """Find the first device whose name equals the target name.

    Args:
        devices: Devices from the cloud device list.
        target_name: Exact device name to match.

    Returns:
        The matching device, or None if no device matches yet.

    """
    matches = [device for device in devices if device.device_name == target_name]
    if not matches:
        return None

    if len(matches) > 1:
        _LOGGER.warning(
            "%d devices named %s, using %s",
            len(matches),
            target_name,
            matches[0].alias,
        )
    return matches[0]


def require_target(devices: list[KasaDevice], target_name: str) -> KasaDevice:
    """Return the target device.

    Raises:
        KasaCloudTargetNotFound: If no device matches the target name.

    """
    device = select_target(devices, target_name)
    if device is None:
        error_msg = f"No device named {target_name} on this account yet"
        raise KasaCloudTargetNotFound(error_msg)
    return device


def random_light_payload() -> dict[str, Any]:
    """Return a randomized transition payload for the shuffle action."""
    return {
        "brightness": SHUFFLE_BRIGHTNESS,
        "hue": random.randint(0, HUE_MAX),  # noqa: S311
        "saturation": random.randint(SHUFFLE_SATURATION_MIN, PERCENT_MAX),  # noqa: S311
        "color_temp": 0,
        "on_off": 1,
    }


def build_transition_payload(
    partial: dict[str, Any] | None = None,
    base: LightState | None = None,
) -> dict[str, Any]:
    """Build a transition payload.

    The partial state is merged over the base state. Without a base it is
    sent on its own, and with neither the randomized default is used.
    """
    if base is None:
        return dict(partial) if partial else random_light_payload()

    payload = base.as_payload()
    if partial:
        payload.update(partial)
    return payload


def create_session_client(hass: HomeAssistant) -> httpx.AsyncClient:
    """Create HTTP client for the Kasa cloud.

    Args:
        hass: Home Assistant instance.

    Returns:
        Configured httpx AsyncClient.

    """
    return create_async_httpx_client(hass, timeout=REQUEST_TIMEOUT)


async def async_login(
    client: httpx.AsyncClient,
    username: str,
    password: str,
) -> KasaSession:
    """Log in to the Kasa cloud with account credentials.

    Args:
        client: HTTP client.
        username: Kasa account email.
        password: Kasa account password.

    Returns:
        The established session.

    Raises:
        KasaCloudAuthError: If the credentials are rejected or the response
            is malformed.
        httpx.RequestError: If the cloud cannot be reached.

    """
    payload = {
        "method": METHOD_LOGIN,
        "params": {
            "appType": APP_TYPE,
            "cloudUserName": username,
            "cloudPassword": password,
            "terminalUUID": str(uuid.uuid4()),
        },
    }

    _LOGGER.debug("Logging in to Kasa cloud")
    response = await client.post(BASE_URL, headers=create_headers(), json=payload)
    data = validate_response(response, KasaCloudAuthError)
    session = extract_session(data)
    _LOGGER.debug("Successfully logged in to Kasa cloud as account %s", session.account_id)
    return session


async def async_get_devices(
    client: httpx.AsyncClient,
    session: KasaSession,
) -> list[KasaDevice]:
    """Fetch the account's devices from the Kasa cloud.

    Args:
        client: HTTP client.
        session: Logged-in session.

    Returns:
        List of KasaDevice objects.

    Raises:
        KasaCloudDirectoryError: If the request fails or the response is
            malformed.

    """
    _LOGGER.debug("Fetching devices from Kasa cloud")
    try:
        response = await client.post(
            BASE_URL,
            params={"token": session.token},
            headers=create_headers(),
            json={"method": METHOD_GET_DEVICE_LIST},
        )
    except httpx.RequestError as err:
        error_msg = f"Device list request failed: {err}"
        raise KasaCloudDirectoryError(error_msg) from err

    data = validate_response(response, KasaCloudDirectoryError)
    devices = extract_devices(data)
    _LOGGER.debug("Retrieved %d devices from Kasa cloud", len(devices))
    return devices


async def _async_passthrough(
    client: httpx.AsyncClient,
    session: KasaSession,
    device: KasaDevice,
    method: str,
    payload: dict[str, Any],
) -> dict[str, Any]:
    request = codec.build_passthrough_request(device.device_id, method, payload)

    _LOGGER.debug("Sending %s to device %s: %s", method, device.device_id, payload)
    try:
        response = await client.post(
            BASE_URL,
            params={"token": session.token},
            headers=create_headers(),
            json=request,
        )
    except httpx.RequestError as err:
        error_msg = f"{method} request failed: {err}"
        raise KasaCloudCommandError(error_msg) from err

    return validate_response(response, KasaCloudCommandError)


def _raise_for_err_code(state: LightState) -> None:
    if state.err_code:
        error_msg = f"Device reported err_code {state.err_code}"
        raise KasaCloudCommandError(error_msg)


async def async_get_light_state(
    client: httpx.AsyncClient,
    session: KasaSession,
    device: KasaDevice,
) -> LightState:
    """Read the bulb's current light state.

    Raises:
        KasaCloudCommandError: If the request fails or the device reports
            an error.
        KasaCloudDecodeError: If the reply matches neither state shape.

    """
    data = await _async_passthrough(client, session, device, CMD_GET_LIGHT_STATE, {})
    state = codec.decode_light_state(data, CMD_GET_LIGHT_STATE)
    _raise_for_err_code(state)
    return state


async def async_set_light_state(
    client: httpx.AsyncClient,
    session: KasaSession,
    device: KasaDevice,
    partial: dict[str, Any] | None = None,
    *,
    base: LightState | None = None,
) -> LightState:
    """Transition the bulb to a new light state.

    Args:
        client: HTTP client.
        session: Logged-in session.
        device: Target bulb.
        partial: Fields to change. Merged over base, sent alone when base
            is None, or replaced by a randomized color when both are None.
        base: Last known state of the bulb, if any.

    Returns:
        The state the bulb reports after the transition. If the bulb does
        not echo its colors on power-off, base is carried forward with
        on_off set to 0, or the state is read back when there is no base.

    Raises:
        KasaCloudCommandError: If the request fails or the device reports
            an error.
        KasaCloudDecodeError: If the reply matches neither state shape.

    """
    payload = build_transition_payload(partial, base)
    data = await _async_passthrough(
        client, session, device, CMD_TRANSITION_LIGHT_STATE, payload
    )
    reply = codec.unwrap_response(data, CMD_TRANSITION_LIGHT_STATE)

    err_code = codec.parse_power_off_ack(reply)
    if err_code is not None and payload.get("on_off") == 0:
        if base is None:
            if err_code:
                error_msg = f"Device reported err_code {err_code}"
                raise KasaCloudCommandError(error_msg)
            _LOGGER.debug(
                "Device %s did not echo colors on power-off, reading them back",
                device.device_id,
            )
            return await async_get_light_state(client, session, device)

        _LOGGER.debug(
            "Device %s did not echo colors on power-off, keeping last known state",
            device.device_id,
        )
        state = replace(base, on_off=0, err_code=err_code)
    else:
        state = codec.normalize(codec.parse_wire_state(reply))

    _raise_for_err_code(state)
    _LOGGER.debug("Light state for device %s: %s", device.device_id, state)
    return state
