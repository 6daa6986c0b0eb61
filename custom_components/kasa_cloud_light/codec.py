"""Wire codec for Kasa smart bulb passthrough commands.

The cloud forwards an inner device envelope as a JSON string inside the
outer request, and relays the device reply the same way. The reply to a
light state query changes shape with the power state::

    on:  {"on_off": 1, "mode": ..., "hue": ..., ..., "err_code": 0}
    off: {"on_off": 0, "dft_on_state": {"mode": ..., "hue": ...}, "err_code": 0}

Both shapes are collapsed into a single LightState here, so nothing past
this module has to know where the color fields live.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import voluptuous as vol

from .const import (
    COLOR_TEMP_MAX,
    COLOR_TEMP_MIN,
    HUE_MAX,
    LIGHTING_SERVICE,
    METHOD_PASSTHROUGH,
    PERCENT_MAX,
)
from .exceptions import KasaCloudCommandError, KasaCloudDecodeError
from .models import DefaultOnState, LightState, PoweredOff, PoweredOn, WireLightState

_LOGGER = logging.getLogger(__name__)

_PERCENT = vol.All(int, vol.Range(min=0, max=PERCENT_MAX))

COLOR_FIELDS = {
    vol.Required("mode"): str,
    vol.Required("hue"): vol.All(int, vol.Range(min=0, max=HUE_MAX)),
    vol.Required("saturation"): _PERCENT,
    vol.Required("brightness"): _PERCENT,
    vol.Required("color_temp"): vol.Any(
        0, vol.All(int, vol.Range(min=COLOR_TEMP_MIN, max=COLOR_TEMP_MAX))
    ),
}

POWERED_ON_SCHEMA = vol.Schema(
    {
        vol.Required("on_off"): 1,
        **COLOR_FIELDS,
        vol.Required("err_code"): int,
    },
    extra=vol.ALLOW_EXTRA,
)

POWERED_OFF_SCHEMA = vol.Schema(
    {
        vol.Required("on_off"): 0,
        vol.Required("dft_on_state"): vol.Schema(COLOR_FIELDS, extra=vol.ALLOW_EXTRA),
        vol.Required("err_code"): int,
    },
    extra=vol.ALLOW_EXTRA,
)

# Power-off acknowledgement from bulbs that do not echo their colors
POWER_OFF_ACK_SCHEMA = vol.Schema(
    {
        vol.Required("on_off"): 0,
        vol.Required("err_code"): int,
    },
    extra=vol.ALLOW_EXTRA,
)

RESPONSE_SCHEMA = vol.Schema(
    {
        vol.Required("error_code"): int,
        vol.Required("result"): {vol.Required("responseData"): str},
    },
    extra=vol.ALLOW_EXTRA,
)


def encode_command(method: str, payload: dict[str, Any]) -> str:
    """Encode an inner device command as the vendor's compact JSON string.

    Args:
        method: Lighting service method, e.g. "transition_light_state".
        payload: Method arguments.

    Returns:
        JSON string with no whitespace, key order preserved.

    """
    return json.dumps(
        {LIGHTING_SERVICE: {method: payload}},
        separators=(",", ":"),
        ensure_ascii=False,
    )


def build_passthrough_request(
    device_id: str, method: str, payload: dict[str, Any]
) -> dict[str, Any]:
    """Wrap an inner device command in the outer passthrough envelope."""
    return {
        "method": METHOD_PASSTHROUGH,
        "params": {
            "deviceId": device_id,
            "requestData": encode_command(method, payload),
        },
    }


def _raise_for_device_error(obj: dict[str, Any]) -> None:
    err_code = obj.get("err_code", 0)
    if err_code:
        error_message = obj.get("err_msg", f"Device error {err_code}")
        raise KasaCloudCommandError(error_message)


def unwrap_response(data: dict[str, Any], method: str) -> dict[str, Any]:
    """Extract the device reply for a method from a passthrough response.

    Args:
        data: Outer response body.
        method: Lighting service method the request was sent with.

    Returns:
        The object found under the lighting service namespace and method.

    Raises:
        KasaCloudDecodeError: If any layer of the envelope is malformed.
        KasaCloudCommandError: If the device replied with an error instead.

    """
    try:
        outer = RESPONSE_SCHEMA(data)
    except vol.Invalid as err:
        error_msg = f"Unexpected passthrough response: {err}"
        raise KasaCloudDecodeError(error_msg) from err

    try:
        inner = json.loads(outer["result"]["responseData"])
    except json.JSONDecodeError as err:
        error_msg = f"responseData is not valid JSON: {err}"
        raise KasaCloudDecodeError(error_msg) from err

    service = inner.get(LIGHTING_SERVICE) if isinstance(inner, dict) else None
    if not isinstance(service, dict):
        error_msg = f"responseData has no {LIGHTING_SERVICE} object"
        raise KasaCloudDecodeError(error_msg)

    reply = service.get(method)
    if not isinstance(reply, dict):
        _raise_for_device_error(service)
        error_msg = f"responseData has no {method} reply"
        raise KasaCloudDecodeError(error_msg)

    if "on_off" not in reply:
        _raise_for_device_error(reply)

    return reply


def parse_wire_state(reply: dict[str, Any]) -> WireLightState:
    """Parse a device reply into its powered-on or powered-off variant.

    Raises:
        KasaCloudDecodeError: If the on_off discriminator is missing or the
            reply does not validate against the matching branch.

    """
    if "on_off" not in reply:
        error_msg = "Light state is missing the on_off discriminator"
        raise KasaCloudDecodeError(error_msg)

    on_off = reply["on_off"]
    if on_off == 1:
        try:
            data = POWERED_ON_SCHEMA(reply)
        except vol.Invalid as err:
            error_msg = f"Powered-on light state is malformed: {err}"
            raise KasaCloudDecodeError(error_msg) from err
        return PoweredOn(
            mode=data["mode"],
            hue=data["hue"],
            saturation=data["saturation"],
            brightness=data["brightness"],
            color_temp=data["color_temp"],
            err_code=data["err_code"],
        )

    if on_off == 0:
        try:
            data = POWERED_OFF_SCHEMA(reply)
        except vol.Invalid as err:
            error_msg = f"Powered-off light state is malformed: {err}"
            raise KasaCloudDecodeError(error_msg) from err
        dft = data["dft_on_state"]
        return PoweredOff(
            dft_on_state=DefaultOnState(
                mode=dft["mode"],
                hue=dft["hue"],
                saturation=dft["saturation"],
                brightness=dft["brightness"],
                color_temp=dft["color_temp"],
            ),
            err_code=data["err_code"],
        )

    error_msg = f"Unknown on_off value: {on_off!r}"
    raise KasaCloudDecodeError(error_msg)


def parse_power_off_ack(reply: dict[str, Any]) -> int | None:
    """Return the err_code of a color-less power-off reply, else None.

    Some bulbs answer a power-off transition with only on_off and err_code.
    Replies that carry dft_on_state are full echoes and return None.
    """
    if "dft_on_state" in reply:
        return None
    try:
        data = POWER_OFF_ACK_SCHEMA(reply)
    except vol.Invalid:
        return None
    return data["err_code"]


def normalize(variant: WireLightState) -> LightState:
    """Collapse a wire variant into the canonical LightState."""
    if isinstance(variant, PoweredOff):
        dft = variant.dft_on_state
        return LightState(
            on_off=0,
            mode=dft.mode,
            hue=dft.hue,
            saturation=dft.saturation,
            brightness=dft.brightness,
            color_temp=dft.color_temp,
            err_code=variant.err_code,
        )

    return LightState(
        on_off=1,
        mode=variant.mode,
        hue=variant.hue,
        saturation=variant.saturation,
        brightness=variant.brightness,
        color_temp=variant.color_temp,
        err_code=variant.err_code,
    )


def decode_light_state(data: dict[str, Any], method: str) -> LightState:
    """Decode a passthrough response body into the canonical LightState."""
    state = normalize(parse_wire_state(unwrap_response(data, method)))
    _LOGGER.debug("Decoded %s reply: %s", method, state)
    return state


def encode_response(
    state: LightState, method: str, *, echo_colors: bool = True
) -> dict[str, Any]:
    """Build a passthrough response body in the vendor's shape for a state.

    Args:
        state: Canonical state to encode.
        method: Lighting service method the reply answers.
        echo_colors: If False, a powered-off state is encoded without
            dft_on_state, as some bulbs reply to a power-off transition.

    Returns:
        Outer response body, the inverse of decode_light_state.

    """
    if state.is_on:
        reply: dict[str, Any] = {**state.as_payload(), "err_code": state.err_code}
    elif echo_colors:
        dft = state.as_payload()
        dft.pop("on_off")
        reply = {"on_off": 0, "dft_on_state": dft, "err_code": state.err_code}
    else:
        reply = {"on_off": 0, "err_code": state.err_code}

    return {
        "error_code": 0,
        "result": {"responseData": encode_command(method, reply)},
    }
