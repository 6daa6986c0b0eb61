"""Set up a Kasa Cloud Light entry from a Kasa account login."""

import logging
from typing import Any

import httpx
import voluptuous as vol
from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_EMAIL, CONF_PASSWORD
from homeassistant.helpers.httpx_client import get_async_client

from . import api
from .const import (
    CONF_DEVICE_NAME,
    DEFAULT_DEVICE_NAME,
    DOMAIN,
    ERROR_API_ERROR,
    ERROR_CANNOT_CONNECT,
    ERROR_INVALID_AUTH,
    ERROR_TIMEOUT,
    ERROR_UNKNOWN,
)

_LOGGER = logging.getLogger(__name__)

USER_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_EMAIL): str,
        vol.Required(CONF_PASSWORD): str,
        vol.Required(CONF_DEVICE_NAME, default=DEFAULT_DEVICE_NAME): str,
    }
)


class KasaCloudLightConfigFlow(ConfigFlow, domain=DOMAIN):
    """Ask for Kasa credentials and the model name of the bulb to drive."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Log in to the Kasa cloud and look up the bulb.

        One entry is created per Kasa account. A bulb that is not listed on
        the account yet does not block the entry; setup retries until it
        shows up.
        """
        errors: dict[str, str] = {}

        if user_input is not None:
            email = user_input[CONF_EMAIL]
            target_name = user_input[CONF_DEVICE_NAME]

            try:
                client = get_async_client(self.hass)
                session = await api.async_login(
                    client, email, user_input[CONF_PASSWORD]
                )
                devices = await api.async_get_devices(client, session)
            except api.KasaCloudAuthError as err:
                _LOGGER.warning("Kasa cloud rejected the login for %s: %s", email, err)
                errors["base"] = ERROR_INVALID_AUTH
            except httpx.ConnectError:
                _LOGGER.exception("Could not reach the Kasa cloud")
                errors["base"] = ERROR_CANNOT_CONNECT
            except httpx.TimeoutException:
                _LOGGER.exception("Kasa cloud did not answer in time")
                errors["base"] = ERROR_TIMEOUT
            except api.KasaCloudError:
                _LOGGER.exception("Kasa cloud returned an unusable reply")
                errors["base"] = ERROR_API_ERROR
            except Exception:
                _LOGGER.exception("Unexpected error while setting up %s", email)
                errors["base"] = ERROR_UNKNOWN
            else:
                if api.select_target(devices, target_name) is None:
                    _LOGGER.warning(
                        "No %s bulb on this account yet (%d devices listed)",
                        target_name,
                        len(devices),
                    )

                await self.async_set_unique_id(email.lower())
                self._abort_if_unique_id_configured()

                return self.async_create_entry(
                    title=f"Kasa Cloud Light ({email})",
                    data={
                        CONF_EMAIL: email,
                        CONF_PASSWORD: user_input[CONF_PASSWORD],
                        CONF_DEVICE_NAME: target_name,
                    },
                )

        return self.async_show_form(
            step_id="user",
            data_schema=USER_SCHEMA,
            errors=errors,
        )
