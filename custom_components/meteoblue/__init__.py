import logging

import voluptuous as vol

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ConfigEntryNotReady, ServiceValidationError
import homeassistant.helpers.config_validation as cv

from .api.account import fetch_account_usage
from .const import ATTR_ENGAGED, CONF_API_KEY, DOMAIN, SERVICE_SET_ENGAGEMENT
from .coordinator import MeteoblueCoordinator
from .errors import AuthenticationError, FetchFailure, InvalidCommand

PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.SWITCH, Platform.WEATHER]
_LOGGER = logging.getLogger(__name__)

# Strict boolean: "yes", 1 and friends are rejected by the engine, not coerced here
SET_ENGAGEMENT_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_ENGAGED): object,
        vol.Optional("entry_id"): cv.string,
    }
)


async def _validate_credentials(api_key: str) -> str | None:
    """
    Check the API key against the account usage endpoint.

    Returns None when the key works, "invalid_auth" when Meteoblue rejects
    it and "cannot_connect" when the API cannot be reached.
    """
    try:
        await fetch_account_usage(api_key)
    except AuthenticationError as e:
        _LOGGER.warning("Meteoblue rejected the API key: %s", e)
        return "invalid_auth"
    except FetchFailure as e:
        _LOGGER.warning("Meteoblue API is not reachable: %s", e)
        return "cannot_connect"
    return None


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    error = await _validate_credentials(entry.data.get(CONF_API_KEY, ""))
    if error == "cannot_connect":
        raise ConfigEntryNotReady("Meteoblue API is not reachable")
    if error == "invalid_auth":
        raise ConfigEntryNotReady("Meteoblue rejected the configured API key credentials")

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    coordinator = MeteoblueCoordinator(hass, {**entry.data, **entry.options})
    await coordinator.async_config_entry_first_refresh()
    entry.runtime_data = coordinator

    _async_register_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


def _async_register_services(hass: HomeAssistant) -> None:
    if hass.services.has_service(DOMAIN, SERVICE_SET_ENGAGEMENT):
        return

    async def _handle_set_engagement(call: ServiceCall) -> None:
        entry_id = call.data.get("entry_id")
        coordinators = [
            entry.runtime_data
            for entry in hass.config_entries.async_entries(DOMAIN)
            if getattr(entry, "runtime_data", None) is not None
            and (entry_id is None or entry.entry_id == entry_id)
        ]
        if not coordinators:
            raise ServiceValidationError(f"No loaded Meteoblue entry matches {entry_id!r}")
        for coordinator in coordinators:
            try:
                coordinator.async_set_engagement(call.data[ATTR_ENGAGED])
            except InvalidCommand as e:
                raise ServiceValidationError(str(e)) from e

    hass.services.async_register(
        DOMAIN,
        SERVICE_SET_ENGAGEMENT,
        _handle_set_engagement,
        schema=SET_ENGAGEMENT_SCHEMA,
    )


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle config options update."""
    # Reload the integration when the options change.
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        await entry.runtime_data.async_shutdown()
    return unloaded
