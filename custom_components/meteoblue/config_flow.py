"""Config flow for Meteoblue Marine Forecast integration."""
from __future__ import annotations
import logging
import uuid
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers import selector

from . import _validate_credentials
from .const import (
    CONF_ALTITUDE,
    CONF_API_KEY,
    CONF_ENABLE_AUTO_MOVING_FORECAST,
    CONF_ENABLE_POSITION_SUBSCRIPTION,
    CONF_ENTRY_NAME,
    CONF_FORECAST_INTERVAL,
    CONF_HEADING_ENTITY,
    CONF_MAX_FORECAST_DAYS,
    CONF_MAX_FORECAST_HOURS,
    CONF_MOVING_SPEED_THRESHOLD,
    CONF_POSITION_ENTITY,
    CONF_SOG_ENTITY,
    DEFAULT_ALTITUDE,
    DEFAULT_FORECAST_INTERVAL,
    DEFAULT_MAX_FORECAST_DAYS,
    DEFAULT_MAX_FORECAST_HOURS,
    DEFAULT_MOVING_SPEED_THRESHOLD,
    DOMAIN,
    MIN_FORECAST_INTERVAL,
    PACKAGE_DEFAULTS,
    PACKAGE_TOGGLES,
)

_LOGGER = logging.getLogger(__name__)

interval_minutes = vol.All(vol.Coerce(int), vol.Range(min=MIN_FORECAST_INTERVAL))
forecast_hours = vol.All(vol.Coerce(int), vol.Range(min=1, max=168))
forecast_days = vol.All(vol.Coerce(int), vol.Range(min=1, max=14))
speed_threshold = vol.All(vol.Coerce(float), vol.Range(min=0.1, max=10))

ENTITY_FIELDS = (CONF_POSITION_ENTITY, CONF_HEADING_ENTITY, CONF_SOG_ENTITY)

DEFAULTS: Dict[str, Any] = {
    CONF_ENTRY_NAME: "Meteoblue Marine Forecast",
    CONF_API_KEY: "",
    CONF_FORECAST_INTERVAL: DEFAULT_FORECAST_INTERVAL,
    CONF_ALTITUDE: DEFAULT_ALTITUDE,
    CONF_ENABLE_POSITION_SUBSCRIPTION: True,
    CONF_MAX_FORECAST_HOURS: DEFAULT_MAX_FORECAST_HOURS,
    CONF_MAX_FORECAST_DAYS: DEFAULT_MAX_FORECAST_DAYS,
    **PACKAGE_DEFAULTS,
    CONF_ENABLE_AUTO_MOVING_FORECAST: True,
    CONF_MOVING_SPEED_THRESHOLD: DEFAULT_MOVING_SPEED_THRESHOLD,
}


def build_schema(defaults: Dict[str, Any]) -> vol.Schema:
    """Form schema for both the user step and the options step."""
    fields: Dict[Any, Any] = {
        vol.Required(CONF_ENTRY_NAME, default=defaults[CONF_ENTRY_NAME]): cv.string,
        vol.Required(CONF_API_KEY, default=defaults[CONF_API_KEY]): cv.string,
    }
    for key in ENTITY_FIELDS:
        fields[
            vol.Optional(key, description={"suggested_value": defaults.get(key)})
        ] = selector.EntitySelector()
    fields.update({
        vol.Required(CONF_FORECAST_INTERVAL, default=defaults[CONF_FORECAST_INTERVAL]): interval_minutes,
        vol.Required(CONF_ALTITUDE, default=defaults[CONF_ALTITUDE]): vol.Coerce(float),
        vol.Required(
            CONF_ENABLE_POSITION_SUBSCRIPTION, default=defaults[CONF_ENABLE_POSITION_SUBSCRIPTION]
        ): cv.boolean,
        vol.Required(CONF_MAX_FORECAST_HOURS, default=defaults[CONF_MAX_FORECAST_HOURS]): forecast_hours,
        vol.Required(CONF_MAX_FORECAST_DAYS, default=defaults[CONF_MAX_FORECAST_DAYS]): forecast_days,
    })
    for key in PACKAGE_TOGGLES:
        fields[vol.Required(key, default=defaults[key])] = cv.boolean
    fields.update({
        vol.Required(
            CONF_ENABLE_AUTO_MOVING_FORECAST, default=defaults[CONF_ENABLE_AUTO_MOVING_FORECAST]
        ): cv.boolean,
        vol.Required(
            CONF_MOVING_SPEED_THRESHOLD, default=defaults[CONF_MOVING_SPEED_THRESHOLD]
        ): speed_threshold,
    })
    return vol.Schema(fields)


CONFIG_SCHEMA = build_schema(DEFAULTS)


def validate_input(user_input: Dict[str, Any]) -> Dict[str, str]:
    """Field checks that need no network; returns the errors dict."""
    errors: Dict[str, str] = {}
    # If entry_name is null or empty string, add error
    if not user_input.get(CONF_ENTRY_NAME):
        errors['base'] = 'entry_name_required'
    # If api_key is null or empty string, add error
    elif not user_input.get(CONF_API_KEY):
        errors['base'] = 'api_key_required'
    # At least one package must be requested
    elif not any(user_input.get(key, PACKAGE_DEFAULTS[key]) for key in PACKAGE_TOGGLES):
        errors['base'] = 'no_packages_enabled'
    return errors


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = dict(user_input)
            # Create new guid for the entry
            self.data['guid'] = str(uuid.uuid4())
            errors = validate_input(self.data)
            if not errors:
                credentials_error = await _validate_credentials(self.data[CONF_API_KEY])
                if credentials_error:
                    errors['base'] = credentials_error
            if not errors:
                return self.async_create_entry(title=f"{self.data[CONF_ENTRY_NAME]}", data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handles options flow for the component."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    def _current_values(self) -> Dict[str, Any]:
        """Defaults, overridden by entry data, overridden by entry options."""
        values = dict(DEFAULTS)
        values.update(self._entry.data)
        values.update(self._entry.options)
        return values

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}
        current = self._current_values()

        if user_input is not None:
            errors = validate_input(user_input)
            if not errors and user_input[CONF_API_KEY] != current.get(CONF_API_KEY):
                credentials_error = await _validate_credentials(user_input[CONF_API_KEY])
                if credentials_error:
                    errors['base'] = credentials_error
            if not errors:
                new_data = {'guid': self._entry.data.get('guid', str(uuid.uuid4()))}
                new_data.update(user_input)

                # Rename the entry in the UI
                self.hass.config_entries.async_update_entry(
                    self._entry,
                    data=new_data,
                    title=new_data[CONF_ENTRY_NAME],
                )
                return self.async_create_entry(title=f"{new_data[CONF_ENTRY_NAME]}", data=new_data)

        return self.async_show_form(step_id="init", data_schema=build_schema(current), errors=errors)
