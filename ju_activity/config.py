"""Configuration for the JU activity client."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

import voluptuous as vol
from dotenv import load_dotenv

from .const import DEFAULT_API_URL, DEFAULT_STORAGE_DIR, NOTIFICATIONS_INTERVAL, STORAGE_FILENAME
from .errors import ConfigurationError

_LOGGER = logging.getLogger(__name__)

# Environment variable for every config key
ENV_VARS = {
    'api_url': 'JU_ACTIVITY_API_URL',
    'storage_path': 'JU_ACTIVITY_STORAGE_PATH',
    'notifications_interval': 'JU_ACTIVITY_NOTIFICATIONS_INTERVAL',
    'request_timeout': 'JU_ACTIVITY_REQUEST_TIMEOUT',
}

url_validator = vol.All(str, vol.Length(min=1), vol.Match(r"^https?://\S+$"), lambda url: url.rstrip('/'))
interval = vol.All(vol.Coerce(int), vol.Range(min=1))
positive_timeout = vol.Any(None, vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False)))

CONFIG_SCHEMA = vol.Schema(
            {
                vol.Required('api_url', default=DEFAULT_API_URL): url_validator,
                vol.Required('storage_path', default=f"{DEFAULT_STORAGE_DIR}/{STORAGE_FILENAME}"): str,
                vol.Required('notifications_interval', default=NOTIFICATIONS_INTERVAL): interval,
                vol.Optional('request_timeout', default=None): positive_timeout,
            }
        )


def load_config(overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the validated configuration.

    Precedence: explicit overrides, then environment variables (a local .env
    file is loaded first), then schema defaults.
    """
    load_dotenv()

    raw: Dict[str, Any] = {}
    for key, env_var in ENV_VARS.items():
        value = os.environ.get(env_var)
        # Empty variables count as unset
        if value:
            raw[key] = value
    if overrides:
        raw.update(overrides)

    try:
        config = CONFIG_SCHEMA(raw)
    except vol.Invalid as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    _LOGGER.debug("Using backend at %s", config['api_url'])
    return config
