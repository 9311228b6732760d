#!/usr/bin/env python3

"""Default settings for the command-line converter."""

import os

ENV_PREFIX = "DWARF_TO_JSON_"

DEFAULT_CONFIG = {
    # Input and output
    "INPUT": "",
    "OUTPUT": "",

    # Conversion options
    "X_SCOPES": False,

    # Logging
    "VERBOSE": False,
    "LOG_DIR": "",
}


def get_config() -> dict:
    """Get configuration defaults with environment variable overrides.

    Each key can be overridden by ``DWARF_TO_JSON_<KEY>``.

    Returns:
        Configuration dictionary
    """
    config = DEFAULT_CONFIG.copy()

    for key in config:
        env_value = os.getenv(f"{ENV_PREFIX}{key}")
        if env_value is None:
            continue
        if isinstance(config[key], bool):
            config[key] = env_value.lower() in ("true", "1", "yes", "on")
        else:
            config[key] = env_value

    return config
