#!/usr/bin/env python3

"""Default analysis settings with environment variable overrides."""

import os

# Default configuration values
DEFAULT_CONFIG = {
    # Pointer/long width of the target (4 or 8)
    "TARGET_ALIGNMENT": 8,

    # Upper bound on fixed-point resolution passes
    "MAX_PASSES": 3,

    # JSON object of extra type sizes, e.g. '{"int": 2, "long": 4}'
    "CUSTOM_TYPE_SIZES": "{}",

    # Log directory used by the command line tool
    "LOG_DIR": "logs",
}

ENV_PREFIX = "CSTRUCT_"


def get_config() -> dict:
    """Get configuration with environment variable overrides.

    Every key can be overridden by ``CSTRUCT_<KEY>``. Values that cannot be
    converted to the default's type are ignored.

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
        elif isinstance(config[key], int):
            try:
                config[key] = int(env_value)
            except ValueError:
                pass
        else:
            config[key] = env_value

    return config
