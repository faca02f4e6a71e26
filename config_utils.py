"""
Configuration Utilities for the Spending Dashboard
Load and save the small JSON config that controls where state is stored and
how currency is displayed.
"""

import json
import logging
import os
from typing import Any, Dict

logger = logging.getLogger(__name__)

CONFIG_FILE = 'dashboard_config.json'


def get_default_dashboard_config() -> Dict[str, Any]:
    """Get default dashboard configuration"""
    return {
        'state_dir': '.dashboard_data',
        'currency_symbol': '$',
    }


def load_dashboard_config(path: str = CONFIG_FILE) -> Dict[str, Any]:
    """Load dashboard configuration, filling any missing keys from defaults"""
    config = get_default_dashboard_config()
    try:
        if os.path.exists(path):
            with open(path, 'r') as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                config.update({key: value for key, value in loaded.items() if key in config})
                logger.debug("Loaded %d config keys from %s", len(loaded), path)
            else:
                logger.warning("Ignoring %s: expected a JSON object", path)
    except Exception as e:
        logger.warning("Could not load %s: %s", path, e)
    return config


def save_dashboard_config(config: Dict[str, Any], path: str = CONFIG_FILE) -> None:
    """Save dashboard configuration to JSON"""
    try:
        with open(path, 'w') as f:
            json.dump(config, f, indent=2)
    except Exception as e:
        logger.warning("Could not save %s: %s", path, e)
