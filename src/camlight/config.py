"""
Settings loading for camlight
Reads user settings from a JSON file following the XDG Base Directory standard
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from camlight.core.settings_schema import AppSettings, with_defaults

logger = logging.getLogger(__name__)


def settings_path() -> Path:
    """Get settings file path following XDG standards"""
    # Use XDG_CONFIG_HOME if set, otherwise default to ~/.config
    config_home = os.environ.get('XDG_CONFIG_HOME')
    if config_home:
        config_dir = Path(config_home) / 'camlight'
    else:
        config_dir = Path.home() / '.config' / 'camlight'
    return config_dir / 'settings.json'


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """Load settings from file, return defaults if the file is missing or invalid"""
    path = Path(path) if path is not None else settings_path()
    if not path.exists():
        return with_defaults({})

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Error loading settings from %s: %s", path, e)
        return with_defaults({})

    if not isinstance(data, dict):
        logger.warning("Invalid settings structure in %s, using defaults", path)
        return with_defaults({})
    return with_defaults(data)
