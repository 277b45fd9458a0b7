"""
Central configuration for automark.

Config file lookup (first existing file wins):
    1. $AUTOMARK_CONFIG
    2. /etc/automark.conf
    3. ~/.config/automark.conf

Without any file the defaults below apply.

File format (one setting per line):
    keep=openssh-server, vim
    keep=firmware-linux
    lock_file=/run/automark.lock
    # Comments start with #

keep may be repeated; its values accumulate. Command settings (dpkg_query,
apt_mark, apt_get) replace the program name used for each tool.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "AUTOMARK_CONFIG"
SYSTEM_CONFIG_PATH = Path("/etc/automark.conf")
USER_CONFIG_PATH = Path("~/.config/automark.conf")

DEFAULT_LOCK_FILE = Path("/run/automark.lock")

_KEEP_SEPARATOR = re.compile(r'[,\s]+')

# Cache for loaded config (avoid re-reading the file)
_cached_config: Optional['AutomarkConfig'] = None


@dataclass
class AutomarkConfig:
    """Settings for one automark run."""
    keep: Set[str] = field(default_factory=set)
    lock_file: Path = DEFAULT_LOCK_FILE
    dpkg_query: str = "dpkg-query"
    apt_mark: str = "apt-mark"
    apt_get: str = "apt-get"
    loaded_from: Optional[Path] = None


def get_config_locations() -> List[Path]:
    """Return config file candidates in lookup order."""
    locations = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        locations.append(Path(env_path).expanduser())
    locations.append(SYSTEM_CONFIG_PATH)
    locations.append(USER_CONFIG_PATH.expanduser())
    return locations


def _read_config_file(path: Path) -> Optional[List[tuple]]:
    """Read key=value pairs from a config file.

    Returns:
        List of (key, value) in file order, or None if the file can't be read
    """
    pairs = []
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, value = line.split('=', 1)
                    pairs.append((key.strip(), value.strip()))
                else:
                    logger.debug(f"{path}: ignoring line without '=': {line}")
    except (OSError, IOError):
        return None

    return pairs


def parse_keep_list(value: str) -> Set[str]:
    """Split a keep value on commas and whitespace."""
    return {name for name in _KEEP_SEPARATOR.split(value) if name}


def load_config(path: Optional[Path] = None) -> AutomarkConfig:
    """Load configuration.

    Args:
        path: Explicit config file; must exist. If None, the standard
            locations are searched and the result is cached.

    Returns:
        AutomarkConfig

    Raises:
        FileNotFoundError: If an explicit path can't be read
    """
    global _cached_config

    if path is not None:
        pairs = _read_config_file(Path(path))
        if pairs is None:
            raise FileNotFoundError(f"Cannot read config file: {path}")
        return _build_config(pairs, Path(path))

    if _cached_config is not None:
        return _cached_config

    for location in get_config_locations():
        if not location.is_file():
            continue
        pairs = _read_config_file(location)
        if pairs is not None:
            _cached_config = _build_config(pairs, location)
            return _cached_config

    logger.debug("No config file found, using defaults")
    _cached_config = AutomarkConfig()
    return _cached_config


def _build_config(pairs: List[tuple], source: Path) -> AutomarkConfig:
    config = AutomarkConfig(loaded_from=source)
    for key, value in pairs:
        if key == 'keep':
            config.keep |= parse_keep_list(value)
        elif key == 'lock_file':
            config.lock_file = Path(value).expanduser()
        elif key in ('dpkg_query', 'apt_mark', 'apt_get'):
            if value:
                setattr(config, key, value)
        else:
            logger.warning(f"{source}: unknown setting '{key}' ignored")
    logger.debug(f"Loaded config from {source} ({len(config.keep)} kept package(s))")
    return config


def reset_cache():
    """Forget the cached configuration."""
    global _cached_config
    _cached_config = None
