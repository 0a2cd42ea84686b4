"""
ZipSig Configuration
Network, retry, password and worker settings, layered as
DEFAULTS <- zipsig.config.json (or $ZIPSIG_CONFIG) <- explicit set().
"""
import copy
import json
import os
from pathlib import Path
from typing import Any, Optional

from .utils.logger import logger

CONFIG_ENV_VAR = "ZIPSIG_CONFIG"
CONFIG_FILENAME = "zipsig.config.json"

DEFAULTS = {
    "time": {
        "url": "https://worldtimeapi.org/api/timezone/Etc/UTC",
        "timeout_seconds": 8.0,
        "base_delay": 2.0,
        "growth": 1.5,
        "max_delay": 30.0
    },
    "encryption": {
        "min_password_length": 8,
        "generated_password_length": 16
    },
    "workers": {
        "max_workers": None  # None = auto detect
    }
}

# Values that must be positive numbers when present
_POSITIVE = {
    ("time", "timeout_seconds"),
    ("time", "base_delay"),
    ("time", "growth"),
    ("time", "max_delay"),
    ("encryption", "min_password_length"),
    ("encryption", "generated_password_length"),
}


def _default_path() -> Path:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path(__file__).parent.parent / CONFIG_FILENAME


class ZipSigConfig:
    def __init__(self, config_path: Optional[str] = None):
        self._config = copy.deepcopy(DEFAULTS)
        self.config_path = Path(config_path) if config_path else _default_path()

        if not self.config_path.is_file():
            logger.debug(f"No config at {self.config_path}, using defaults")
            return

        try:
            overrides = json.loads(self.config_path.read_text(encoding='utf-8'))
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {self.config_path}: {e}. Using defaults")
            return
        except OSError as e:
            logger.error(f"Cannot read {self.config_path}: {e}. Using defaults")
            return

        if not isinstance(overrides, dict):
            logger.error(f"{self.config_path} must hold a JSON object. Using defaults")
            return

        merged = copy.deepcopy(DEFAULTS)
        self._deep_merge(merged, overrides)
        rejected = [".".join(k) for k in _POSITIVE if not self._is_positive(merged, k)]
        if rejected:
            logger.error(f"Ignoring {self.config_path}: non-positive {', '.join(sorted(rejected))}")
            return

        self._config = merged
        logger.debug(f"Loaded config from {self.config_path}")

    def get(self, *keys, default=None) -> Any:
        """
        Nested lookup, e.g. config.get('time', 'max_delay').
        A single dotted key works too: config.get('time.max_delay').
        """
        if len(keys) == 1 and '.' in keys[0]:
            keys = tuple(keys[0].split('.'))
        node = self._config
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def set(self, *keys_and_value):
        """config.set('encryption', 'min_password_length', 12)"""
        if len(keys_and_value) < 2:
            raise ValueError("set() needs at least one key and a value")
        *path, value = keys_and_value
        node = self._config
        for key in path[:-1]:
            node = node.setdefault(key, {})
        node[path[-1]] = value

    def save(self, path: Optional[str] = None):
        target = Path(path) if path else self.config_path
        target.write_text(json.dumps(self._config, indent=2), encoding='utf-8')
        logger.info(f"Config saved to {target}")

    # ── Convenience properties ─────────────────────────────────────────────

    @property
    def time_url(self) -> str:
        return self.get('time', 'url')

    @property
    def time_timeout(self) -> float:
        return self.get('time', 'timeout_seconds')

    @property
    def retry_base_delay(self) -> float:
        return self.get('time', 'base_delay')

    @property
    def retry_growth(self) -> float:
        return self.get('time', 'growth')

    @property
    def retry_max_delay(self) -> float:
        return self.get('time', 'max_delay')

    @property
    def min_password_length(self) -> int:
        return self.get('encryption', 'min_password_length')

    @property
    def generated_password_length(self) -> int:
        return self.get('encryption', 'generated_password_length')

    @property
    def max_workers(self) -> Optional[int]:
        return self.get('workers', 'max_workers')

    # ── Helpers ────────────────────────────────────────────────────────────

    @staticmethod
    def _is_positive(tree: dict, key_path) -> bool:
        section, name = key_path
        value = tree.get(section, {}).get(name)
        return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0

    @classmethod
    def _deep_merge(cls, base: dict, override: dict):
        for key, value in override.items():
            current = base.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                cls._deep_merge(current, value)
            else:
                base[key] = value


# Singleton, import this everywhere
config = ZipSigConfig()

__all__ = ["ZipSigConfig", "config", "DEFAULTS", "CONFIG_ENV_VAR"]
