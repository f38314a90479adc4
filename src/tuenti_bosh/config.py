"""Configuration: YAML + env overlay."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from tuenti_bosh.core.constants import (
    DEFAULT_HOLD,
    DEFAULT_LANG,
    DEFAULT_MAX_ERRORS,
    DEFAULT_WAIT,
    DEFAULT_WINDOW,
)
from tuenti_bosh.core.errors import TuentiConfigurationError

# Env keys that override config (loaded once per reload)
_ENV_OVERRIDE_KEYS = (
    "TUENTI_BOSH_SERVICE",
    "TUENTI_BOSH_WAIT",
    "TUENTI_BOSH_HOLD",
)

_INT_KEYS = ("wait", "hold", "window", "max_errors")


def _parse_int(key: str, raw: Any) -> int:
    """int from an int or digit string; bools and floats are rejected, not truncated."""
    try:
        if isinstance(raw, (bool, float)):
            raise TypeError(f"expected integer, got {type(raw).__name__}")
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise TuentiConfigurationError(
            f"bosh.{key} must be an integer",
            code="invalid_int",
            details={"key": key, "value": raw},
            original_error=exc,
        ) from exc


def _load_env_overrides() -> dict[str, str]:
    return {k: os.environ.get(k, "") for k in _ENV_OVERRIDE_KEYS}


def load_config(path: str | Path) -> dict[str, Any]:
    """Load config from YAML file. Use SafeLoader. Returns raw dict."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """Load config from YAML after loading .env via python-dotenv (cwd)."""
    from dotenv import load_dotenv

    load_dotenv()
    return load_config(path)


class Config:
    """Config accessor: dotted get() plus typed BOSH tuning properties.

    Keys live under the optional ``bosh`` section::

        bosh:
          service: https://xmpp.example.com/http-bind/
          wait: 60
          hold: 1
          window: 5
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}
        self._env: dict[str, str] = _load_env_overrides()

    def reload(self, data: dict[str, Any], *, validate: bool = True) -> None:
        """Replace config data and re-read env overrides."""
        self._data = data or {}
        self._env = _load_env_overrides()
        if validate:
            self._validate()
        logger.debug("Config reloaded: wait={} hold={} window={}", self.wait, self.hold, self.window)

    def _validate(self) -> None:
        """Raise TuentiConfigurationError for non-positive or non-integer tuning values."""
        section = self._data.get("bosh")
        if section is not None and not isinstance(section, dict):
            raise TuentiConfigurationError(
                "bosh must be a mapping",
                code="invalid_bosh_section",
                details={"type": type(section).__name__},
            )
        for key in _INT_KEYS:
            raw = self._raw_int(key)
            if raw is None:
                continue
            value = _parse_int(key, raw)
            if value < 0 or (value == 0 and key != "wait"):
                raise TuentiConfigurationError(
                    f"bosh.{key} out of range",
                    code="out_of_range",
                    details={"key": key, "value": value},
                )

    def _raw_int(self, key: str) -> Any:
        env = self._env.get(f"TUENTI_BOSH_{key.upper()}")
        if env:
            return env
        return self.get(f"bosh.{key}")

    def _int(self, key: str, default: int) -> int:
        raw = self._raw_int(key)
        return default if raw is None else _parse_int(key, raw)

    @property
    def raw(self) -> dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by dot-separated path (e.g. 'bosh.wait')."""
        parts = key.split(".")
        obj: Any = self._data
        for part in parts:
            if isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    @property
    def bosh_service(self) -> str | None:
        """HTTP-bind endpoint URL; env TUENTI_BOSH_SERVICE wins."""
        return self._env.get("TUENTI_BOSH_SERVICE") or self.get("bosh.service")

    @property
    def wait(self) -> int:
        """Seconds the server may hold a request before answering empty."""
        return self._int("wait", DEFAULT_WAIT)

    @property
    def hold(self) -> int:
        """Requests the server may hold open at once."""
        return self._int("hold", DEFAULT_HOLD)

    @property
    def window(self) -> int:
        return self._int("window", DEFAULT_WINDOW)

    @property
    def max_errors(self) -> int:
        """Transport failures tolerated before CONNFAIL."""
        return self._int("max_errors", DEFAULT_MAX_ERRORS)

    @property
    def lang(self) -> str:
        return str(self.get("bosh.lang", DEFAULT_LANG))


# Global config instance (set by __main__)
cfg: Config = Config({})
