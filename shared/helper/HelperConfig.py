"""Environment-backed configuration helper for vectdb."""

import logging
import os
from typing import Any

_TRUE_VALUES = ("true", "1", "yes", "on")


class HelperConfig:
    """Reads settings from environment variables and hands out the app logger.

    Keys are case-insensitive. Values in `overrides` shadow the process
    environment, which lets entry points and tests pin settings without
    touching os.environ. Blank values count as unset.
    """

    def __init__(self, logger: logging.Logger, overrides: dict[str, str] | None = None) -> None:
        self._logger = logger
        self._overrides = {k.upper(): v for k, v in (overrides or {}).items()}

    def _read_raw(self, key: str) -> str | None:
        key = key.upper()
        raw = self._overrides[key] if key in self._overrides else os.getenv(key)
        if raw is None:
            return None
        return str(raw).strip() or None

    def _resolve(self, key: str, default: Any) -> tuple[str | None, Any]:
        """Return (raw, default), raising if both are missing."""
        raw = self._read_raw(key)
        if raw is None and default is None:
            raise ValueError(f"Environment variable '{key.upper()}' is not set.")
        return raw, default

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string variable.

        Raises:
            ValueError: If unset and no default is given.
        """
        raw, default = self._resolve(key, default)
        return raw if raw is not None else default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a number; values with a decimal point become floats, others ints.

        Raises:
            ValueError: If unset without default, or not a number.
        """
        raw, default = self._resolve(key, default)
        if raw is None:
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a flag; "true", "1", "yes" and "on" are truthy, anything else is False.

        Raises:
            ValueError: If unset and no default is given.
        """
        raw, default = self._resolve(key, default)
        if raw is None:
            return default
        return raw.lower() in _TRUE_VALUES

    def get_logger(self) -> logging.Logger:
        return self._logger
