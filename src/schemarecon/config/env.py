"""Environment variable loaders for configuration."""

from __future__ import annotations

import os

from .errors import ConfigurationError


def env_str(name: str) -> str | None:
    """Return a stripped variable, treating blank values as unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def env_float(name: str, *, minimum: float | None = None, maximum: float | None = None) -> float | None:
    value = env_str(name)
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc
    if (minimum is not None and number < minimum) or (maximum is not None and number > maximum):
        raise ConfigurationError(f"{name} must be within [{minimum}, {maximum}], got {number}")
    return number
