from collections.abc import Mapping
from typing import Any

from payment_gateways.exceptions import ConfigurationError

_MISSING = object()

TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def data_get(data: Mapping | None, key: str | None, default: Any = None) -> Any:
    """
    Read a value from nested mappings using a dotted key.

    ``data_get({"data": {"object": {"id": 1}}}, "data.object.id")`` returns 1.
    A key that exists verbatim (dots included) wins over the nested lookup.
    """
    if data is None:
        return default
    if key is None:
        return data
    if key in data:
        return data[key]

    current: Any = data
    for segment in key.split("."):
        if not isinstance(current, Mapping):
            return default
        current = current.get(segment, _MISSING)
        if current is _MISSING:
            return default
    return current


def deep_merge(base: Mapping, override: Mapping) -> dict:
    """Return a new dict with ``override`` merged recursively into ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def to_bool(value: Any, default: bool = False, name: str = "value") -> bool:
    """
    Read a flag that may come from an environment-driven settings file.

    ``"false"``, ``"0"``, ``"no"`` and ``"off"`` are false, ``None`` and
    ``""`` give ``default``.

    Raises:
        ConfigurationError: If the value is not a recognisable boolean.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if not normalized:
            return default
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
    msg = f"Invalid boolean for {name}: {value!r}"
    raise ConfigurationError(msg)
