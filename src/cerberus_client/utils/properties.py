"""Process-wide property store.

Properties are named settings shared by everything running in the process,
such as ``cerberus.token`` or ``cerberus.addr``. They can be set from code
or from ``-D key=value`` options on the command line.
"""

import threading

_lock = threading.Lock()
_properties: dict[str, str] = {}


def set_property(name: str, value: str) -> None:
    """Set a process property.

    Args:
        name: Property name
        value: Property value
    """
    with _lock:
        _properties[name] = value


def get_property(name: str, default: str | None = None) -> str | None:
    """Get a process property.

    Args:
        name: Property name
        default: Value returned when the property is unset

    Returns:
        Property value or ``default``
    """
    with _lock:
        return _properties.get(name, default)


def clear_property(name: str) -> None:
    """Remove a process property if it is set."""
    with _lock:
        _properties.pop(name, None)


def parse_property(definition: str) -> tuple[str, str]:
    """Split a ``key=value`` definition.

    Raises:
        ValueError: If the definition has no ``=`` or an empty key
    """
    name, sep, value = definition.partition("=")
    if not sep or not name.strip():
        raise ValueError(f"Invalid property definition: {definition!r}")
    return name.strip(), value
