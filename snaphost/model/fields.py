from __future__ import annotations

from typing import Any, Mapping


def cast_field(value: Any, type_name: str) -> Any:
    """
    Strictly cast one decoded JSON value to the declared field type.

    JSON booleans are never accepted as numbers, and JSON numbers are
    accepted as booleans only when they are 0/1.
    """
    if type_name == "str":
        if not isinstance(value, str):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        return value

    if type_name == "int":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        if isinstance(value, float) and not value.is_integer():
            raise TypeError(f"Expected int, got non-integral {value!r}")
        return int(value)

    if type_name == "float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Expected float, got {type(value).__name__}")
        return float(value)

    if type_name == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise TypeError(f"Expected bool (or 0/1), got {type(value).__name__}")

    raise TypeError(f"Unknown field type '{type_name}'")


_ZERO = {"str": "", "int": 0, "float": 0.0, "bool": False}


def read_field(obj: Mapping[str, Any], name: str, type_name: str) -> Any:
    """
    Read `name` from a decoded JSON object. Missing or null fields yield
    the type's zero value; present fields must have the right type.
    """
    value = obj.get(name)
    if value is None:
        return _ZERO[type_name]
    try:
        return cast_field(value, type_name)
    except TypeError as e:
        raise TypeError(f"field '{name}': {e}") from None
