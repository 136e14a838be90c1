"""Normalization of loosely-typed form values."""

from typing import Any


def clean_or_empty(value: Any) -> str:
    """Turn a submitted form value into a plain string.

    None, the literal string "undefined" and blank strings all become "".
    Integral floats lose their ".0" so numeric JSON values like 3.0 render
    as "3".

    Args:
        value: Raw value from the JSON body

    Returns:
        The stripped string form of the value, or "".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    if text == "undefined":
        return ""
    return text
