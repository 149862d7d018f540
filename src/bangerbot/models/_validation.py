"""Shared validation helpers for frozen dataclass models.

Private module -- not part of the public API. Used by ``__post_init__``
methods in sibling model modules to enforce runtime type constraints on
data that arrives from relays.
"""

from __future__ import annotations

import string
from typing import Any


_HEX_DIGITS = frozenset(string.hexdigits.lower())
HEX_KEY_LENGTH: int = 64


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_int(value: Any, name: str, *, minimum: int = 0, maximum: int | None = None) -> None:
    """Raise if *value* is not an ``int`` inside ``[minimum, maximum]`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValueError(f"{name} must be <= {maximum}")


def validate_timestamp(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    validate_int(value, name, minimum=0)


def validate_hex_key(value: Any, name: str) -> None:
    """Raise if *value* is not a 64-character lowercase hex string.

    Event ids and public keys share this shape on the wire.
    """
    validate_instance(value, str, name)
    if len(value) != HEX_KEY_LENGTH:
        raise ValueError(f"{name} must be {HEX_KEY_LENGTH} hex characters, got {len(value)}")
    if not set(value) <= _HEX_DIGITS:
        raise ValueError(f"{name} must be lowercase hex")


def is_hex_key(value: Any) -> bool:
    """Return ``True`` if *value* passes [validate_hex_key][bangerbot.models._validation.validate_hex_key]."""
    try:
        validate_hex_key(value, "value")
    except (TypeError, ValueError):
        return False
    return True
