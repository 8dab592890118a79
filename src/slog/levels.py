"""Logging levels.

Levels form a fixed, totally ordered set. An entry at level L is emitted
when the current threshold is greater than or equal to L, so NOTHING
suppresses everything and EVERYTHING allows everything.
"""

from __future__ import annotations

from enum import IntEnum

from slog.exceptions import ConfigurationError


class Level(IntEnum):
    """Ordered logging level.

    Attributes:
        NOTHING: Suppress all logging. Always the lowest value.
        ERR: Error level logging.
        WARN: Warning level logging.
        INFO: Information level logging.
        EVERYTHING: Allow all logging. Always the highest value.

    """

    NOTHING = 0
    ERR = 1
    WARN = 2
    INFO = 3
    EVERYTHING = 4


_ALIASES = {
    "none": Level.NOTHING,
    "off": Level.NOTHING,
    "error": Level.ERR,
    "warning": Level.WARN,
    "all": Level.EVERYTHING,
}


def parse_level(value: str | int | Level) -> Level:
    """Convert a level name, number, or member to a Level.

    Names are case-insensitive and accept a few common aliases
    (``error``, ``warning``, ``off``, ``all``).

    Args:
        value: Level member, integer value, or name.

    Returns:
        The matching Level.

    Raises:
        ConfigurationError: If the value does not name a level.

    """
    if isinstance(value, Level):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Level(value)
        except ValueError as e:
            msg = f"unknown level number {value}"
            raise ConfigurationError(msg, target="level") from e
    if isinstance(value, str):
        name = value.strip()
        if name.lstrip("-").isdigit():
            return parse_level(int(name))
        member = Level.__members__.get(name.upper())
        if member is not None:
            return member
        alias = _ALIASES.get(name.lower())
        if alias is not None:
            return alias
    msg = f"unknown level {value!r}"
    raise ConfigurationError(msg, target="level")
