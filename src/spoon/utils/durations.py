"""Human-friendly duration strings ("14d", "90m") in milliseconds."""

import re

_UNITS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
}

_PATTERN = re.compile(r'^(\d+)\s*(ms|s|m|h|d)$')


def parse_duration(value: str) -> int:
    """
    Parse a duration like ``14d`` or ``36h`` into milliseconds.

    Raises:
        ValueError: If the value is not ``<integer><unit>``
    """
    match = _PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid duration: {value!r} (expected e.g. 14d, 12h, 30m)")
    return int(match.group(1)) * _UNITS[match.group(2)]


def format_duration(ms: float) -> str:
    """Render milliseconds using the largest unit that fits."""
    if ms >= _UNITS["d"]:
        return f"{ms / _UNITS['d']:.1f}d"
    if ms >= _UNITS["h"]:
        return f"{ms / _UNITS['h']:.1f}h"
    if ms >= _UNITS["m"]:
        return f"{ms / _UNITS['m']:.1f}m"
    if ms >= _UNITS["s"]:
        return f"{ms / _UNITS['s']:.1f}s"
    return f"{int(ms)}ms"
