"""Human-readable bandwidth specs ("10m", "1G", "64k", "1544000") to bits/second."""

import logging
import re

from ifbw.errors import ConfigurationError

logger = logging.getLogger(__name__)

_SPEC_RE = re.compile(r"^(\d+)(\D*)$")

MULTIPLIERS = {
    "g": 1000 ** 3,
    "m": 1000 ** 2,
    "k": 1000,
}


def parse_speed(spec: str) -> int:
    """
    Convert a speed spec into bits per second.

    The suffix is optional and case-insensitive: g, m or k for gigabits,
    megabits or kilobits. Without a suffix the number is already bits/s.
    """
    text = (spec or "").strip()
    match = _SPEC_RE.match(text)
    if not match:
        raise ConfigurationError(f"Invalid speed {spec!r}!")

    number, mult = int(match.group(1)), match.group(2)

    if not mult:
        logger.debug("No multiplier, returning speed %d", number)
        return number

    if len(mult) != 1:
        raise ConfigurationError(f"Invalid speed {spec!r}!")

    factor = MULTIPLIERS.get(mult.lower())
    if factor is None:
        raise ConfigurationError(
            f"Invalid multiplier in speed spec {spec!r}, valid labels are g, k, and m"
        )

    bps = number * factor
    logger.debug("Returning max speed %d bits per second", bps)
    return bps
