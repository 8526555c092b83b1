#!/usr/bin/env python3
"""
Utility Functions
Parsing and naming helpers shared by the response interpreter and registries
"""

import logging
import re
import sys
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

# Patterns are applied with fullmatch. Sign is mandatory, every unit group is
# optional but keeps this order
DURATION_RE = re.compile(r"([+-])(?:([0-9]+)D)?(?:([0-9]+)h)?(?:([0-9]+)m)?(?:([0-9]+)s)?")
DURATION_UNITS = (86400, 3600, 60, 1)

FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
INT_RE = re.compile(r"[+-]?[0-9]+")

ZERO_STATES = ["pending", "running", "frozen"]
ABSENT_STATES = {"not scheduled", "-"}

SANITIZED_CHARS = "- ./+"


def setup_logging(level=logging.INFO):
    """Set up logging configuration to stderr only"""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def is_prefix_in(value: str, prefixes: Iterable[str]) -> bool:
    """Check whether value starts with any of the given prefixes"""
    return any(value.startswith(prefix) for prefix in prefixes)


def parse_duration_string(duration: str) -> Tuple[float, bool]:
    """
    Parse a signed duration such as "+1h30m" or "-27D23h58m44s"

    Args:
        duration: Duration text as printed by knotd timers

    Returns:
        Tuple of (seconds, ok). ok is False when the text does not follow the
        grammar or carries only a sign.
    """
    match = DURATION_RE.fullmatch(duration)
    if not match:
        return 0.0, False

    groups = match.groups()[1:]
    if all(group is None for group in groups):
        return 0.0, False

    seconds = 0.0
    for group, unit in zip(groups, DURATION_UNITS):
        if group is not None:
            seconds += int(group) * unit

    if match.group(1) == "-":
        seconds = -seconds
    return seconds, True


def convert_state_time(value: str) -> Optional[float]:
    """
    Convert a zone-status timer field into seconds

    Timer states pending/running/frozen count as zero, "not scheduled" and "-"
    mean no timer at all. Unparseable text is logged and treated as absent.
    """
    if is_prefix_in(value, ZERO_STATES):
        return 0.0
    if value in ABSENT_STATES:
        return None

    seconds, ok = parse_duration_string(value)
    if ok:
        return seconds

    logger.error(f"Unable to parse time string: {value}")
    return None


def parse_float(value: str) -> Optional[float]:
    """Parse a plain decimal number, None when value is not one"""
    if not FLOAT_RE.fullmatch(value):
        return None
    return float(value)


def parse_int(value: str) -> Optional[int]:
    """Parse a plain decimal integer, None when value is not one"""
    if not INT_RE.fullmatch(value):
        return None
    return int(value)


def sanitize_metric_name(name: str) -> str:
    """Lowercase a raw statistic name and turn separators into underscores"""
    result = name.lower()
    for char in SANITIZED_CHARS:
        result = result.replace(char, "_")
    return result
