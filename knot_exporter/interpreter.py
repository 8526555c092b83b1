#!/usr/bin/env python3
"""
Response Interpreter
Walks the tagged record stream of one control command and turns it into metrics

Each collect_* method sends its command, then reads records until BLOCK or END.
Transport errors are raised to the caller, malformed records are skipped.
"""

import logging
from typing import Optional

from . import descriptors
from .descriptors import DescriptorRegistry
from .models import CtlType
from .sink import MetricSink
from .utils import convert_state_time, parse_float, parse_int

logger = logging.getLogger(__name__)

# zone-status reports one EXTRA unit per field after the zone's DATA unit.
# The positions were read off knotd output, they are not a documented table.
SERIAL_POSITION = 1
REFRESH_POSITION = 7
EXPIRATION_POSITION = 9

# Upper bound on records read by one zone-read, in case BLOCK never arrives
MAX_RESPONSES = 100000

DEBUG_RESPONSES = 20

PAYLOAD_TYPES = (CtlType.DATA, CtlType.EXTRA)
TERMINAL_TYPES = (CtlType.BLOCK, CtlType.END)


def decode_zone_status_field(position: int, value: str, collect_serial: bool,
                             collect_status: bool):
    """
    Map one positional zone-status field to a (descriptor pair, value) tuple

    Returns None when the field at this position is not exported, is disabled,
    or carries no usable value.
    """
    if collect_serial and position == SERIAL_POSITION:
        serial = parse_float(value)
        if serial is not None:
            return descriptors.ZONE_SERIAL, serial
        return None

    if not collect_status or not value or value == "-":
        return None

    if position == REFRESH_POSITION:
        pair = descriptors.ZONE_STATUS_REFRESH
    elif position == EXPIRATION_POSITION:
        pair = descriptors.ZONE_STATUS_EXPIRATION
    else:
        return None

    seconds = convert_state_time(value)
    if seconds is None:
        return None
    return pair, seconds


def parse_soa_timers(value: str) -> Optional[tuple]:
    """
    Extract (refresh, retry, expiration) from SOA rdata text

    The text must be "primary. admin. serial refresh retry expire minimum":
    exactly seven fields, the two names fully qualified, the rest integers.
    """
    fields = value.split()
    if len(fields) != 7:
        return None
    if not (fields[0].endswith(".") and fields[1].endswith(".")):
        return None

    numbers = [parse_int(field) for field in fields[2:]]
    if any(number is None for number in numbers):
        return None

    _serial, refresh, retry, expiration, _minimum = numbers
    return refresh, retry, expiration


class ResponseInterpreter:
    """Decodes the stats, zone-status, zone-stats and zone-read SOA responses"""

    def __init__(self, global_registry: DescriptorRegistry, zone_registry: DescriptorRegistry):
        self.global_registry = global_registry
        self.zone_registry = zone_registry

    def collect_global_stats(self, ctl, sink: MetricSink) -> int:
        """Send "stats" and emit one pair per numeric statistic"""
        logger.debug("Collecting global stats...")
        ctl.send_command("stats")

        count = 0
        responses = 0
        while True:
            data_type, data = ctl.receive()
            responses += 1
            if responses <= DEBUG_RESPONSES:
                logger.debug(f"Response {responses}: type={data_type}, section='{data.section}', "
                             f"item='{data.item}', id='{data.id}', zone='{data.zone}', data='{data.data}'")

            if data_type in TERMINAL_TYPES:
                break
            if data_type not in PAYLOAD_TYPES:
                continue

            if not data.item or not data.data:
                logger.debug(f"Skipped metric: type={data_type}, item='{data.item}', data='{data.data}'")
                continue

            value = parse_float(data.data)
            if value is None:
                logger.debug(f"Failed to parse value '{data.data}' for item '{data.item}'")
                continue

            sink.emit_pair(self.global_registry.get(data.item), value, data.section, data.id)
            count += 1

        logger.debug(f"Global stats: collected {count} statistics from {responses} responses")
        return count

    def collect_zone_status(self, ctl, sink: MetricSink, collect_serial: bool = True,
                            collect_status: bool = True) -> int:
        """Send "zone-status" and emit serials and zone-status timers"""
        logger.debug("Collecting zone status...")
        ctl.send_command("zone-status")

        count = 0
        responses = 0
        current_zone = ""
        position = 0
        while True:
            data_type, data = ctl.receive()
            responses += 1
            if responses <= DEBUG_RESPONSES:
                logger.debug(f"Zone status response {responses}: type={data_type}, "
                             f"zone='{data.zone}', data='{data.data}'")

            if data_type in TERMINAL_TYPES:
                break

            if data_type == CtlType.DATA:
                if data.zone and data.zone != current_zone:
                    current_zone = data.zone
                    position = 0
                continue

            if data_type != CtlType.EXTRA or not current_zone:
                continue

            position += 1
            decoded = decode_zone_status_field(position, data.data, collect_serial, collect_status)
            if decoded is None:
                continue

            pair, value = decoded
            sink.emit_pair(pair, value, current_zone)
            count += 1
            logger.debug(f"Zone status: zone={current_zone}, position={position}, "
                         f"value={data.data}, metric={pair.value.name}")

        logger.debug(f"Zone status: emitted {count} values from {responses} responses")
        return count

    def collect_zone_stats(self, ctl, sink: MetricSink) -> int:
        """Send "zone-stats" and emit one pair per numeric per-zone statistic"""
        logger.debug("Collecting zone statistics...")
        ctl.send_command("zone-stats")

        count = 0
        responses = 0
        while True:
            data_type, data = ctl.receive()
            responses += 1
            if responses <= DEBUG_RESPONSES:
                logger.debug(f"Zone stats response {responses}: type={data_type}, section='{data.section}', "
                             f"item='{data.item}', id='{data.id}', zone='{data.zone}', data='{data.data}'")

            if data_type in TERMINAL_TYPES:
                break
            if data_type not in PAYLOAD_TYPES:
                continue

            if not (data.zone and data.item and data.data):
                logger.debug(f"Skipped zone stat: type={data_type}, zone='{data.zone}', "
                             f"item='{data.item}', data='{data.data}'")
                continue

            value = parse_float(data.data)
            if value is None:
                logger.debug(f"Failed to parse zone stat value '{data.data}' for zone "
                             f"'{data.zone}', item '{data.item}'")
                continue

            sink.emit_pair(self.zone_registry.get(data.item), value,
                           data.zone, data.section, data.id)
            count += 1

        logger.debug(f"Zone stats: collected {count} statistics from {responses} responses")
        return count

    def collect_zone_timers(self, ctl, sink: MetricSink) -> int:
        """Send "zone-read" for SOA records and emit refresh/retry/expiration"""
        logger.debug("Collecting zone timers from SOA records...")
        ctl.send_command_with_type("zone-read", "SOA")

        zones = 0
        responses = 0
        while responses < MAX_RESPONSES:
            data_type, data = ctl.receive()
            responses += 1

            if data_type in TERMINAL_TYPES:
                break
            if data_type != CtlType.DATA or not data.zone:
                continue

            timers = parse_soa_timers(data.data)
            if timers is None:
                if responses <= DEBUG_RESPONSES:
                    logger.debug(f"Zone {data.zone}: not a valid SOA record: '{data.data}'")
                continue

            refresh, retry, expiration = timers
            sink.emit_pair(descriptors.ZONE_REFRESH, refresh, data.zone)
            sink.emit_pair(descriptors.ZONE_RETRY, retry, data.zone)
            sink.emit_pair(descriptors.ZONE_EXPIRATION, expiration, data.zone)
            zones += 1
        else:
            logger.warning(f"Zone timers: stopped at maximum responses ({MAX_RESPONSES})")

        logger.debug(f"Zone timers: processed SOA records for {zones} zones")
        return zones
