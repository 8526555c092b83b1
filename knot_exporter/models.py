#!/usr/bin/env python3
"""
Knot Exporter Data Models
Data structures for control-socket records, metric descriptors and configuration
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple


class CtlType(IntEnum):
    """Control data unit types, numbered as libknot numbers them"""
    END = 0
    DATA = 1
    EXTRA = 2
    BLOCK = 3


@dataclass(frozen=True)
class CtlRecord:
    """One tagged record received from the control socket"""
    section: str = ""
    id: str = ""
    item: str = ""
    zone: str = ""
    data: str = ""


@dataclass(frozen=True)
class MetricDescriptor:
    """Name, help text and label schema of one exported metric"""
    name: str
    documentation: str
    labels: Tuple[str, ...] = ()
    kind: str = "gauge"


@dataclass(frozen=True)
class DescriptorPair:
    """Instantaneous value descriptor plus its cumulative counterpart"""
    value: MetricDescriptor
    total: MetricDescriptor

    @property
    def labels(self) -> Tuple[str, ...]:
        return self.value.labels

    def __iter__(self):
        yield self.value
        yield self.total


@dataclass
class ExporterConfig:
    """Runtime configuration gathered from the command line"""
    web_listen_addr: str = "127.0.0.1"
    web_listen_port: int = 9433
    socket_path: str = "/run/knot/knot.sock"
    socket_timeout: int = 2000  # milliseconds

    collect_meminfo: bool = True
    collect_stats: bool = True
    collect_zone_stats: bool = True
    collect_zone_status: bool = True
    collect_zone_serial: bool = True
    collect_zone_timers: bool = False

    debug: bool = False
    skip_validation: bool = False
