#!/usr/bin/env python3
"""
Metric Descriptors
Static descriptor pairs and the on-demand registries for statistic names that
are only known once knotd reports them
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, List, Sequence

from .models import DescriptorPair, MetricDescriptor
from .utils import sanitize_metric_name

logger = logging.getLogger(__name__)


def make_desc_pair(name: str, documentation: str, labels: Sequence[str]) -> DescriptorPair:
    """Build the gauge descriptor and its %s_total counterpart"""
    labels = tuple(labels)
    return DescriptorPair(
        value=MetricDescriptor(name, documentation, labels, "gauge"),
        total=MetricDescriptor(f"{name}_total", documentation, labels, "counter"),
    )


MEMORY_USAGE = make_desc_pair(
    "knot_memory_usage_bytes", "Memory usage of Knot DNS processes", ["pid"])

ZONE_SERIAL = make_desc_pair(
    "knot_zone_serial", "Zone serial number from Knot DNS", ["zone"])

# Timers taken from the SOA record
ZONE_REFRESH = make_desc_pair(
    "knot_zone_refresh_seconds", "Zone SOA refresh timer", ["zone"])
ZONE_RETRY = make_desc_pair(
    "knot_zone_retry_seconds", "Zone SOA retry timer", ["zone"])
ZONE_EXPIRATION = make_desc_pair(
    "knot_zone_expiration_seconds", "Zone SOA expiration timer", ["zone"])

# Timers reported by zone-status
ZONE_STATUS_REFRESH = make_desc_pair(
    "knot_zone_status_refresh_seconds", "Zone refresh timer from zone-status", ["zone"])
ZONE_STATUS_EXPIRATION = make_desc_pair(
    "knot_zone_status_expiration_seconds", "Zone expiration timer from zone-status", ["zone"])

BUILD_INFO = MetricDescriptor(
    "knot_build_info",
    "Build information about the exporter and libknot",
    ("version", "build_time", "git_commit", "python_version", "libknot_version", "platform"),
)


class ReadWriteLock:
    """
    Many concurrent readers or a single writer
    - Waiting writers block new readers so insertions are not starved
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self):
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class DescriptorRegistry:
    """
    Cache of descriptor pairs keyed by raw statistic name

    Every raw name maps to exactly one pair for the lifetime of the registry,
    all pairs share the registry's label schema.
    """

    def __init__(self, prefix: str, help_format: str, labels: Sequence[str]):
        """
        Initialize registry

        Args:
            prefix: Metric name prefix, joined to the sanitized name with "_"
            help_format: Help text with one {} placeholder for the raw name
            labels: Label names shared by every descriptor of this registry
        """
        self.prefix = prefix
        self.help_format = help_format
        self.labels = tuple(labels)
        self._descriptors: Dict[str, DescriptorPair] = {}
        self._lock = ReadWriteLock()

    def get(self, raw_name: str) -> DescriptorPair:
        """Return the descriptor pair for raw_name, creating it on first use"""
        with self._lock.read_locked():
            desc = self._descriptors.get(raw_name)
        if desc is not None:
            return desc

        with self._lock.write_locked():
            # Another scrape may have created it while we waited
            desc = self._descriptors.get(raw_name)
            if desc is not None:
                return desc

            metric_name = f"{self.prefix}_{sanitize_metric_name(raw_name)}"
            desc = make_desc_pair(metric_name, self.help_format.format(raw_name), self.labels)
            self._descriptors[raw_name] = desc

        logger.debug(f"Created new descriptor: {metric_name} with labels: {list(self.labels)}")
        return desc

    def names(self) -> List[str]:
        with self._lock.read_locked():
            return list(self._descriptors)

    def __contains__(self, raw_name: str) -> bool:
        with self._lock.read_locked():
            return raw_name in self._descriptors

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._descriptors)


def global_stats_registry() -> DescriptorRegistry:
    """Registry for the global "stats" command"""
    return DescriptorRegistry("knot_stats", "Global statistic: {}", ["module", "type"])


def zone_stats_registry() -> DescriptorRegistry:
    """Registry for the per-zone "zone-stats" command"""
    return DescriptorRegistry("knot_zone_stats", "Zone statistic: {}", ["zone", "module", "type"])
