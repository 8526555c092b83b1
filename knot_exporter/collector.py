#!/usr/bin/env python3
"""
Knot Collector
prometheus_client collector that runs one full interrogation of knotd per scrape
"""

import logging
import platform
import threading
from contextlib import contextmanager
from typing import Callable, List, Optional

from prometheus_client.core import Metric

from . import descriptors
from .descriptors import DescriptorRegistry, global_stats_registry, zone_stats_registry
from .exceptions import ConnectError, TransportError
from .interpreter import ResponseInterpreter
from .models import ExporterConfig
from .process import list_monitored_pids, resident_memory_bytes
from .sink import MetricSink, new_family
from .transport import KnotControl, library_version
from .version import BUILD_TIME, GIT_COMMIT, __version__

logger = logging.getLogger(__name__)


def build_identity(libknot_version: str) -> List[str]:
    """Label values of knot_build_info, in descriptor order"""
    return [
        __version__,
        BUILD_TIME,
        GIT_COMMIT,
        platform.python_version(),
        libknot_version,
        f"{platform.system().lower()}/{platform.machine()}",
    ]


class KnotCollector:
    """
    Collects Knot DNS metrics over the control socket

    knotd handles one command per control session reliably, so every phase
    after the first runs on a session of its own. Passes are serialized.
    """

    def __init__(
        self,
        config: ExporterConfig,
        control_factory: Callable = KnotControl,
        global_registry: Optional[DescriptorRegistry] = None,
        zone_registry: Optional[DescriptorRegistry] = None,
        process_lister: Callable = list_monitored_pids,
        memory_reader: Callable = resident_memory_bytes,
        libknot_version: Optional[str] = None,
    ):
        self.config = config
        self.control_factory = control_factory
        self.global_registry = global_registry or global_stats_registry()
        self.zone_registry = zone_registry or zone_stats_registry()
        self.interpreter = ResponseInterpreter(self.global_registry, self.zone_registry)
        self.process_lister = process_lister
        self.memory_reader = memory_reader
        # Looked up once, it cannot change while we run
        self.libknot_version = libknot_version or library_version()
        self._lock = threading.Lock()

    def describe(self) -> List[Metric]:
        """Families known up front; stats families appear once knotd reports them"""
        pairs = []
        if self.config.collect_meminfo:
            pairs.append(descriptors.MEMORY_USAGE)
        if self.config.collect_zone_serial:
            pairs.append(descriptors.ZONE_SERIAL)
        if self.config.collect_zone_status:
            pairs.extend([descriptors.ZONE_STATUS_REFRESH, descriptors.ZONE_STATUS_EXPIRATION])
        if self.config.collect_zone_timers:
            pairs.extend([descriptors.ZONE_REFRESH, descriptors.ZONE_RETRY, descriptors.ZONE_EXPIRATION])

        families = [new_family(descriptors.BUILD_INFO)]
        for pair in pairs:
            families.extend(new_family(desc) for desc in pair)
        return families

    def collect(self) -> List[Metric]:
        sink = MetricSink()
        with self._lock:
            self.collect_into(sink)
        return sink.families()

    def collect_into(self, sink: MetricSink):
        """Run one collection pass, never raises transport errors"""
        sink.emit(descriptors.BUILD_INFO, 1.0, *build_identity(self.libknot_version))

        try:
            with self._session() as ctl:
                if self.config.collect_meminfo:
                    self._collect_memory(sink)
                if self.config.collect_stats:
                    self._run_phase("global stats", self.interpreter.collect_global_stats, ctl, sink)
        except ConnectError as e:
            logger.error(f"Failed to connect to socket: {e}")
            return

        config = self.config
        phases = [
            ("zone status", config.collect_zone_status or config.collect_zone_serial,
             lambda ctl: self.interpreter.collect_zone_status(
                 ctl, sink, config.collect_zone_serial, config.collect_zone_status)),
            ("zone stats", config.collect_zone_stats,
             lambda ctl: self.interpreter.collect_zone_stats(ctl, sink)),
            ("zone timers", config.collect_zone_timers,
             lambda ctl: self.interpreter.collect_zone_timers(ctl, sink)),
        ]
        for name, enabled, phase in phases:
            if not enabled:
                continue
            try:
                with self._session() as ctl:
                    self._run_phase(name, phase, ctl)
            except ConnectError as e:
                logger.error(f"Failed to reconnect for {name}: {e}")
                return

    @contextmanager
    def _session(self):
        """Open a fresh control session, closed again on exit"""
        ctl = self.control_factory()
        ctl.connect(self.config.socket_path)
        try:
            ctl.set_timeout(self.config.socket_timeout)
            yield ctl
        finally:
            ctl.close()

    def _run_phase(self, name: str, phase: Callable, *args):
        try:
            phase(*args)
        except TransportError as e:
            logger.error(f"Failed to collect {name}: {e}")

    def _collect_memory(self, sink: MetricSink):
        for pid in self.process_lister():
            usage = self.memory_reader(pid)
            if usage > 0:
                sink.emit_pair(descriptors.MEMORY_USAGE, usage, str(pid))
