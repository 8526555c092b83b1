"""
Knot-Exporter: Prometheus exporter for the Knot DNS control socket
"""

from .collector import KnotCollector
from .descriptors import DescriptorRegistry, global_stats_registry, zone_stats_registry
from .interpreter import ResponseInterpreter
from .models import CtlRecord, CtlType, DescriptorPair, ExporterConfig, MetricDescriptor
from .sink import MetricSink
from .utils import convert_state_time, parse_duration_string, sanitize_metric_name, setup_logging
from .version import __version__
from .exceptions import *


__author__ = "Knot Exporter Team"

__all__ = [
    "KnotCollector",
    "ResponseInterpreter",
    "DescriptorRegistry",
    "global_stats_registry",
    "zone_stats_registry",
    "MetricSink",
    "CtlRecord",
    "CtlType",
    "DescriptorPair",
    "MetricDescriptor",
    "ExporterConfig",
    "convert_state_time",
    "parse_duration_string",
    "sanitize_metric_name",
    "setup_logging",
    "KnotExporterException",
    "TransportError",
    "ConnectError",
    "SendError",
    "ReceiveError",
    "ValidationError"
]
