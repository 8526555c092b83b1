#!/usr/bin/env python3
"""
Metric Sink
Accumulates observations for one collection pass and turns them into
prometheus_client metric families
"""

import logging
from typing import Dict, List, Set, Tuple

from prometheus_client.core import GaugeMetricFamily, Metric, UnknownMetricFamily

from .models import DescriptorPair, MetricDescriptor

logger = logging.getLogger(__name__)


def family_type(descriptor: MetricDescriptor) -> str:
    return "unknown" if descriptor.kind == "counter" else "gauge"


def new_family(descriptor: MetricDescriptor) -> Metric:
    """
    Create an empty metric family for a descriptor

    prometheus_client strips "_total" from counter family names, which would
    collide with the gauge half of the pair, so the cumulative half is exposed
    untyped under its full name.
    """
    if descriptor.kind == "counter":
        return UnknownMetricFamily(descriptor.name, descriptor.documentation,
                                   labels=descriptor.labels)
    return GaugeMetricFamily(descriptor.name, descriptor.documentation,
                             labels=descriptor.labels)


class MetricSink:
    """Collects the metrics produced by one scrape"""

    def __init__(self):
        self._families: Dict[str, Metric] = {}
        self._conflicts: Set[str] = set()
        self.observations = 0

    def emit(self, descriptor: MetricDescriptor, value: float, *label_values: str):
        """
        Record a single observation for descriptor

        The first family to claim a name keeps it, observations of a different
        kind under the same name are dropped with a warning.
        """
        if len(label_values) != len(descriptor.labels):
            raise ValueError(
                f"{descriptor.name} expects labels {list(descriptor.labels)}, got {list(label_values)}"
            )

        family = self._families.get(descriptor.name)
        if family is None:
            family = new_family(descriptor)
            self._families[descriptor.name] = family
        elif family.type != family_type(descriptor):
            # a gauge and a cumulative half sharing one name would break the exposition
            if descriptor.name not in self._conflicts:
                self._conflicts.add(descriptor.name)
                logger.warning(f"Dropping {descriptor.kind} samples for {descriptor.name}: "
                               f"name already used by a {family.type} family")
            return
        family.add_metric(list(label_values), float(value))
        self.observations += 1

    def emit_pair(self, pair: DescriptorPair, value: float, *label_values: str):
        """Record the same value and labels against both halves of a pair"""
        self.emit(pair.value, value, *label_values)
        self.emit(pair.total, value, *label_values)

    def families(self) -> List[Metric]:
        return list(self._families.values())

    def samples(self, name: str) -> List[Tuple[Dict[str, str], float]]:
        """Return (labels, value) of every observation recorded under name"""
        family = self._families.get(name)
        if family is None:
            return []
        return [(sample.labels, sample.value) for sample in family.samples]

    def __len__(self) -> int:
        return self.observations
