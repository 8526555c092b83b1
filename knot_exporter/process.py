#!/usr/bin/env python3
"""
Process Memory
Finds running knotd processes and reads their resident memory
"""

import logging
from typing import List

import psutil

logger = logging.getLogger(__name__)

PROCESS_NAME = "knotd"


def list_monitored_pids(name: str = PROCESS_NAME) -> List[int]:
    """PIDs of every running process called name"""
    pids = []
    for proc in psutil.process_iter(["pid", "name"]):
        if proc.info["name"] == name:
            pids.append(proc.info["pid"])
    return pids


def resident_memory_bytes(pid: int) -> int:
    """Resident set size of pid in bytes, 0 when it cannot be read"""
    try:
        return psutil.Process(pid).memory_info().rss
    except psutil.Error as e:
        logger.debug(f"Unable to read memory of pid {pid}: {e}")
        return 0
