#!/usr/bin/env python3
"""
Knot Control Transport
Thin adapter over the libknot Python binding exposing one command/response
session on the knotd control socket
"""

import logging
import math
from importlib.metadata import PackageNotFoundError, version
from typing import Optional, Tuple

from libknot.control import KnotCtl, KnotCtlData, KnotCtlDataIdx, KnotCtlError, KnotCtlType

from .exceptions import ConnectError, ReceiveError, SendError
from .models import CtlRecord, CtlType

logger = logging.getLogger(__name__)


def library_version() -> str:
    """Version of the installed libknot binding, "unknown" when not found"""
    try:
        return version("libknot")
    except PackageNotFoundError:
        return "unknown"


class KnotControl:
    """One control socket session"""

    def __init__(self):
        self.ctl: Optional[KnotCtl] = None

    def connect(self, path: str):
        try:
            self.ctl = KnotCtl()
            self.ctl.connect(path)
        except KnotCtlError as e:
            self.ctl = None
            raise ConnectError(str(e)) from e
        except OSError as e:
            # libknot.so could not be loaded
            self.ctl = None
            raise ConnectError(f"unable to load libknot: {e}") from e

    def close(self):
        """Send END and disconnect, safe to call more than once"""
        if self.ctl is None:
            return
        try:
            self.ctl.send(KnotCtlType.END)
        except KnotCtlError as e:
            logger.debug(f"Failed to send END before closing: {e}")
        finally:
            self.ctl.close()
            self.ctl = None

    def set_timeout(self, milliseconds: int):
        """Set the per-operation timeout, rounded up to whole seconds"""
        if self.ctl is not None:
            self.ctl.set_timeout(max(0, math.ceil(milliseconds / 1000)))

    def send_command(self, cmd: str):
        self.send_command_with_type(cmd, None)

    def send_command_with_type(self, cmd: str, rtype: Optional[str]):
        if self.ctl is None:
            raise SendError("control object not initialized")

        query = KnotCtlData()
        query[KnotCtlDataIdx.COMMAND] = cmd
        if rtype:
            query[KnotCtlDataIdx.TYPE] = rtype
        try:
            self.ctl.send(KnotCtlType.DATA, query)
            self.ctl.send(KnotCtlType.BLOCK)
        except KnotCtlError as e:
            raise SendError(str(e)) from e

    def receive(self) -> Tuple[CtlType, CtlRecord]:
        if self.ctl is None:
            raise ReceiveError("control object not initialized")

        reply = KnotCtlData()
        try:
            data_type = self.ctl.receive(reply)
        except KnotCtlError as e:
            raise ReceiveError(str(e)) from e

        record = CtlRecord(
            section=reply[KnotCtlDataIdx.SECTION] or "",
            id=reply[KnotCtlDataIdx.ID] or "",
            item=reply[KnotCtlDataIdx.ITEM] or "",
            zone=reply[KnotCtlDataIdx.ZONE] or "",
            data=reply[KnotCtlDataIdx.DATA] or "",
        )
        return CtlType(int(data_type)), record
