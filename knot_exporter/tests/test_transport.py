"""
Tests for the libknot adapter and the process memory helpers
"""

from unittest.mock import Mock, patch

import psutil
import pytest
from libknot.control import KnotCtlDataIdx, KnotCtlError, KnotCtlType

from knot_exporter import process, transport
from knot_exporter.exceptions import ConnectError, ReceiveError, SendError
from knot_exporter.models import CtlRecord, CtlType
from knot_exporter.transport import KnotControl


class FakeData(dict):
    """Stands in for KnotCtlData, unset indexes read as None"""

    def __getitem__(self, index):
        return self.get(index)


@pytest.fixture
def knot_ctl():
    """Patch KnotCtl and KnotCtlData, yield the mocked KnotCtl instance"""
    with patch.object(transport, "KnotCtl") as ctl_class, \
            patch.object(transport, "KnotCtlData", FakeData):
        yield ctl_class.return_value


@pytest.fixture
def control(knot_ctl):
    ctl = KnotControl()
    ctl.connect("/run/knot/knot.sock")
    return ctl


class TestKnotControl:
    def test_connect(self, knot_ctl, control):
        knot_ctl.connect.assert_called_once_with("/run/knot/knot.sock")

    def test_connect_error(self, knot_ctl):
        knot_ctl.connect.side_effect = KnotCtlError("connection refused")
        ctl = KnotControl()
        with pytest.raises(ConnectError, match="connection refused"):
            ctl.connect("/missing.sock")
        assert ctl.ctl is None
        ctl.close()

    def test_library_missing(self):
        with patch.object(transport, "KnotCtl", side_effect=OSError("libknot.so: cannot open")):
            with pytest.raises(ConnectError, match="unable to load libknot"):
                KnotControl().connect("/run/knot/knot.sock")

    def test_timeout_in_whole_seconds(self, knot_ctl, control):
        control.set_timeout(2000)
        control.set_timeout(1500)
        control.set_timeout(0)
        assert [c.args[0] for c in knot_ctl.set_timeout.call_args_list] == [2, 2, 0]

    def test_send_command(self, knot_ctl, control):
        control.send_command("stats")
        (first_type, query), (second_type,) = [c.args for c in knot_ctl.send.call_args_list]
        assert first_type == KnotCtlType.DATA
        assert query[KnotCtlDataIdx.COMMAND] == "stats"
        assert query[KnotCtlDataIdx.TYPE] is None
        assert second_type == KnotCtlType.BLOCK

    def test_send_command_with_type(self, knot_ctl, control):
        control.send_command_with_type("zone-read", "SOA")
        query = knot_ctl.send.call_args_list[0].args[1]
        assert query[KnotCtlDataIdx.COMMAND] == "zone-read"
        assert query[KnotCtlDataIdx.TYPE] == "SOA"

    def test_send_error(self, knot_ctl, control):
        knot_ctl.send.side_effect = KnotCtlError("broken pipe")
        with pytest.raises(SendError, match="broken pipe"):
            control.send_command("stats")

    def test_send_without_connection(self):
        with pytest.raises(SendError):
            KnotControl().send_command("stats")

    def test_receive(self, knot_ctl, control):
        def fill(reply):
            reply[KnotCtlDataIdx.SECTION] = "server"
            reply[KnotCtlDataIdx.ITEM] = "query.total"
            reply[KnotCtlDataIdx.ID] = "udp"
            reply[KnotCtlDataIdx.DATA] = "1000"
            return KnotCtlType.EXTRA

        knot_ctl.receive.side_effect = fill
        data_type, record = control.receive()

        assert data_type is CtlType.EXTRA
        assert record == CtlRecord(section="server", id="udp", item="query.total", zone="", data="1000")

    def test_receive_error(self, knot_ctl, control):
        knot_ctl.receive.side_effect = KnotCtlError("operation timed out")
        with pytest.raises(ReceiveError, match="timed out"):
            control.receive()

    def test_receive_without_connection(self):
        with pytest.raises(ReceiveError):
            KnotControl().receive()

    def test_close_sends_end(self, knot_ctl, control):
        control.close()
        knot_ctl.send.assert_called_once_with(KnotCtlType.END)
        knot_ctl.close.assert_called_once_with()
        control.close()
        knot_ctl.close.assert_called_once_with()

    def test_close_survives_send_error(self, knot_ctl, control):
        knot_ctl.send.side_effect = KnotCtlError("broken pipe")
        control.close()
        knot_ctl.close.assert_called_once_with()
        assert control.ctl is None


def test_library_version_unknown():
    with patch.object(transport, "version", side_effect=transport.PackageNotFoundError):
        assert transport.library_version() == "unknown"


class TestProcessMemory:
    def test_list_monitored_pids(self):
        procs = [Mock(info={"pid": 10, "name": "knotd"}),
                 Mock(info={"pid": 11, "name": "sshd"}),
                 Mock(info={"pid": 12, "name": "knotd"})]
        with patch.object(process.psutil, "process_iter", return_value=procs):
            assert process.list_monitored_pids() == [10, 12]

    def test_resident_memory(self):
        with patch.object(process.psutil, "Process") as proc_class:
            proc_class.return_value.memory_info.return_value = Mock(rss=8192)
            assert process.resident_memory_bytes(10) == 8192
            proc_class.assert_called_once_with(10)

    def test_vanished_process(self):
        with patch.object(process.psutil, "Process", side_effect=psutil.NoSuchProcess(10)):
            assert process.resident_memory_bytes(10) == 0
