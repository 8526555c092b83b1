"""
Shared fixtures: a scripted stand-in for the knotd control socket
"""

import pytest

from knot_exporter.exceptions import ConnectError
from knot_exporter.models import CtlRecord, CtlType, ExporterConfig
from knot_exporter.sink import MetricSink


class FakeControl:
    """
    Control session replaying canned responses per command

    script maps a command name to the (type, record) tuples it answers with;
    an Exception instance in that list is raised by receive(). Once a reply is
    exhausted receive() answers END.
    """

    def __init__(self, script=None, connect_error=None, send_errors=None):
        self.script = script or {}
        self.connect_error = connect_error
        self.send_errors = send_errors or {}
        self.commands = []
        self.path = None
        self.timeout = None
        self.closed = False
        self.received = 0
        self._pending = []

    def connect(self, path):
        if self.connect_error:
            raise self.connect_error
        self.path = path

    def close(self):
        self.closed = True

    def set_timeout(self, milliseconds):
        self.timeout = milliseconds

    def send_command(self, cmd):
        self.send_command_with_type(cmd, None)

    def send_command_with_type(self, cmd, rtype):
        if cmd in self.send_errors:
            raise self.send_errors[cmd]
        self.commands.append((cmd, rtype))
        self._pending = list(self.script.get(cmd, []))

    def receive(self):
        self.received += 1
        if not self._pending:
            return CtlType.END, CtlRecord()
        response = self._pending.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeControlFactory:
    """Hands out FakeControl sessions, connect fails from session fail_from on"""

    def __init__(self, script=None, fail_from=None, send_errors=None):
        self.script = script or {}
        self.fail_from = fail_from
        self.send_errors = send_errors or {}
        self.sessions = []

    def __call__(self):
        error = None
        if self.fail_from is not None and len(self.sessions) >= self.fail_from:
            error = ConnectError("Connection refused")
        session = FakeControl(self.script, connect_error=error, send_errors=self.send_errors)
        self.sessions.append(session)
        return session

    @property
    def commands(self):
        return [cmd for session in self.sessions for cmd, _ in session.commands]


def data(**fields):
    return CtlType.DATA, CtlRecord(**fields)


def extra(**fields):
    return CtlType.EXTRA, CtlRecord(**fields)


BLOCK = (CtlType.BLOCK, CtlRecord())


@pytest.fixture
def sink():
    return MetricSink()


@pytest.fixture
def config():
    """Every collector enabled, validation skipped"""
    return ExporterConfig(
        socket_path="/test/knot.sock",
        socket_timeout=1500,
        collect_zone_timers=True,
        skip_validation=True,
    )


@pytest.fixture
def knot_script():
    """Responses of a knotd serving a single zone"""
    return {
        "stats": [
            data(section="server", item="query.total", id="udp", data="1000"),
            extra(section="server", item="query.total", id="tcp", data="500"),
            BLOCK,
        ],
        "zone-status": [
            data(zone="example.com"),
            extra(zone="example.com", data="2023101801"),
            extra(zone="example.com", data="master"),
            extra(zone="example.com", data="-"),
            extra(zone="example.com", data="-"),
            extra(zone="example.com", data="-"),
            extra(zone="example.com", data="-"),
            extra(zone="example.com", data="+1h30m"),
            extra(zone="example.com", data="not scheduled"),
            extra(zone="example.com", data="+30D"),
            BLOCK,
        ],
        "zone-stats": [
            data(zone="example.com", section="mod-stats", item="request-protocol", id="udp4", data="42"),
            BLOCK,
        ],
        "zone-read": [
            data(zone="example.com",
                 data="ns1.example.com. admin.example.com. 2023101801 3600 600 86400 300"),
            BLOCK,
        ],
    }
