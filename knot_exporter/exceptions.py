"""
Custom exceptions for the Knot DNS exporter
"""


class KnotExporterException(Exception):
    """Base exception for knot-exporter"""
    pass


class TransportError(KnotExporterException):
    """Error talking to the Knot control socket"""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Control socket error during {operation}: {message}")


class ConnectError(TransportError):
    """Connecting to the control socket failed"""

    def __init__(self, message: str):
        super().__init__("connect", message)


class SendError(TransportError):
    """Sending a command to the control socket failed"""

    def __init__(self, message: str):
        super().__init__("send", message)


class ReceiveError(TransportError):
    """Receiving a response unit from the control socket failed"""

    def __init__(self, message: str):
        super().__init__("receive", message)


class ValidationError(KnotExporterException):
    """Start-up configuration validation error"""
    pass
