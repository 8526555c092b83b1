#!/usr/bin/env python3
"""
HTTP Server
Serves /metrics, /health and an index page, plus the start-up checks run
before the exporter begins listening
"""

import ipaddress
import logging
import os
import signal
import socket
import threading
from socketserver import ThreadingMixIn
from typing import Callable
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import REGISTRY, make_wsgi_app

from .exceptions import KnotExporterException, ValidationError
from .models import ExporterConfig
from .transport import KnotControl
from .version import __version__

logger = logging.getLogger(__name__)

INDEX_PAGE = """<!DOCTYPE html>
<html>
<head><title>Knot DNS Exporter</title></head>
<body>
<h1>Knot DNS Exporter</h1>
<p>Version: {version}</p>
<p><a href="/metrics">Metrics</a></p>
<p><a href="/health">Health Check</a></p>
</body>
</html>"""


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """One thread per scrape"""
    daemon_threads = True


class ThreadingWSGIServerV6(ThreadingWSGIServer):
    address_family = socket.AF_INET6


def listen_family(host: str) -> socket.AddressFamily:
    """AF_INET6 for IPv6 literals, AF_INET for everything else"""
    try:
        if ipaddress.ip_address(host).version == 6:
            return socket.AF_INET6
    except ValueError:
        pass
    return socket.AF_INET


def server_class_for(host: str):
    if listen_family(host) == socket.AF_INET6:
        return ThreadingWSGIServerV6
    return ThreadingWSGIServer


class QuietRequestHandler(WSGIRequestHandler):
    def log_message(self, format, *args):
        logger.debug(f"{self.address_string()} - {format % args}")


def validate_config(config: ExporterConfig):
    """
    Check the socket path and listen address before starting

    Raises:
        ValidationError: describing the first problem found
    """
    try:
        os.stat(config.socket_path)
    except FileNotFoundError:
        raise ValidationError(f"knot socket does not exist: {config.socket_path} (is Knot DNS running?)")
    except OSError as e:
        raise ValidationError(f"cannot access knot socket {config.socket_path}: {e}")

    if config.web_listen_addr != "localhost":
        try:
            ipaddress.ip_address(config.web_listen_addr)
        except ValueError:
            raise ValidationError(f"invalid listen address: {config.web_listen_addr}")

    if not 1 <= config.web_listen_port <= 65535:
        raise ValidationError(f"invalid port number: {config.web_listen_port} (must be 1-65535)")

    try:
        with socket.create_server((config.web_listen_addr, config.web_listen_port),
                                  family=listen_family(config.web_listen_addr)):
            pass
    except OSError as e:
        raise ValidationError(f"cannot bind to {config.web_listen_addr}:{config.web_listen_port}: {e}")


def check_knot_connection(socket_path: str, timeout: int, control_factory: Callable = KnotControl):
    """
    Send "status" to knotd and wait for one response unit

    Raises:
        ValidationError: when the socket cannot be used
    """
    logger.debug(f"Testing connection to Knot DNS at {socket_path}")
    ctl = control_factory()
    try:
        ctl.connect(socket_path)
        ctl.set_timeout(timeout)
        ctl.send_command("status")
        ctl.receive()
    except KnotExporterException as e:
        raise ValidationError(f"Knot DNS connection test failed: {e}") from e
    finally:
        ctl.close()
    logger.debug("Successfully connected to Knot DNS")


def create_app(config: ExporterConfig, registry=REGISTRY, control_factory: Callable = KnotControl):
    """WSGI application routing the exporter's endpoints"""
    metrics_app = make_wsgi_app(registry)

    def app(environ, start_response):
        path = environ.get("PATH_INFO") or "/"

        if path == "/metrics":
            return metrics_app(environ, start_response)

        if path == "/health":
            try:
                check_knot_connection(config.socket_path, config.socket_timeout, control_factory)
            except ValidationError as e:
                body = f"Health check failed: {e}\n"
                start_response("503 Service Unavailable", [("Content-Type", "text/plain")])
                return [body.encode("utf-8")]
            start_response("200 OK", [("Content-Type", "text/plain")])
            return [b"OK"]

        # every other path gets the index page
        start_response("200 OK", [("Content-Type", "text/html")])
        return [INDEX_PAGE.format(version=__version__).encode("utf-8")]

    return app


def serve(config: ExporterConfig, registry=REGISTRY):
    """Serve until SIGINT or SIGTERM"""
    app = create_app(config, registry)
    httpd = make_server(config.web_listen_addr, config.web_listen_port, app,
                        server_class_for(config.web_listen_addr),
                        handler_class=QuietRequestHandler)

    def shutdown(signum, frame):
        logger.info(f"Received signal {signal.Signals(signum).name}, initiating graceful shutdown...")
        # shutdown() blocks until serve_forever returns, so not from this thread
        threading.Thread(target=httpd.shutdown, daemon=True).start()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    address = f"{config.web_listen_addr}:{config.web_listen_port}"
    logger.info(f"Starting HTTP server on {address}")
    logger.info(f"Metrics available at http://{address}/metrics")
    logger.info(f"Health check available at http://{address}/health")
    try:
        httpd.serve_forever()
    finally:
        httpd.server_close()
    logger.info("Server stopped gracefully")
