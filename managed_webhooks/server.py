"""HTTP server that hosts the admission webhooks."""

from __future__ import annotations

import argparse
import logging
import ssl
import sys
import threading
from collections.abc import Callable, Mapping
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from managed_webhooks import config
from managed_webhooks.admission import Webhook
from managed_webhooks.dispatcher import Dispatcher
from managed_webhooks.k8sutil import RunLocalError, get_operator_namespace
from managed_webhooks.localmetrics import render_metrics
from managed_webhooks.registry import registered_webhooks

log = logging.getLogger("handler")

METRICS_PATH = "/metrics"
METRICS_PORT = "8080"


def check_unique_uris(hooks: Mapping[str, Callable[[], Webhook]]) -> dict[str, str]:
    """Map each webhook URI to its name, raising ValueError on a repeated URI."""
    uris: dict[str, str] = {}
    for name, factory in hooks.items():
        uri = factory().get_uri()
        if uri in uris:
            raise ValueError(f"Duplicate webhook trying to listen on {uri}")
        uris[uri] = name
    return uris


def make_server(host: str, port: int, dispatcher: Dispatcher) -> ThreadingHTTPServer:
    """Build an HTTP server passing every request to the dispatcher."""

    class _Handler(BaseHTTPRequestHandler):
        def _dispatch(self) -> None:
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                self.send_error(HTTPStatus.BAD_REQUEST, "invalid Content-Length")
                return
            body = self.rfile.read(length) if length > 0 else b""
            status, payload = dispatcher.handle_request(self.path, body)
            data = payload.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        do_POST = do_GET = do_PUT = _dispatch

        def log_message(self, format: str, *args: object) -> None:
            log.debug(format, *args)

    return ThreadingHTTPServer((host, port), _Handler)


def _split_address(address: str, default_port: str) -> tuple[str, int]:
    host, _, port = address.rpartition(":")
    return host.strip("[]"), int(port or default_port)


def _start_metrics_server(address: str) -> ThreadingHTTPServer:
    class _MetricsHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            if self.path.split("?", 1)[0] != METRICS_PATH:
                self.send_error(HTTPStatus.NOT_FOUND)
                return
            data = render_metrics().encode("utf-8")
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-Type", "text/plain; version=0.0.4")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def log_message(self, format: str, *args: object) -> None:
            log.debug(format, *args)

    server = ThreadingHTTPServer(_split_address(address, METRICS_PORT), _MetricsHandler)
    threading.Thread(target=server.serve_forever, name="metrics", daemon=True).start()
    return server


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Serve the managed admission webhooks.")
    parser.add_argument("-listen", default="0.0.0.0", help="listen address")
    parser.add_argument("-port", default="5000", help="port to listen on")
    parser.add_argument("-testhooks", action="store_true",
                        help="Test webhook URI uniqueness and quit?")
    parser.add_argument("-tls", action="store_true",
                        help="Use TLS? Must specify -tlskey, -tlscert, -cacert")
    parser.add_argument("-tlskey", default="", help="TLS Key for TLS")
    parser.add_argument("-tlscert", default="", help="TLS Certificate")
    parser.add_argument("-cacert", default="", help="CA Cert file")
    parser.add_argument("-metrics-bind-address", dest="metrics_bind_address",
                        default=":" + METRICS_PORT,
                        help="The address the metric endpoint binds to.")
    args = parser.parse_args(argv)
    logging.basicConfig(stream=sys.stdout, level=logging.INFO)

    hooks = registered_webhooks()
    if not args.testhooks:
        log.info("HTTP server running at %s:%s", args.listen, args.port)
    uris = check_unique_uris(hooks)
    if args.testhooks:
        return 0
    for uri, name in uris.items():
        log.info("Listening webhookName=%s URI=%s", name, uri)
    dispatcher = Dispatcher(hooks)

    try:
        get_operator_namespace()
    except RunLocalError:
        log.info("Skipping metrics server creation; not running in a cluster.")
    except OSError as exc:
        log.error("Failed to get operator namespace: %s", exc)
    except Exception as exc:
        log.error("Failed to get operator namespace: %s", exc)
    else:
        try:
            _start_metrics_server(args.metrics_bind_address)
        except (OSError, ValueError) as exc:
            log.error("Failed to configure metrics: %s", exc)
        else:
            log.info("Successfully configured metrics for %s-metrics in %s",
                     config.OPERATOR_NAME, config.OPERATOR_NAMESPACE)

    context = None
    if args.tls:
        try:
            with open(args.cacert, "rb"):
                pass
        except OSError as exc:
            log.error("Couldn't read CA cert file: %s", exc)
            return 1
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        try:
            context.load_verify_locations(cafile=args.cacert)
            context.load_cert_chain(args.tlscert, args.tlskey)
        except (OSError, ssl.SSLError) as exc:
            log.error("Error serving TLS: %s", exc)
            return 1

    try:
        server = make_server(args.listen, int(args.port), dispatcher)
    except (OSError, ValueError) as exc:
        log.error("Error serving connection: %s", exc)
        return 1
    if context is not None:
        server.socket = context.wrap_socket(server.socket, server_side=True)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0


if __name__ == "__main__":
    sys.exit(main())